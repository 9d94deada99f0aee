from __future__ import annotations
from datetime import date
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from .common import Record, parse_date, to_number
from .customer import Customer

AdjustmentType = Literal["percent", "flat"]
InvoiceStatus = Literal["Paid", "Unpaid"]
OrderStatus = Literal["Pending", "Confirmed", "Completed"]

# account codes starting with this prefix are payments received
DEBIT_PREFIX = "30"


class LineItem(Record):
    account: str = "100"
    desc: str = ""
    qty: float = 0.0
    price: float = 0.0

    @field_validator("qty", "price", mode="before")
    @classmethod
    def _coerce_number(cls, v):
        return to_number(v)

    @field_validator("account", "desc", mode="before")
    @classmethod
    def _coerce_str(cls, v):
        return "" if v is None else str(v)

    @property
    def is_debit(self) -> bool:
        return self.account.startswith(DEBIT_PREFIX)


class DocMeta(Record):
    discount_rate: float = 0.0
    discount_type: AdjustmentType = "percent"
    tax_rate: float = 0.0
    tax_type: AdjustmentType = "percent"
    fee_value: float = 0.0
    fee_type: AdjustmentType = "percent"
    labor_rate: Optional[float] = None

    @field_validator("discount_rate", "tax_rate", "fee_value", mode="before")
    @classmethod
    def _coerce_rate(cls, v):
        return to_number(v)

    @field_validator("discount_type", "tax_type", "fee_type", mode="before")
    @classmethod
    def _coerce_type(cls, v):
        return "flat" if v == "flat" else "percent"


class Document(Record):
    """Fields shared by invoices and sales orders."""
    id: str
    seq: int = 0
    customer_id: Optional[str] = None
    manual_customer: Optional[Customer] = None
    created: Optional[date] = Field(default_factory=date.today)
    items: List[LineItem] = Field(default_factory=list)
    meta: DocMeta = Field(default_factory=DocMeta)
    direct_materials: float = 0.0

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, v):
        return str(v)

    @field_validator("seq", mode="before")
    @classmethod
    def _seq_to_int(cls, v):
        return int(to_number(v))

    @field_validator("customer_id", mode="before")
    @classmethod
    def _blank_customer(cls, v):
        return str(v) if v not in (None, "") else None

    @field_validator("created", mode="before")
    @classmethod
    def _created(cls, v):
        return parse_date(v)

    @field_validator("direct_materials", mode="before")
    @classmethod
    def _materials(cls, v):
        return to_number(v)

    @field_validator("meta", mode="before")
    @classmethod
    def _meta_default(cls, v):
        return v if v is not None else {}


class Invoice(Document):
    status: InvoiceStatus = "Unpaid"
    due: Optional[date] = None

    @field_validator("due", mode="before")
    @classmethod
    def _due(cls, v):
        return parse_date(v)


class SalesOrder(Document):
    status: OrderStatus = "Pending"
