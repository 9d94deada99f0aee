from __future__ import annotations
import datetime as dt
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from .common import Record, gen_id, parse_date, to_number

CodeType = Literal["credit", "debit"]


class AccountCode(Record):
    code: str
    name: str
    rate: Optional[float] = None  # default unit price for labor codes
    type: CodeType = "credit"


DEFAULT_ACCOUNT_CODES: List[AccountCode] = [
    AccountCode(code="100", name="General Labor", rate=28, type="credit"),
    AccountCode(code="101", name="Skilled Labor", rate=39.5, type="credit"),
    AccountCode(code="200", name="Materials On Hand", type="credit"),
    AccountCode(code="201", name="Ordered Materials", type="credit"),
    AccountCode(code="300", name="Cash Payment", type="debit"),
    AccountCode(code="301", name="Check Payment", type="debit"),
    AccountCode(code="302", name="Debit/Credit Payment", type="debit"),
    AccountCode(code="303", name="Venmo/Paypal Payment", type="debit"),
]


class Payment(Record):
    id: str = Field(default_factory=gen_id)
    invoice_id: str
    amount: float = 0.0
    method: str = "Other"  # Check, Cash, Card, Venmo…
    date: Optional[dt.date] = Field(default_factory=dt.date.today)
    note: str = ""

    @field_validator("invoice_id", mode="before")
    @classmethod
    def _invoice_id(cls, v):
        return "" if v is None else str(v)

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, v):
        return to_number(v)

    @field_validator("date", mode="before")
    @classmethod
    def _date(cls, v):
        return parse_date(v)


class Expense(Record):
    id: str = Field(default_factory=gen_id)
    category: str = "Misc"
    amount: float = 0.0
    date: Optional[dt.date] = Field(default_factory=dt.date.today)
    vendor: str
    note: str = ""

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, v):
        return to_number(v)

    @field_validator("date", mode="before")
    @classmethod
    def _date(cls, v):
        return parse_date(v)
