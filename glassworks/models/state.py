from __future__ import annotations
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from .accounting import DEFAULT_ACCOUNT_CODES, AccountCode, Expense, Payment
from .common import Record
from .customer import Customer
from .document import Document, Invoice, SalesOrder


class DisplaySettings(Record):
    locale: str = "en-US"
    currency: str = "USD"


class Branding(Record):
    header: str = "GlassWorks Studio"
    footer: str = "Thank you for your business!"
    terms: str = "Net 14 days. 1.5% monthly late fee applies to overdue balances."
    payment: str = "Payable via Check, Venmo (@GlassWorks-Studio), or Cash."
    watermark: bool = False
    logo: str = ""
    address: str = "359 Pauline Street, Anchorage, AK 99503"
    phone: str = "(907) 555-0199"
    email: str = "studio@glassworks.example"


class AppState(Record):
    customers: List[Customer] = Field(default_factory=list)
    invoices: List[Invoice] = Field(default_factory=list)
    orders: List[SalesOrder] = Field(default_factory=list)
    payments: List[Payment] = Field(default_factory=list)
    expenses: List[Expense] = Field(default_factory=list)
    account_codes: List[AccountCode] = Field(
        default_factory=lambda: [c.model_copy() for c in DEFAULT_ACCOUNT_CODES]
    )
    last_backup: Optional[datetime] = Field(default_factory=datetime.now)
    settings: DisplaySettings = Field(default_factory=DisplaySettings)
    branding: Branding = Field(default_factory=Branding)

    @field_validator("account_codes", mode="before")
    @classmethod
    def _default_codes(cls, v):
        if not v:
            return [c.model_copy() for c in DEFAULT_ACCOUNT_CODES]
        return v

    # helpers
    def find_invoice(self, invoice_id: str) -> Optional[Invoice]:
        return next((i for i in self.invoices if i.id == str(invoice_id)), None)

    def find_order(self, order_id: str) -> Optional[SalesOrder]:
        return next((o for o in self.orders if o.id == str(order_id)), None)

    def find_customer(self, customer_id: Optional[str]) -> Optional[Customer]:
        if not customer_id:
            return None
        return next((c for c in self.customers if c.id == str(customer_id)), None)

    def account_name(self, code: str) -> str:
        match = next((c for c in self.account_codes if c.code == code), None)
        return match.name if match else code

    def customer_for(self, doc: Document) -> Optional[Customer]:
        """Directory customer if linked, else the one typed on the document."""
        return self.find_customer(doc.customer_id) or doc.manual_customer
