from __future__ import annotations

import logging
import datetime as dt
from typing import List, Literal, Optional

from pydantic import BaseModel

from glassworks.engine.calculations import format_currency, is_debit_code, line_item_value
from glassworks.models.accounting import Payment
from glassworks.models.common import to_number
from glassworks.models.state import AppState
from glassworks.storage.state import StateStore

logger = logging.getLogger(__name__)

PaymentSource = Literal["Manual", "Line"]


class LedgerEntry(BaseModel):
    id: str
    invoice_id: str
    amount: float
    method: str
    date: Optional[dt.date] = None
    note: str = ""
    source: PaymentSource = "Manual"


def payment_ledger(state: AppState) -> List[LedgerEntry]:
    """
    Manual payment records plus the debit lines embedded in invoices, newest first.
    Line entries are dated with their invoice and named after their account code.
    """
    entries = [
        LedgerEntry(id=p.id, invoice_id=p.invoice_id, amount=p.amount, method=p.method,
                    date=p.date, note=p.note, source="Manual")
        for p in state.payments
    ]
    for inv in state.invoices:
        debits = [i for i in inv.items if is_debit_code(i.account)]
        for idx, item in enumerate(debits):
            entries.append(LedgerEntry(
                id=f"{inv.id}-debit-{idx}",
                invoice_id=inv.id,
                amount=abs(line_item_value(item)),
                method=state.account_name(item.account),
                date=inv.created,
                note=item.desc,
                source="Line",
            ))
    entries.sort(key=lambda e: e.date or dt.date.min, reverse=True)
    return entries


class PaymentService:
    def __init__(self, store: Optional[StateStore] = None):
        self.store = store or StateStore()

    def list_payments(self) -> List[Payment]:
        return self.store.state.payments

    def for_invoice(self, invoice_id: str) -> List[Payment]:
        return [p for p in self.list_payments() if p.invoice_id == str(invoice_id)]

    def ledger(self) -> List[LedgerEntry]:
        return payment_ledger(self.store.state)

    def record_payment(
        self,
        invoice_id: str,
        amount: float,
        method: str = "Check",
        date: Optional[dt.date] = None,
        note: str = "",
    ) -> Payment:
        value = to_number(amount)
        if not value:
            raise ValueError("payment amount is required")
        payment = Payment(invoice_id=str(invoice_id), amount=value, method=method or "Other", note=note or "")
        if date:
            payment.date = date

        def _record(s: AppState) -> AppState:
            if s.find_invoice(payment.invoice_id) is None:
                raise KeyError(f"invoice {invoice_id} not found")
            s.payments.append(payment)
            return s

        state = self.store.update(_record)
        logger.info(
            "Payment of %s recorded for invoice #%s",
            format_currency(value, state.settings.locale, state.settings.currency),
            payment.invoice_id,
        )
        return payment

    def delete_payment(self, payment_id: str) -> bool:
        """Removes a manual payment (undoable). Debit lines are edited on their invoice."""
        payment_id = str(payment_id)
        if not any(p.id == payment_id for p in self.list_payments()):
            return False

        def _delete(s: AppState) -> AppState:
            s.payments = [p for p in s.payments if p.id != payment_id]
            return s

        self.store.update(_delete, allow_undo=True)
        logger.info("Payment record %s removed", payment_id)
        return True
