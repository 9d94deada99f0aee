from __future__ import annotations

import logging
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Iterable, List, Optional

from pydantic import BaseModel

from glassworks.engine.calculations import (
    DocTotals,
    document_totals,
    invoice_balance,
    invoice_status,
    next_invoice_number,
)
from glassworks.models.customer import Customer
from glassworks.models.document import DocMeta, Invoice, LineItem
from glassworks.models.state import AppState
from glassworks.services import document_printer
from glassworks.storage.state import StateStore

logger = logging.getLogger(__name__)

DEFAULT_TERMS_DAYS = 7


class InvoiceSummary(BaseModel):
    id: str
    created: Optional[date] = None
    due: Optional[date] = None
    customer_name: str
    total: float
    balance: float
    status: str


def clean_items(items: Iterable[Any]) -> List[LineItem]:
    """Drops blank rows: a line needs a description and a positive quantity."""
    out: List[LineItem] = []
    for it in items or []:
        line = it if isinstance(it, LineItem) else LineItem.model_validate(it)
        if line.desc and line.qty > 0:
            out.append(line)
    return out


class InvoiceService:
    def __init__(self, store: Optional[StateStore] = None):
        self.store = store or StateStore()

    # ----------- read -----------
    def list_invoices(self) -> List[Invoice]:
        return self.store.state.invoices

    def get_by_id(self, invoice_id: str) -> Optional[Invoice]:
        return self.store.state.find_invoice(invoice_id)

    def _require(self, state: AppState, invoice_id: str) -> Invoice:
        inv = state.find_invoice(invoice_id)
        if inv is None:
            raise KeyError(f"invoice {invoice_id} not found")
        return inv

    def totals(self, invoice_id: str) -> DocTotals:
        return document_totals(self._require(self.store.state, invoice_id))

    def balance(self, invoice_id: str) -> float:
        s = self.store.state
        return invoice_balance(self._require(s, invoice_id), s.payments)

    def summaries(self) -> List[InvoiceSummary]:
        s = self.store.state
        out: List[InvoiceSummary] = []
        for inv in s.invoices:
            customer = s.customer_for(inv)
            balance = invoice_balance(inv, s.payments)
            out.append(InvoiceSummary(
                id=inv.id,
                created=inv.created,
                due=inv.due,
                customer_name=customer.name if customer else "Unknown",
                total=document_totals(inv).total,
                balance=balance,
                status="Paid" if balance == 0 else "Unpaid",
            ))
        return out

    def open_invoices(self) -> List[Invoice]:
        s = self.store.state
        return [inv for inv in s.invoices if invoice_balance(inv, s.payments) > 0]

    # ----------- write -----------
    def create_invoice(
        self,
        customer_id: Optional[str] = None,
        items: Iterable[Any] = (),
        *,
        due: Optional[date] = None,
        meta: Optional[DocMeta] = None,
        manual_customer: Optional[Customer] = None,
        direct_materials: float = 0.0,
    ) -> Invoice:
        raw_items = list(items or [])
        if not customer_id and not raw_items:
            raise ValueError("an invoice needs a customer or at least one line item")
        lines = clean_items(raw_items)
        created: List[Invoice] = []

        def _create(s: AppState) -> AppState:
            # numbering and insert happen under the store lock
            seq = next_invoice_number(s.invoices)
            inv = Invoice(
                id=str(seq),
                seq=seq,
                customer_id=customer_id,
                manual_customer=manual_customer,
                status="Unpaid",
                created=date.today(),
                due=due or date.today() + timedelta(days=DEFAULT_TERMS_DAYS),
                items=lines,
                meta=meta or DocMeta(),
                direct_materials=direct_materials,
            )
            s.invoices.append(inv)
            created.append(inv)
            return s

        self.store.update(_create)
        inv = created[0]
        logger.info("Invoice %s created (%d lines)", inv.id, len(inv.items))
        return inv

    def update_invoice(self, invoice: Invoice) -> Invoice:
        def _update(s: AppState) -> AppState:
            for idx, existing in enumerate(s.invoices):
                if existing.id == invoice.id:
                    s.invoices[idx] = invoice
                    return s
            raise KeyError(f"invoice {invoice.id} not found")

        self.store.update(_update, allow_undo=True)
        return invoice

    def set_direct_materials(self, invoice_id: str, amount: float) -> Invoice:
        inv = self._require(self.store.state, invoice_id)
        inv.direct_materials = amount
        return self.update_invoice(inv)

    def delete_invoice(self, invoice_id: str) -> bool:
        """Hard delete; the invoice's payments go with it."""
        invoice_id = str(invoice_id)
        if self.get_by_id(invoice_id) is None:
            return False

        def _delete(s: AppState) -> AppState:
            s.invoices = [i for i in s.invoices if i.id != invoice_id]
            s.payments = [p for p in s.payments if p.invoice_id != invoice_id]
            return s

        self.store.update(_delete, allow_undo=True)
        logger.info("Invoice %s deleted", invoice_id)
        return True

    def refresh_statuses(self) -> int:
        """Writes the balance-derived Paid/Unpaid status back; returns how many changed."""
        changed = 0

        def _refresh(s: AppState) -> AppState:
            nonlocal changed
            for inv in s.invoices:
                status = invoice_status(inv, s.payments)
                if inv.status != status:
                    inv.status = status
                    changed += 1
            return s

        self.store.update(_refresh)
        return changed

    # ----------- print -----------
    def render_html(self, invoice_id: str) -> str:
        s = self.store.state
        return document_printer.render_document_html(self._require(s, invoice_id), s)

    def export_pdf(self, invoice_id: str, out_dir: Optional[str | Path] = None) -> Path:
        s = self.store.state
        return document_printer.export_pdf(self._require(s, invoice_id), s, self.store.config, out_dir)
