from __future__ import annotations

import csv
import io
import logging
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel

from glassworks.engine.calculations import debit_lines_total, document_totals, invoice_balance
from glassworks.storage.state import StateStore

logger = logging.getLogger(__name__)

AGING_BUCKETS = ("current", "1-30", "31-60", "61-90", "90+")


class ProfitAndLoss(BaseModel):
    revenue: float
    expenses: float
    net_profit: float
    expenses_by_category: Dict[str, float]


class DashboardStats(BaseModel):
    received_revenue: float
    payment_count: int
    outstanding: float
    open_invoices: int
    projected_sales: float
    active_orders: int
    expenses: float
    expense_count: int


def _aging_bucket(days_past_due: int) -> str:
    if days_past_due <= 0:
        return "current"
    if days_past_due <= 30:
        return "1-30"
    if days_past_due <= 60:
        return "31-60"
    if days_past_due <= 90:
        return "61-90"
    return "90+"


def _csv_text(rows: Sequence[Sequence[object]]) -> str:
    buf = io.StringIO()
    csv.writer(buf, lineterminator="\n").writerows(rows)
    return buf.getvalue()


class ReportService:
    def __init__(self, store: Optional[StateStore] = None):
        self.store = store or StateStore()

    # ----------- summaries -----------
    def profit_and_loss(self) -> ProfitAndLoss:
        """Cash basis: recorded payments against logged expenses."""
        s = self.store.state
        revenue = sum(p.amount for p in s.payments)
        expenses = sum(e.amount for e in s.expenses)
        by_cat: Dict[str, float] = {}
        for e in s.expenses:
            by_cat[e.category] = by_cat.get(e.category, 0.0) + e.amount
        return ProfitAndLoss(revenue=revenue, expenses=expenses, net_profit=revenue - expenses,
                             expenses_by_category=by_cat)

    def dashboard(self) -> DashboardStats:
        s = self.store.state
        balances = [invoice_balance(inv, s.payments) for inv in s.invoices]
        active = [o for o in s.orders if o.status != "Completed"]
        received = sum(p.amount for p in s.payments) + sum(debit_lines_total(inv.items) for inv in s.invoices)
        return DashboardStats(
            received_revenue=received,
            payment_count=len(s.payments),
            outstanding=sum(balances),
            open_invoices=sum(1 for b in balances if b > 0),
            projected_sales=sum(document_totals(o).total for o in active),
            active_orders=len(active),
            expenses=sum(e.amount for e in s.expenses),
            expense_count=len(s.expenses),
        )

    def aging(self, today: Optional[date] = None) -> Dict[str, float]:
        """Outstanding balances grouped by days past the due date."""
        today = today or date.today()
        s = self.store.state
        out = {b: 0.0 for b in AGING_BUCKETS}
        for inv in s.invoices:
            balance = invoice_balance(inv, s.payments)
            if balance <= 0:
                continue
            days = (today - inv.due).days if inv.due else 0
            out[_aging_bucket(days)] += balance
        return out

    # ----------- CSV -----------
    def invoice_rows(self) -> List[List[str]]:
        s = self.store.state
        rows = [["ID", "Date", "Customer", "Total", "Balance"]]
        for inv in s.invoices:
            customer = s.customer_for(inv)
            rows.append([
                inv.id,
                inv.created.isoformat() if inv.created else "",
                customer.name if customer else "Manual",
                f"{document_totals(inv).total:.2f}",
                f"{invoice_balance(inv, s.payments):.2f}",
            ])
        return rows

    def payment_rows(self) -> List[List[str]]:
        rows = [["ID", "Invoice ID", "Date", "Method", "Amount", "Note"]]
        for p in self.store.state.payments:
            rows.append([p.id, p.invoice_id, p.date.isoformat() if p.date else "", p.method,
                         f"{p.amount:.2f}", p.note or ""])
        return rows

    def expense_rows(self) -> List[List[str]]:
        rows = [["ID", "Date", "Vendor", "Category", "Amount", "Note"]]
        for e in self.store.state.expenses:
            rows.append([e.id, e.date.isoformat() if e.date else "", e.vendor, e.category,
                         f"{e.amount:.2f}", e.note or ""])
        return rows

    def export_csv(self, kind: str, out_dir: Optional[str | Path] = None) -> Path:
        """Writes glassworks_<kind>.csv for kind in invoices/payments/expenses."""
        builders = {"invoices": self.invoice_rows, "payments": self.payment_rows, "expenses": self.expense_rows}
        if kind not in builders:
            raise ValueError(f"unknown export {kind!r}, expected one of {sorted(builders)}")
        target = Path(out_dir) if out_dir else self.store.config.exports_path / "reports"
        target.mkdir(parents=True, exist_ok=True)
        path = target / f"glassworks_{kind}.csv"
        path.write_text(_csv_text(builders[kind]()), encoding="utf-8")
        logger.info("Exported %s to %s", kind, path)
        return path
