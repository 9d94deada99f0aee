from __future__ import annotations
import datetime as dt
import logging
from collections import defaultdict
from typing import Dict, List, Optional

from glassworks.models.accounting import Expense
from glassworks.models.common import to_number
from glassworks.models.state import AppState
from glassworks.storage.state import StateStore

logger = logging.getLogger(__name__)


class ExpenseService:
    def __init__(self, store: Optional[StateStore] = None):
        self.store = store or StateStore()

    def list_expenses(self) -> List[Expense]:
        return self.store.state.expenses

    def total(self) -> float:
        return sum(e.amount for e in self.list_expenses())

    def by_category(self) -> Dict[str, float]:
        out: Dict[str, float] = defaultdict(float)
        for e in self.list_expenses():
            out[e.category] += e.amount
        return dict(out)

    def log_expense(
        self,
        vendor: str,
        amount: float,
        category: str = "Supplies",
        date: Optional[dt.date] = None,
        note: str = "",
    ) -> Expense:
        value = to_number(amount)
        if not value or not (vendor or "").strip():
            raise ValueError("an expense needs a vendor and an amount")
        expense = Expense(vendor=vendor.strip(), amount=value, category=category or "Misc", note=note or "")
        if date:
            expense.date = date

        def _log(s: AppState) -> AppState:
            s.expenses.append(expense)
            return s

        self.store.update(_log)
        logger.info("Expense logged: %s %.2f (%s)", expense.vendor, expense.amount, expense.category)
        return expense

    def delete_expense(self, expense_id: str) -> bool:
        expense_id = str(expense_id)
        if not any(e.id == expense_id for e in self.list_expenses()):
            return False

        def _delete(s: AppState) -> AppState:
            s.expenses = [e for e in s.expenses if e.id != expense_id]
            return s

        self.store.update(_delete, allow_undo=True)
        logger.info("Expense %s removed", expense_id)
        return True
