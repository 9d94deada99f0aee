from __future__ import annotations
import logging
from typing import Any, List, Optional

from glassworks.models.accounting import AccountCode, CodeType
from glassworks.models.state import AppState, Branding, DisplaySettings
from glassworks.storage.state import StateStore

logger = logging.getLogger(__name__)


class SettingsService:
    """Chart of accounts, print branding and display settings."""

    def __init__(self, store: Optional[StateStore] = None):
        self.store = store or StateStore()

    # ----------- account codes -----------
    def list_account_codes(self) -> List[AccountCode]:
        return self.store.state.account_codes

    def add_account_code(
        self,
        code: str,
        name: str,
        rate: Optional[float] = None,
        type: CodeType = "credit",
    ) -> AccountCode:
        code = str(code or "").strip()
        name = (name or "").strip()
        if not code or not name:
            raise ValueError("an account code needs a code and a name")
        entry = AccountCode(code=code, name=name, rate=rate or None, type=type)

        def _add(s: AppState) -> AppState:
            if any(c.code == code for c in s.account_codes):
                raise ValueError(f"account code {code} already exists")
            s.account_codes.append(entry)
            return s

        self.store.update(_add)
        logger.info("Accounting code %s added (%s)", code, entry.type)
        return entry

    def remove_account_code(self, code: str) -> bool:
        """Lines already booked on the code keep it; the ledger then shows the bare code."""
        code = str(code)
        if not any(c.code == code for c in self.list_account_codes()):
            return False

        def _remove(s: AppState) -> AppState:
            s.account_codes = [c for c in s.account_codes if c.code != code]
            return s

        self.store.update(_remove, allow_undo=True)
        logger.info("Accounting code %s removed", code)
        return True

    # ----------- branding / display -----------
    def update_branding(self, **changes: Any) -> Branding:
        unknown = set(changes) - set(Branding.model_fields)
        if unknown:
            raise ValueError(f"unknown branding fields: {sorted(unknown)}")

        def _brand(s: AppState) -> AppState:
            s.branding = s.branding.model_copy(update=changes)
            return s

        return self.store.update(_brand).branding

    def update_display(self, locale: Optional[str] = None, currency: Optional[str] = None) -> DisplaySettings:
        def _display(s: AppState) -> AppState:
            if locale:
                s.settings.locale = locale
            if currency:
                s.settings.currency = currency.upper()
            return s

        return self.store.update(_display).settings
