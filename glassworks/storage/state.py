"""
Application state store.

The whole book (customers, documents, payments, expenses, settings) is one
``AppState`` persisted as a single JSON file. Every mutation goes through
``StateStore.update`` with a reducer function; undoable updates push the
previous snapshot onto a short history.
"""
from __future__ import annotations

import json
import logging
import threading
from collections import deque
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Type

from pydantic import BaseModel, ValidationError
from pydantic.alias_generators import to_camel

from glassworks.config import AppConfig, load_config
from glassworks.models.accounting import AccountCode, Expense, Payment
from glassworks.models.customer import Customer
from glassworks.models.document import Invoice, SalesOrder
from glassworks.models.state import AppState
from glassworks.storage.repo import JsonStore, dumps

logger = logging.getLogger(__name__)

BACKUP_MAX_AGE = timedelta(days=7)

Updater = Callable[[AppState], AppState]

_COLLECTIONS: Dict[str, Type[BaseModel]] = {
    "customers": Customer,
    "invoices": Invoice,
    "orders": SalesOrder,
    "payments": Payment,
    "expenses": Expense,
    "account_codes": AccountCode,
}


class BackupError(ValueError):
    pass


def hydrate_state(raw: Dict[str, Any]) -> AppState:
    """Validates record by record: one broken invoice must not lose the whole book."""
    data = dict(raw)
    for field, model in _COLLECTIONS.items():
        alias = to_camel(field)
        rows = data.pop(field, None)
        rows = data.pop(alias, rows)
        if rows is None:
            continue
        good = []
        for row in rows if isinstance(rows, list) else []:
            try:
                good.append(model.model_validate(row))
            except ValidationError as e:
                logger.warning("Skipping invalid %s record: %s", field, e.errors()[0].get("msg"))
        data[alias] = good
    return AppState.model_validate(data)


def _naive_local(dt: datetime) -> datetime:
    return dt.astimezone().replace(tzinfo=None) if dt.tzinfo else dt


class StateStore:
    def __init__(self, config: Optional[AppConfig] = None, *, path: Optional[Path | str] = None) -> None:
        self.config = config or load_config()
        self._repo = JsonStore(path or self.config.state_path, backup_keep=self.config.backup_keep)
        self._lock = threading.RLock()
        self._history: deque[AppState] = deque(maxlen=self.config.undo_depth)
        self._state = self.load()

    # ----------- read -----------
    @property
    def state(self) -> AppState:
        """A copy; mutate through update()."""
        return self._state.model_copy(deep=True)

    @property
    def path(self) -> Path:
        return self._repo.filepath

    def load(self) -> AppState:
        raw = self._repo.read()
        if raw is None:
            return AppState()
        if not isinstance(raw, dict):
            logger.warning("State file %s does not hold an object, starting fresh", self.path)
            return AppState()
        try:
            return hydrate_state(raw)
        except ValidationError as e:
            logger.warning("Unusable state in %s, starting fresh: %s", self.path, e)
            return AppState()

    # ----------- write -----------
    def save(self) -> None:
        self._repo.write(self._state.model_dump(mode="json", by_alias=True))

    def update(self, updater: Updater, allow_undo: bool = False) -> AppState:
        with self._lock:
            previous = self._state
            new = updater(previous.model_copy(deep=True))
            if not isinstance(new, AppState):
                raise TypeError("state updater must return an AppState")
            # re-run validators on whatever the updater appended
            new = AppState.model_validate(new.model_dump())
            if allow_undo:
                self._history.append(previous)
            self._state = new
            self.save()
            return self.state

    # ----------- undo -----------
    @property
    def can_undo(self) -> bool:
        return bool(self._history)

    def undo(self) -> bool:
        with self._lock:
            if not self._history:
                return False
            self._state = self._history.pop()
            self.save()
            logger.info("Undo: restored previous state (%d left)", len(self._history))
            return True

    # ----------- backups -----------
    def export_backup(self, path: Path | str) -> Path:
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            out.write_text(dumps(self._state.model_dump(mode="json", by_alias=True)), encoding="utf-8")

            def _stamp(s: AppState) -> AppState:
                s.last_backup = datetime.now()
                return s

            self.update(_stamp)
        logger.info("Backup exported to %s", out)
        return out

    def import_backup(self, path: Path | str) -> AppState:
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise BackupError(f"Cannot read backup {path}: {e}") from e
        if not isinstance(data, dict):
            raise BackupError(f"Backup {path} is not a state object")

        # backup keys win over the current state whichever casing they use
        data = {to_camel(k) if "_" in k else k: v for k, v in data.items()}
        with self._lock:
            merged = {**self._state.model_dump(mode="json", by_alias=True), **data}
            try:
                restored = hydrate_state(merged)
            except ValidationError as e:
                raise BackupError(f"Backup {path} is invalid: {e}") from e
            state = self.update(lambda _: restored, allow_undo=True)
        logger.info("Backup restored from %s", path)
        return state

    def needs_backup(self, now: Optional[datetime] = None) -> bool:
        last = self._state.last_backup
        if last is None:
            return True
        now = _naive_local(now or datetime.now())
        return now - _naive_local(last) > BACKUP_MAX_AGE
