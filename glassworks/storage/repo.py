from __future__ import annotations

import glob
import json
import logging
import os
import shutil
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


def _json_default(o: Any) -> Any:
    if isinstance(o, (date, datetime)):
        return o.isoformat()
    raise TypeError(f"Object of type {o.__class__.__name__} is not JSON serializable")


def dumps(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2, default=_json_default)


class JsonStore:
    """
    Single JSON document on disk (the whole application state).
    - Timestamped backup rotation (backup_enabled, backup_keep)
    - Skips the write when content has not changed
    - Corrupt files are copied aside and read as empty
    """

    def __init__(
        self,
        filepath: Union[str, Path],
        *,
        backup_enabled: bool = True,
        backup_keep: int = 5,
    ) -> None:
        self.filepath = Path(filepath)
        self._lock = threading.Lock()
        self.backup_enabled = backup_enabled
        self.backup_keep = max(0, int(backup_keep))
        self.filepath.parent.mkdir(parents=True, exist_ok=True)

    # ---------------- read ---------------- #

    def read(self) -> Optional[Any]:
        try:
            with self.filepath.open("r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except json.JSONDecodeError:
            backup = self.filepath.with_suffix(".corrupt.json")
            logger.warning("Corrupt state file %s, copied to %s", self.filepath, backup)
            try:
                shutil.copy2(self.filepath, backup)
            except OSError as e:
                logger.warning("Could not keep corrupt copy: %s", e)
            return None

    # ---------------- write ---------------- #

    def backups(self) -> list[Path]:
        pattern = str(self.filepath.with_suffix(".*.bak.json"))
        return [Path(p) for p in sorted(glob.glob(pattern))]

    def _rotate_backups(self) -> None:
        if not self.backup_enabled or self.backup_keep <= 0:
            return
        files = self.backups()
        # keep the newest
        for old in files[: max(0, len(files) - self.backup_keep)]:
            try:
                old.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Could not remove old backup %s: %s", old, e)

    def _backup_current(self) -> None:
        ts = datetime.now().strftime("%Y%m%d-%H%M%S-%f")
        backup = self.filepath.with_suffix(f".{ts}.bak.json")
        try:
            shutil.copy2(self.filepath, backup)
        except OSError as e:
            logger.warning("Backup of %s failed: %s", self.filepath, e)
            return
        self._rotate_backups()

    def write(self, data: Any) -> bool:
        """Persist ``data``; returns False when the file already held it."""
        new_dump = dumps(data)
        with self._lock:
            if self.filepath.exists():
                try:
                    if self.filepath.read_text(encoding="utf-8") == new_dump:
                        return False
                except OSError as e:
                    logger.warning("Could not compare with %s: %s", self.filepath, e)
                if self.backup_enabled:
                    self._backup_current()

            tmp = self.filepath.with_suffix(".tmp")
            with tmp.open("w", encoding="utf-8") as f:
                f.write(new_dump)
            os.replace(tmp, self.filepath)
            return True
