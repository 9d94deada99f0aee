from __future__ import annotations

import json
import logging
import os
import shutil
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).resolve().parents[1]
DEFAULT_DATA_DIR = ROOT_DIR / "data"
STATE_FILE = "glassworks-data-v4.json"
SETTINGS_FILE = "settings.json"
DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"


class AppConfig(BaseModel):
    data_dir: Path = DEFAULT_DATA_DIR
    state_file: str = STATE_FILE
    backup_keep: int = Field(default=5, ge=0)
    undo_depth: int = Field(default=5, ge=1)
    wkhtmltopdf_path: Optional[str] = None
    exports_dir: Optional[Path] = None
    gemini_api_key: Optional[str] = Field(default=None, repr=False)
    gemini_model: str = DEFAULT_GEMINI_MODEL

    @property
    def state_path(self) -> Path:
        return self.data_dir / self.state_file

    @property
    def exports_path(self) -> Path:
        return self.exports_dir or (self.data_dir.parent / "exports")


# ---------- Utils JSON ----------
def _load_json(path: os.PathLike | str) -> Any:
    p = Path(path)
    if not p.exists():
        return None
    try:
        return json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Ignoring unreadable settings file %s: %s", p, e)
        return None


def _clean_path(p: str) -> str:
    """Fixes 'C\\:\\Program Files\\...' -> 'C:\\Program Files\\...' and normalises."""
    if not p:
        return ""
    p = p.strip().strip('"').strip("'")
    p = p.replace("\\:", ":")
    return os.path.normpath(p)


def load_config(data_dir: Optional[os.PathLike | str] = None) -> AppConfig:
    """
    Builds the configuration:
    - data directory: argument, then GLASSWORKS_DATA_DIR, then ./data
    - data/settings.json -> "storage" {state_file, backup_keep, undo_depth, exports_dir}
      and "pdf" {wkhtmltopdf_path}
    - "ai" {model_name, api_key}; GEMINI_API_KEY (or API_KEY) overrides the key
    """
    base = Path(data_dir or os.environ.get("GLASSWORKS_DATA_DIR") or DEFAULT_DATA_DIR)
    s = _load_json(base / SETTINGS_FILE) or {}
    if not isinstance(s, dict):
        s = {}

    storage = s.get("storage") if isinstance(s.get("storage"), dict) else {}
    pdf_conf = s.get("pdf") if isinstance(s.get("pdf"), dict) else {}
    ai_conf = s.get("ai") if isinstance(s.get("ai"), dict) else {}

    values: dict[str, Any] = {k: v for k, v in storage.items() if k in AppConfig.model_fields}
    values["data_dir"] = base
    wk = pdf_conf.get("wkhtmltopdf_path") or s.get("wkhtmltopdf_path")
    if wk:
        values["wkhtmltopdf_path"] = _clean_path(wk)
    key = os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY") or ai_conf.get("api_key")
    if key:
        values["gemini_api_key"] = key
    if ai_conf.get("model_name"):
        values["gemini_model"] = ai_conf["model_name"]
    try:
        return AppConfig(**values)
    except ValidationError as e:
        logger.warning("Invalid storage settings in %s, using defaults: %s", base / SETTINGS_FILE, e)
        return AppConfig(data_dir=base)


def find_wkhtmltopdf(config: Optional[AppConfig] = None) -> Optional[str]:
    """
    Locates wkhtmltopdf:
    - env vars (WKHTMLTOPDF, WKHTMLTOPDF_CMD)
    - settings.json -> pdf.wkhtmltopdf_path
    - usual Windows install paths
    - PATH
    """
    for env_key in ("WKHTMLTOPDF", "WKHTMLTOPDF_CMD"):
        val = os.environ.get(env_key)
        if val:
            path = _clean_path(val)
            if Path(path).is_file():
                return path

    if config and config.wkhtmltopdf_path and Path(config.wkhtmltopdf_path).is_file():
        return config.wkhtmltopdf_path

    for c in (
        r"C:\Program Files\wkhtmltopdf\bin\wkhtmltopdf.exe",
        r"C:\Program Files (x86)\wkhtmltopdf\bin\wkhtmltopdf.exe",
    ):
        if Path(c).is_file():
            return c

    found = shutil.which("wkhtmltopdf")
    return _clean_path(found) if found else None
