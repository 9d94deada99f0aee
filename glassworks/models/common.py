from __future__ import annotations
from datetime import date, datetime
from typing import Any, Optional
import math
import uuid

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def gen_id() -> str:
    return str(uuid.uuid4())


def to_number(value: Any) -> float:
    """Lenient numeric coercion: None, '', garbage, NaN and inf all become 0."""
    if value is None or value == "" or isinstance(value, bool):
        return 0.0
    try:
        n = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return 0.0
    return n if math.isfinite(n) else 0.0


def parse_date(value: Any) -> Optional[date]:
    """ISO first, then the US short format the old browser exports used (1/31/2025)."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    try:
        return datetime.fromisoformat(s).date()
    except ValueError:
        pass
    for fmt in ("%m/%d/%Y", "%Y/%m/%d"):
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


class Record(BaseModel):
    # camelCase on disk (legacy backups), snake_case in code
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )
