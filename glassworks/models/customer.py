from __future__ import annotations
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from .common import Record, gen_id


class Customer(Record):
    id: str = Field(default_factory=gen_id)
    name: str
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    @field_validator("email", "phone", "address", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v
