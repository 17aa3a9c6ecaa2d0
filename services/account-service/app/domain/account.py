from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class Account:
    """Customer account record as stored in the ``account`` table."""

    id: int
    first_name: str
    last_name: str
    email_address: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
