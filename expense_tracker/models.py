"""Record types for transactions and budgets."""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Transaction:
    """A single dated, categorized expense.

    Positive amounts are money spent; negative amounts are refunds that
    reduce spend.  ``created_at``/``updated_at`` are maintained by the
    store and are not user editable.
    """

    id: str
    date: date
    category: str
    description: str
    amount: float
    created_at: datetime
    updated_at: datetime

    @property
    def month(self) -> str:
        return self.date.strftime('%Y-%m')

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Budget:
    """Spending ceiling for one category."""

    category: str
    amount: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
