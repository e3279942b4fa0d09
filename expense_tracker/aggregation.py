"""Chart-ready summaries derived from the transaction list.

This module contains pure functions: they read a snapshot of
transactions (and budgets) and never mutate it, so identical input
always yields identical output.  Monetary results are rounded to two
decimal places.  Amounts follow the tracker's sign convention: positive
values are spending, negative values are refunds.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

import pandas as pd

from .config import RECENT_LIMIT
from .models import Budget, Transaction

FRAME_COLUMNS = ['id', 'date', 'category', 'description', 'amount']


def _round(value: float) -> float:
    return round(value, 2) + 0.0


def _amounts_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    # String keys; pandas timestamps cannot hold every calendar date
    rows = [
        {'category': t.category, 'month': t.month, 'day': t.date.isoformat(), 'amount': t.amount}
        for t in transactions
    ]
    return pd.DataFrame(rows, columns=['category', 'month', 'day', 'amount'])


def _totals_by(df: pd.DataFrame, key: str, sort: bool) -> Dict[str, float]:
    """Sum the amount column per ``key`` and round each group to cents."""
    if df.empty:
        return {}
    grouped = df.groupby(key, sort=sort)['amount'].sum()
    return {str(group): _round(float(total)) for group, total in grouped.items()}


# ---------------------------------------------------------------------------
# Totals
# ---------------------------------------------------------------------------


def total_expense(transactions: Iterable[Transaction]) -> float:
    """Sum of all transaction amounts.

    Computed from the rounded category totals so the figure always
    matches the category breakdown shown beside it.
    """
    return _round(sum(by_category(transactions).values()))


def by_category(transactions: Iterable[Transaction]) -> Dict[str, float]:
    """Totals per observed category, in order of first occurrence."""
    return _totals_by(_amounts_frame(transactions), 'category', sort=False)


def by_month(transactions: Iterable[Transaction]) -> Dict[str, float]:
    """Totals per ``YYYY-MM`` month, ordered chronologically."""
    return _totals_by(_amounts_frame(transactions), 'month', sort=True)


def by_day(transactions: Iterable[Transaction]) -> Dict[str, float]:
    """Totals per ``YYYY-MM-DD`` day, ordered chronologically."""
    return _totals_by(_amounts_frame(transactions), 'day', sort=True)


# ---------------------------------------------------------------------------
# Recent transactions
# ---------------------------------------------------------------------------


def sort_recent_first(transactions: Iterable[Transaction]) -> List[Transaction]:
    """Most recent date first; equal dates keep their collection order."""
    return sorted(transactions, key=lambda t: t.date, reverse=True)


def recent(transactions: Iterable[Transaction], n: int = RECENT_LIMIT) -> List[Transaction]:
    """The ``n`` transactions with the most recent dates."""
    if n <= 0:
        return []
    return sort_recent_first(transactions)[:n]


# ---------------------------------------------------------------------------
# Budget vs actual
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ComparisonRow:
    category: str
    budgeted: float
    actual: float

    @property
    def remaining(self) -> float:
        return _round(self.budgeted - self.actual)

    @property
    def over_budget(self) -> bool:
        return self.budgeted > 0 and self.actual > self.budgeted

    def to_dict(self) -> Dict[str, float]:
        return {'category': self.category, 'budgeted': self.budgeted, 'actual': self.actual}


def budget_comparison(transactions: Iterable[Transaction], budgets: Iterable[Budget]) -> List[ComparisonRow]:
    """One row per category that has a budget or any transactions.

    Budgeted categories come first in budget order, followed by
    categories that only appear in transactions.
    """
    budgeted: Dict[str, float] = {}
    for budget in budgets:
        budgeted[budget.category] = budget.amount

    actuals = by_category(transactions)

    categories: List[str] = list(budgeted)
    categories.extend(c for c in actuals if c not in budgeted)

    return [
        ComparisonRow(
            category=category,
            budgeted=_round(budgeted.get(category, 0.0)),
            actual=actuals.get(category, 0.0),
        )
        for category in categories
    ]


# ---------------------------------------------------------------------------
# Tabular view
# ---------------------------------------------------------------------------


def transactions_frame(transactions: Sequence[Transaction]) -> pd.DataFrame:
    """Transactions as a DataFrame for table display.

    The ``date`` column holds pandas timestamps; an empty input still
    yields the expected columns.
    """
    rows = [{column: getattr(t, column) for column in FRAME_COLUMNS} for t in transactions]
    df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    df['date'] = pd.to_datetime(df['date'])
    df['amount'] = df['amount'].astype(float)
    return df
