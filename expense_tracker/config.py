"""Configuration management for the expense tracker.

This module centralizes all configuration values including paths,
storage keys, defaults, and environment variable overrides.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List

# Base project root - assumes this file is in expense_tracker/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directory holding one JSON document per collection
DATA_DIR = Path(os.getenv("EXPENSE_TRACKER_DATA_DIR", _PROJECT_ROOT / "data"))

# Storage keys (one durable document per collection)
TRANSACTIONS_KEY = "transactions"
BUDGETS_KEY = "budgets"

# Browser storage quota of the original tracker
MAX_DOCUMENT_BYTES = 5 * 1024 * 1024

# Raise instead of falling back to an empty collection on unreadable documents
STRICT_LOAD = os.getenv("EXPENSE_TRACKER_STRICT_LOAD", "").lower() in {"1", "true", "yes"}

# Optional simulated latency (seconds) for every store operation
STORE_LATENCY = float(os.getenv("EXPENSE_TRACKER_LATENCY", "0") or 0)

RECENT_LIMIT = 5

CATEGORIES: List[str] = [
    'Food',
    'Housing',
    'Transportation',
    'Entertainment',
    'Utilities',
    'Healthcare',
    'Clothing',
    'Savings',
    'Other',
]


def ensure_data_directories() -> None:
    """Create the data directory if it doesn't exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
