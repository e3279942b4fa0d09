"""Top‑level package for the Expense Tracker.

The primary modules are:

* ``store`` – transaction and budget stores with pluggable persistence
* ``aggregation`` – pure functions that summarise transactions for charts
* ``visualization`` – functions that generate Plotly figures
* ``dashboard`` – a Streamlit app that ties everything together

To run the dashboard from the command line you can execute:

```bash
streamlit run expense_tracker/dashboard.py
```
"""

from .errors import ExpenseTrackerError, NotFoundError, PersistenceError, ValidationError
from .models import Budget, Transaction
from .storage import InMemoryBackend, JsonFileBackend, StorageBackend
from .store import BudgetStore, TransactionStore
from . import aggregation  # noqa: F401  # re-exported for convenience

__all__ = [
    "aggregation",
    "Budget",
    "BudgetStore",
    "ExpenseTrackerError",
    "InMemoryBackend",
    "JsonFileBackend",
    "NotFoundError",
    "PersistenceError",
    "StorageBackend",
    "Transaction",
    "TransactionStore",
    "ValidationError",
]
