#!/usr/bin/env python3
"""Write a small sample data set through the stores.

Useful for trying the dashboard without entering data by hand.  Refuses
to touch a data directory that already holds transactions unless
``--force`` is given.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Dict, List

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from expense_tracker import aggregation as agg
from expense_tracker.config import DATA_DIR
from expense_tracker.storage import JsonFileBackend
from expense_tracker.store import BudgetStore, TransactionStore

SAMPLE_TRANSACTIONS: List[Dict[str, object]] = [
    {'date': '2024-01-03', 'category': 'Housing', 'description': 'January rent', 'amount': 1200},
    {'date': '2024-01-10', 'category': 'Food', 'description': 'Groceries', 'amount': 50},
    {'date': '2024-01-15', 'category': 'Transportation', 'description': 'Gas', 'amount': 25},
    {'date': '2024-01-20', 'category': 'Utilities', 'description': 'Electricity', 'amount': 84.35},
    {'date': '2024-02-01', 'category': 'Food', 'description': 'Dinner', 'amount': 100},
    {'date': '2024-02-03', 'category': 'Housing', 'description': 'February rent', 'amount': 1200},
    {'date': '2024-02-09', 'category': 'Entertainment', 'description': 'Concert tickets', 'amount': 65},
    {'date': '2024-02-11', 'category': 'Entertainment', 'description': 'Ticket refund', 'amount': -20},
    {'date': '2024-02-14', 'category': 'Gifts', 'description': 'Flowers', 'amount': 35.5},
]

SAMPLE_BUDGETS: Dict[str, float] = {
    'Housing': 1200,
    'Food': 120,
    'Entertainment': 50,
    'Utilities': 100,
}


async def seed(directory: Path, force: bool = False) -> int:
    backend = JsonFileBackend(directory)
    transactions = TransactionStore(backend)
    budgets = BudgetStore(backend)

    existing = await transactions.list_all()
    if existing and not force:
        print(f"{directory} already holds {len(existing)} transactions; use --force to add the samples anyway.")
        return 1

    for candidate in SAMPLE_TRANSACTIONS:
        await transactions.create(candidate)
    for category, amount in SAMPLE_BUDGETS.items():
        await budgets.upsert(category, amount)

    stored = await transactions.list_all()
    print(f"Wrote {len(stored)} transactions and {len(SAMPLE_BUDGETS)} budgets to {directory}")
    print(f"Total expenses: {agg.total_expense(stored):,.2f}")
    return 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Seed the expense tracker with sample data.')
    parser.add_argument('--data-dir', type=Path, default=DATA_DIR, help='Directory holding the JSON documents')
    parser.add_argument('--force', action='store_true', help='Add samples even if transactions already exist')
    parser.add_argument('--verbose', action='store_true', help='Log storage activity')
    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    sys.exit(asyncio.run(seed(args.data_dir, force=args.force)))
