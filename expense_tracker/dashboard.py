"""Streamlit app for the expense tracker.

This module defines the user interface on top of the stores and the
aggregation functions.  Every interaction that changes data goes
through a store mutation; the charts are recomputed from the store's
current list on each rerun, so the views never drift from the data.

To run the dashboard from the command line::

    streamlit run expense_tracker/dashboard.py

or use ``run_dashboard.py`` in the project root.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from datetime import date
from typing import Any, Coroutine, Dict, Optional, Tuple, TypeVar

import streamlit as st

# Conditional imports to support execution both as part of a package and
# directly via ``streamlit run expense_tracker/dashboard.py``.
if __package__:
    from . import aggregation as agg
    from . import visualization as viz
    from .config import CATEGORIES, DATA_DIR, RECENT_LIMIT
    from .errors import NotFoundError, PersistenceError, ValidationError
    from .formatting import describe_transaction, escape_dollar_for_markdown, format_currency
    from .models import Budget, Transaction
    from .storage import JsonFileBackend
    from .store import BudgetStore, TransactionStore
else:
    CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
    PARENT_DIR = os.path.dirname(CURRENT_DIR)
    if PARENT_DIR not in sys.path:
        sys.path.insert(0, PARENT_DIR)
    from expense_tracker import aggregation as agg  # type: ignore
    from expense_tracker import visualization as viz  # type: ignore
    from expense_tracker.config import CATEGORIES, DATA_DIR, RECENT_LIMIT  # type: ignore
    from expense_tracker.errors import NotFoundError, PersistenceError, ValidationError  # type: ignore
    from expense_tracker.formatting import describe_transaction, escape_dollar_for_markdown, format_currency  # type: ignore
    from expense_tracker.models import Budget, Transaction  # type: ignore
    from expense_tracker.storage import JsonFileBackend  # type: ignore
    from expense_tracker.store import BudgetStore, TransactionStore  # type: ignore

logger = logging.getLogger(__name__)

T = TypeVar('T')

CUSTOM_CATEGORY = "Custom…"
NEW_TRANSACTION = "➕ New transaction"
NEW_TRANSACTION_KEY = ""


def _run(coro: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(coro)


# ---------------------------------------------------------------------------
# Session state helpers
# ---------------------------------------------------------------------------


def get_stores() -> Tuple[TransactionStore, BudgetStore]:
    """Create the stores once per session and reuse them across reruns."""
    state = st.session_state
    if 'transaction_store' not in state or 'budget_store' not in state:
        backend = JsonFileBackend()
        state['transaction_store'] = TransactionStore(backend)
        state['budget_store'] = BudgetStore(backend)
    return state['transaction_store'], state['budget_store']


def _report_persistence_error(exc: PersistenceError) -> None:
    """Keep the failure in the session and redraw so the banner shows it now."""
    logger.error("Persistence failure: %s", exc)
    st.session_state['persistence_error'] = str(exc)
    _rerun()


def submit_transaction(
    store: TransactionStore,
    values: Dict[str, Any],
    editing_id: Optional[str] = None,
) -> Tuple[Optional[Transaction], Dict[str, str]]:
    """Create or update a transaction from form values.

    Returns the stored record (or ``None``) and a mapping of field errors.
    Persistence failures are recorded in the session and trigger a rerun
    so the error banner appears at once; the form keeps its values so
    the user can retry.
    """
    try:
        if editing_id:
            record = _run(store.update(editing_id, values))
        else:
            record = _run(store.create(values))
    except ValidationError as exc:
        return None, exc.errors
    except NotFoundError as exc:
        return None, {'id': str(exc)}
    except PersistenceError as exc:
        _report_persistence_error(exc)
        return None, {}
    st.session_state.pop('persistence_error', None)
    return record, {}


def submit_budget(store: BudgetStore, category: str, amount: Any) -> Tuple[Optional[Budget], Dict[str, str]]:
    """Upsert a budget from form values; same contract as ``submit_transaction``."""
    try:
        budget = _run(store.upsert(category, amount))
    except ValidationError as exc:
        return None, exc.errors
    except PersistenceError as exc:
        _report_persistence_error(exc)
        return None, {}
    st.session_state.pop('persistence_error', None)
    return budget, {}


def remove_transaction(store: TransactionStore, transaction_id: str) -> bool:
    try:
        _run(store.delete(transaction_id))
    except PersistenceError as exc:
        _report_persistence_error(exc)
        return False
    return True


def remove_budget(store: BudgetStore, category: str) -> bool:
    try:
        _run(store.delete(category))
    except PersistenceError as exc:
        _report_persistence_error(exc)
        return False
    return True


def _rerun() -> None:
    if hasattr(st, 'rerun'):
        st.rerun()
    else:  # pragma: no cover - older Streamlit versions
        st.experimental_rerun()


def _show_field_errors(errors: Dict[str, str]) -> None:
    for field, message in errors.items():
        st.error(f"{field.capitalize()} {message}.")


def _show_persistence_error() -> None:
    message = st.session_state.get('persistence_error')
    if not message:
        return
    st.error(f"Could not save your changes: {message}. Your input was kept; try again.")
    if st.button("Dismiss", key="dismiss_persistence_error"):
        st.session_state.pop('persistence_error', None)
        _rerun()


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


def render_overview(transactions, budgets) -> None:
    total = agg.total_expense(transactions)
    categories = agg.by_category(transactions)
    comparison = agg.budget_comparison(transactions, budgets)
    over = [row.category for row in comparison if row.over_budget]

    col1, col2, col3 = st.columns(3)
    col1.metric("Total expenses", format_currency(total))
    col2.metric("Categories", len(categories))
    col3.metric("Over budget", len(over))
    if over:
        st.warning("Over budget: " + ", ".join(over))

    left, right = st.columns(2)
    with left:
        st.plotly_chart(viz.create_monthly_bar_chart(agg.by_month(transactions)), use_container_width=True)
    with right:
        st.plotly_chart(viz.create_category_pie_chart(categories), use_container_width=True)
    st.plotly_chart(viz.create_budget_comparison_chart(comparison), use_container_width=True)
    st.plotly_chart(viz.create_daily_line_chart(agg.by_day(transactions)), use_container_width=True)

    st.subheader("Recent transactions")
    latest = agg.recent(transactions, RECENT_LIMIT)
    if not latest:
        st.info("No transactions yet. Add one on the Transactions tab.")
    for transaction in latest:
        st.markdown(
            f"**{transaction.description}** · {transaction.category} · "
            f"{transaction.date.isoformat()} · {escape_dollar_for_markdown(transaction.amount)}"
        )


def transaction_options(transactions) -> Dict[str, str]:
    """Selectbox labels keyed by transaction id, most recent first.

    Keying by id keeps the selection stable when an edit changes the label.
    """
    options = {NEW_TRANSACTION_KEY: NEW_TRANSACTION}
    options.update({t.id: describe_transaction(t) for t in agg.sort_recent_first(transactions)})
    return options


def render_transactions(store: TransactionStore, transactions) -> None:
    labels = transaction_options(transactions)
    by_id = {t.id: t for t in transactions}
    choice = st.selectbox("Transaction", options=list(labels), format_func=labels.get, key="tx_choice")
    editing: Optional[Transaction] = by_id.get(choice)

    category_options = list(CATEGORIES) + [CUSTOM_CATEGORY]
    if editing is not None and editing.category in CATEGORIES:
        category_index = CATEGORIES.index(editing.category)
    elif editing is not None:
        category_index = len(CATEGORIES)
    else:
        category_index = 0

    form_key = editing.id if editing else "new"
    with st.form(f"transaction_form_{form_key}", clear_on_submit=False):
        tx_date = st.date_input(
            "Date",
            value=editing.date if editing else date.today(),
        )
        category = st.selectbox("Category", options=category_options, index=category_index)
        custom_category = st.text_input(
            "Custom category",
            value=editing.category if editing is not None and editing.category not in CATEGORIES else "",
        )
        description = st.text_input("Description", value=editing.description if editing else "")
        amount = st.text_input(
            "Amount (negative for refunds)",
            value=f"{editing.amount:.2f}" if editing else "",
        )
        submitted = st.form_submit_button("Update transaction" if editing else "Add transaction")

    if submitted:
        values = {
            'date': tx_date,
            'category': custom_category if category == CUSTOM_CATEGORY else category,
            'description': description,
            'amount': amount,
        }
        record, errors = submit_transaction(store, values, editing.id if editing else None)
        if errors:
            _show_field_errors(errors)
        elif record is not None:
            st.success(f"Saved {record.description}.")
            _rerun()

    if editing is not None and st.button("Delete transaction", key=f"delete_{editing.id}"):
        if remove_transaction(store, editing.id):
            _rerun()

    st.subheader("All transactions")
    frame = agg.transactions_frame(agg.sort_recent_first(transactions))
    st.dataframe(frame.drop(columns=['id']), use_container_width=True)


def render_budgets(store: BudgetStore, budgets, transactions) -> None:
    with st.form("budget_form", clear_on_submit=False):
        category = st.selectbox("Category", options=CATEGORIES)
        custom_category = st.text_input("Custom category (overrides the selection)")
        amount = st.text_input("Monthly budget")
        submitted = st.form_submit_button("Save budget")

    if submitted:
        budget, errors = submit_budget(store, custom_category or category, amount)
        if errors:
            _show_field_errors(errors)
        elif budget is not None:
            st.success(f"Budget for {budget.category} set to {format_currency(budget.amount)}.")
            _rerun()

    if not budgets:
        st.info("No budgets yet.")
        return

    actuals = agg.by_category(transactions)
    for budget in budgets:
        col1, col2, col3 = st.columns([3, 3, 1])
        col1.write(f"**{budget.category}**")
        col2.write(f"{format_currency(actuals.get(budget.category, 0.0))} of {format_currency(budget.amount)}")
        if col3.button("Delete", key=f"delete_budget_{budget.category}"):
            if remove_budget(store, budget.category):
                _rerun()


def main() -> None:
    """Entry point for the Streamlit app."""
    st.set_page_config(
        page_title="Expense Tracker",
        layout="wide",
        initial_sidebar_state="collapsed",
    )
    st.title("Expense Tracker")
    st.caption(f"Data directory: {DATA_DIR}")

    transaction_store, budget_store = get_stores()
    _show_persistence_error()

    transactions = _run(transaction_store.list_all())
    budgets = _run(budget_store.list_all())

    overview_tab, transactions_tab, budgets_tab = st.tabs(["Overview", "Transactions", "Budgets"])
    with overview_tab:
        render_overview(transactions, budgets)
    with transactions_tab:
        render_transactions(transaction_store, transactions)
    with budgets_tab:
        render_budgets(budget_store, budgets, transactions)


if __name__ == "__main__":  # pragma: no cover
    main()
