"""Formatting utilities for currency and record display."""

from __future__ import annotations

from typing import Union

from .models import Transaction


def format_currency(amount: Union[float, int], include_sign: bool = True) -> str:
    """Format a currency amount with proper formatting.

    Args:
        amount: The amount to format
        include_sign: Whether to include the dollar sign

    Returns:
        Formatted currency string (e.g., "$1,234.56", "-$12.00" or "1,234.56")

    Example:
        >>> format_currency(1234.56)
        '$1,234.56'
        >>> format_currency(-12, include_sign=False)
        '-12.00'
    """
    formatted = f"{abs(amount):,.2f}"
    prefix = "-" if amount < 0 else ""
    return f"{prefix}${formatted}" if include_sign else f"{prefix}{formatted}"


def escape_dollar_for_markdown(amount: float) -> str:
    """Format a dollar amount and escape the dollar sign for markdown rendering.

    Streamlit markdown treats ``$`` as a LaTeX math delimiter, so the sign
    is escaped to avoid unintended italics.

    Example:
        >>> escape_dollar_for_markdown(1234.56)
        '\\\\$1,234.56'
    """
    return format_currency(amount).replace("$", "\\$")


def describe_transaction(transaction: Transaction) -> str:
    """One-line label used in lists and selection boxes."""
    return (
        f"{transaction.date.isoformat()} · {transaction.category} · "
        f"{transaction.description} ({format_currency(transaction.amount)})"
    )
