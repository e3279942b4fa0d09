"""Input validation for transaction and budget candidates.

Validation runs before any store mutation.  Every field is checked and
all problems are reported together in a single :class:`ValidationError`
so the dashboard can flag each input without discarding the others.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Dict, Mapping

from .errors import ValidationError
from .models import Budget

TRANSACTION_FIELDS = ('date', 'category', 'description', 'amount')


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_amount(value: Any) -> float:
    """Parse a user supplied amount into a finite float rounded to cents.

    Accepts ints, floats and numeric strings (``"12.50"``).  Booleans,
    NaN and infinities are rejected.

    Raises:
        ValueError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValueError("must be a number")
    if isinstance(value, str):
        value = value.strip().replace(',', '')
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValueError("must be a number") from None
    if not math.isfinite(amount):
        raise ValueError("must be a finite number")
    return round(amount, 2) + 0.0


def parse_date(value: Any) -> date:
    """Parse a calendar date from a date, datetime or ISO-8601 string.

    Raises:
        ValueError: If the value cannot be interpreted as a date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            raise ValueError("must be an ISO date (YYYY-MM-DD)") from None
    raise ValueError("must be a date")


def _clean_text(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("must be text")
    return value.strip()


_PARSERS = {
    'date': parse_date,
    'category': _clean_text,
    'description': _clean_text,
    'amount': parse_amount,
}


def validate_transaction(candidate: Mapping[str, Any], partial: bool = False) -> Dict[str, Any]:
    """Validate and normalize transaction fields.

    Args:
        candidate: Mapping of field name to raw value
        partial: When True only the supplied fields are checked (updates);
                 otherwise all of date, category, description and amount
                 are required.

    Returns:
        Dictionary of normalized field values

    Raises:
        ValidationError: Listing every missing, unknown or invalid field
    """
    errors: Dict[str, str] = {}
    cleaned: Dict[str, Any] = {}

    for key in candidate:
        if key not in TRANSACTION_FIELDS:
            errors[key] = "is not an editable field"

    for field in TRANSACTION_FIELDS:
        if field not in candidate:
            if not partial:
                errors[field] = "is required"
            continue
        value = candidate[field]
        if _is_blank(value):
            errors[field] = "is required"
            continue
        try:
            cleaned[field] = _PARSERS[field](value)
        except ValueError as exc:
            errors[field] = str(exc)

    if errors:
        raise ValidationError(errors)
    return cleaned


def validate_budget(category: Any, amount: Any) -> Budget:
    """Validate a budget entry and return it normalized.

    Raises:
        ValidationError: If the category is empty or the amount is not a
                         strictly positive finite number
    """
    errors: Dict[str, str] = {}
    clean_category = ''
    clean_amount = 0.0

    if _is_blank(category):
        errors['category'] = "is required"
    elif not isinstance(category, str):
        errors['category'] = "must be text"
    else:
        clean_category = category.strip()

    if _is_blank(amount):
        errors['amount'] = "is required"
    else:
        try:
            clean_amount = parse_amount(amount)
        except ValueError as exc:
            errors['amount'] = str(exc)
        else:
            if clean_amount <= 0:
                errors['amount'] = "must be greater than zero"

    if errors:
        raise ValidationError(errors)
    return Budget(category=clean_category, amount=clean_amount)
