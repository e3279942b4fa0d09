"""Unit tests for expense_tracker.validation."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from expense_tracker.errors import ValidationError
from expense_tracker.validation import parse_amount, parse_date, validate_budget, validate_transaction


def valid_candidate() -> dict:
    return {'date': '2024-01-10', 'category': 'Food', 'description': 'Groceries', 'amount': '50'}


def test_validate_transaction_normalizes_fields() -> None:
    cleaned = validate_transaction(valid_candidate())
    assert cleaned == {
        'date': date(2024, 1, 10),
        'category': 'Food',
        'description': 'Groceries',
        'amount': 50.0,
    }


def test_validate_transaction_reports_every_missing_field() -> None:
    with pytest.raises(ValidationError) as excinfo:
        validate_transaction({'category': '  ', 'amount': 'abc'})
    assert set(excinfo.value.errors) == {'date', 'category', 'description', 'amount'}
    assert "amount" in str(excinfo.value)


def test_validate_transaction_rejects_unknown_fields() -> None:
    candidate = valid_candidate()
    candidate['id'] = 'abc'
    with pytest.raises(ValidationError) as excinfo:
        validate_transaction(candidate)
    assert list(excinfo.value.errors) == ['id']


def test_partial_validation_only_checks_supplied_fields() -> None:
    assert validate_transaction({'amount': 12.5}, partial=True) == {'amount': 12.5}
    with pytest.raises(ValidationError):
        validate_transaction({'description': ''}, partial=True)


def test_free_form_category_is_accepted() -> None:
    candidate = valid_candidate()
    candidate['category'] = 'Pet supplies'
    assert validate_transaction(candidate)['category'] == 'Pet supplies'


@pytest.mark.parametrize('raw', ['nan', 'inf', float('inf'), True, 'twelve', None, [1]])
def test_parse_amount_rejects_non_finite_values(raw) -> None:
    with pytest.raises(ValueError):
        parse_amount(raw)


def test_parse_amount_accepts_numeric_strings() -> None:
    assert parse_amount(' 1,250.50 ') == 1250.5
    assert parse_amount(-20) == -20.0


def test_parse_amount_rounds_to_cents() -> None:
    assert parse_amount('0.004') == 0.0
    assert parse_amount('19.996') == 20.0
    assert parse_amount(-0.001) == 0.0
    assert str(parse_amount(-0.001)) == '0.0'


def test_budget_below_one_cent_is_rejected() -> None:
    with pytest.raises(ValidationError) as excinfo:
        validate_budget('Food', '0.004')
    assert excinfo.value.errors == {'amount': 'must be greater than zero'}


def test_parse_date_variants() -> None:
    assert parse_date(date(2024, 2, 1)) == date(2024, 2, 1)
    assert parse_date(datetime(2024, 2, 1, 23, 59)) == date(2024, 2, 1)
    assert parse_date('2024-02-01T08:30:00') == date(2024, 2, 1)
    with pytest.raises(ValueError):
        parse_date('01/02/2024')


def test_validate_budget_requires_positive_amount() -> None:
    assert validate_budget(' Food ', '120').category == 'Food'
    with pytest.raises(ValidationError) as excinfo:
        validate_budget('', 0)
    assert set(excinfo.value.errors) == {'category', 'amount'}
    with pytest.raises(ValidationError):
        validate_budget('Food', -5)
