"""Tests for the storage backends and the document codec."""

from __future__ import annotations

import json
from datetime import date, datetime, timezone

import pytest

from expense_tracker.errors import PersistenceError
from expense_tracker.models import Budget, Transaction
from expense_tracker.storage import (
    InMemoryBackend,
    JsonFileBackend,
    decode_budgets,
    decode_transactions,
    encode_budgets,
    encode_transactions,
)

STAMP = datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)


def sample_transactions():
    return [
        Transaction('t1', date(2024, 1, 10), 'Food', 'Groceries', 50.0, STAMP, STAMP),
        Transaction('t2', date(2024, 1, 15), 'Transportation', 'Gas', 25.0, STAMP, STAMP),
    ]


def test_transactions_round_trip() -> None:
    transactions = sample_transactions()
    assert decode_transactions(encode_transactions(transactions)) == transactions


def test_document_is_versioned_json_with_iso_dates() -> None:
    data = json.loads(encode_transactions(sample_transactions()))
    assert data['version'] == 1
    assert data['items'][0]['date'] == '2024-01-10'
    assert data['items'][0]['created_at'] == '2024-03-01T12:30:00+00:00'


def test_date_like_description_is_not_revived() -> None:
    tx = Transaction('t1', date(2024, 1, 10), 'Other', '2024-01-01', 5.0, STAMP, STAMP)
    restored = decode_transactions(encode_transactions([tx]))[0]
    assert restored.description == '2024-01-01'
    assert isinstance(restored.description, str)


def test_legacy_array_documents_are_accepted() -> None:
    legacy = json.dumps([
        {'id': 'a', 'date': '2024-01-10T08:00:00.000Z', 'category': 'Food', 'description': 'Lunch', 'amount': 12},
    ])
    restored = decode_transactions(legacy)
    assert restored[0].date == date(2024, 1, 10)
    assert restored[0].created_at == datetime(2024, 1, 10, tzinfo=timezone.utc)


@pytest.mark.parametrize('document', [
    '{not json',
    '{"version": 1}',
    '{"version": 2, "items": []}',
    '[{"id": "a", "date": "yesterday", "category": "Food", "description": "x", "amount": 1}]',
    '[{"id": "a", "category": "Food", "description": "x", "amount": 1}]',
    '[42]',
])
def test_malformed_documents_raise(document) -> None:
    with pytest.raises(PersistenceError):
        decode_transactions(document)


@pytest.mark.parametrize('overrides', [
    {'description': ''},
    {'description': '   '},
    {'category': ''},
    {'amount': float('nan')},
    {'amount': 'lots'},
    {'created_at': 12345},
    {'updated_at': ['2024-01-10']},
])
def test_records_with_invalid_values_raise(overrides) -> None:
    record = {'id': 'a', 'date': '2024-01-10', 'category': 'Food', 'description': 'Lunch', 'amount': 12}
    record.update(overrides)
    with pytest.raises(PersistenceError, match="Record 0 of 'transactions'"):
        decode_transactions(json.dumps([record]))


def test_stored_amounts_are_rounded_to_cents() -> None:
    document = json.dumps([
        {'id': 'a', 'date': '2024-01-10', 'category': 'Food', 'description': 'Lunch', 'amount': 12.346},
    ])
    assert decode_transactions(document)[0].amount == 12.35


@pytest.mark.parametrize('record', [
    {'category': 'Food', 'amount': -50},
    {'category': 'Food', 'amount': 0},
    {'category': '', 'amount': 10},
    {'category': 'Food', 'amount': 'NaN'},
    {'category': 7, 'amount': 10},
    {'amount': 10},
])
def test_invalid_budget_records_raise(record) -> None:
    with pytest.raises(PersistenceError, match="Record 0 of 'budgets'"):
        decode_budgets(json.dumps([record]))


def test_budget_duplicates_collapse_to_last_amount() -> None:
    document = json.dumps([
        {'category': 'Food', 'amount': 100},
        {'category': 'Housing', 'amount': 900},
        {'category': 'Food', 'amount': 150},
    ])
    assert decode_budgets(document) == [Budget('Food', 150.0), Budget('Housing', 900.0)]


def test_budgets_round_trip() -> None:
    budgets = [Budget('Food', 120.0), Budget('Utilities', 80.5)]
    assert decode_budgets(encode_budgets(budgets)) == budgets


def test_json_file_backend_save_and_load(tmp_path) -> None:
    backend = JsonFileBackend(tmp_path)
    assert backend.load('transactions') is None
    backend.save('transactions', '{"version": 1, "items": []}')
    assert backend.get_path('transactions') == tmp_path / 'transactions.json'
    assert backend.load('transactions') == '{"version": 1, "items": []}'
    assert [p.name for p in tmp_path.iterdir()] == ['transactions.json']


def test_json_file_backend_rejects_oversized_documents(tmp_path) -> None:
    backend = JsonFileBackend(tmp_path, max_bytes=10)
    with pytest.raises(PersistenceError):
        backend.save('budgets', 'x' * 11)
    assert not backend.get_path('budgets').exists()


def test_json_file_backend_wraps_os_errors(tmp_path) -> None:
    blocker = tmp_path / 'blocker'
    blocker.write_text('not a directory', encoding='utf-8')
    backend = JsonFileBackend(blocker / 'data')
    with pytest.raises(PersistenceError):
        backend.save('transactions', '[]')


def test_in_memory_backend_size_limit() -> None:
    backend = InMemoryBackend(max_bytes=4)
    backend.save('k', 'abcd')
    with pytest.raises(PersistenceError):
        backend.save('k', 'abcde')
    assert backend.load('k') == 'abcd'
