"""Durable storage backends and the document codec.

A backend stores one text document per key (``transactions``,
``budgets``) and knows nothing about records.  The codec functions turn
record collections into versioned JSON documents and back, reviving the
known date fields only so that a description which happens to look like
a date stays a string.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol

from .config import DATA_DIR, MAX_DOCUMENT_BYTES, ensure_data_directories
from .errors import PersistenceError
from .models import Budget, Transaction
from .validation import TRANSACTION_FIELDS, parse_date, validate_budget, validate_transaction

logger = logging.getLogger(__name__)

DOCUMENT_VERSION = 1


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------


class StorageBackend(Protocol):
    """Interface every persistence backend implements."""

    def load(self, key: str) -> Optional[str]:
        """Return the stored document for ``key`` or ``None`` if absent."""

    def save(self, key: str, document: str) -> None:
        """Durably replace the document stored under ``key``."""


def safe_key(key: str, default: str = 'collection') -> str:
    """Reduce a storage key to characters safe for a filename."""
    cleaned = ''.join(c for c in key if c.isalnum() or c in {'_', '-'})
    return cleaned or default


def _check_size(key: str, document: str, max_bytes: Optional[int]) -> None:
    if max_bytes is None:
        return
    size = len(document.encode('utf-8'))
    if size > max_bytes:
        raise PersistenceError(
            f"Document '{key}' is {size} bytes, exceeding the {max_bytes} byte limit",
            key=key,
        )


class JsonFileBackend:
    """Stores each collection as ``<key>.json`` inside a data directory."""

    def __init__(self, directory: Optional[Path] = None, max_bytes: Optional[int] = MAX_DOCUMENT_BYTES):
        """Initialize file storage.

        Args:
            directory: Optional custom directory for the documents.
                       Defaults to DATA_DIR from config.
            max_bytes: Largest document accepted on read or write;
                       ``None`` disables the check.
        """
        if directory is None:
            ensure_data_directories()
            directory = DATA_DIR
        self.directory = Path(directory)
        self.max_bytes = max_bytes

    def get_path(self, key: str) -> Path:
        return self.directory / f"{safe_key(key)}.json"

    def load(self, key: str) -> Optional[str]:
        target = self.get_path(key)
        if not target.exists():
            return None
        try:
            document = target.read_text(encoding='utf-8')
        except OSError as exc:
            raise PersistenceError(f"Failed to read {target}: {exc}", key=key) from exc
        _check_size(key, document, self.max_bytes)
        return document

    def save(self, key: str, document: str) -> None:
        _check_size(key, document, self.max_bytes)
        target = self.get_path(key)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=str(target.parent), prefix=f".{target.stem}.", suffix='.tmp')
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as handle:
                    handle.write(document)
                os.replace(tmp_name, target)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            raise PersistenceError(f"Failed to save {target}: {exc}", key=key) from exc
        logger.debug("Saved %d bytes to %s", len(document), target)


class InMemoryBackend:
    """Keeps documents in a dictionary; used by tests and previews."""

    def __init__(self, documents: Optional[Dict[str, str]] = None, max_bytes: Optional[int] = None):
        self.documents: Dict[str, str] = dict(documents or {})
        self.max_bytes = max_bytes

    def load(self, key: str) -> Optional[str]:
        document = self.documents.get(key)
        if document is not None:
            _check_size(key, document, self.max_bytes)
        return document

    def save(self, key: str, document: str) -> None:
        _check_size(key, document, self.max_bytes)
        self.documents[key] = document


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------


def _parse_timestamp(value: str) -> datetime:
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_stored_date(value: str) -> date:
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    return parse_date(text)


# Only these fields are revived from ISO strings
_DATE_FIELDS = {
    'date': _parse_stored_date,
    'created_at': _parse_timestamp,
    'updated_at': _parse_timestamp,
}


def _revive(record: Dict[str, Any]) -> Dict[str, Any]:
    revived = dict(record)
    for field, parser in _DATE_FIELDS.items():
        value = revived.get(field)
        if isinstance(value, str):
            revived[field] = parser(value)
    return revived


def _to_jsonable(record: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: value.isoformat() if isinstance(value, (date, datetime)) else value
        for key, value in record.items()
    }


def _dump(items: List[Dict[str, Any]]) -> str:
    payload = {'version': DOCUMENT_VERSION, 'items': items}
    return json.dumps(payload, indent=2, sort_keys=True)


def _items(document: str, key: str) -> List[Any]:
    try:
        data = json.loads(document)
    except json.JSONDecodeError as exc:
        raise PersistenceError(f"Document '{key}' is not valid JSON: {exc}", key=key) from exc
    # Bare arrays are the unversioned format written by the browser tracker
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get('items'), list):
        version = data.get('version', DOCUMENT_VERSION)
        if version != DOCUMENT_VERSION:
            raise PersistenceError(f"Document '{key}' has unsupported version {version!r}", key=key)
        return data['items']
    raise PersistenceError(f"Document '{key}' has an unexpected structure", key=key)


def encode_transactions(transactions: Iterable[Transaction]) -> str:
    return _dump([_to_jsonable(t.to_dict()) for t in transactions])


def _timestamp(record: Dict[str, Any], field: str, fallback: datetime) -> datetime:
    value = record.get(field)
    if value is None:
        return fallback
    if not isinstance(value, datetime):
        raise TypeError(f"{field} is not an ISO timestamp")
    return value


def decode_transactions(document: str, key: str = 'transactions') -> List[Transaction]:
    """Rebuild transactions from a stored document.

    Each record's fields must pass the same checks as user input.
    Records without timestamps (older documents) get midnight UTC of
    their transaction date for both ``created_at`` and ``updated_at``.

    Raises:
        PersistenceError: If the document or any record is malformed
    """
    transactions: List[Transaction] = []
    for index, raw in enumerate(_items(document, key)):
        try:
            if not isinstance(raw, dict):
                raise TypeError("record is not an object")
            record = _revive(raw)
            fields = validate_transaction({field: record.get(field) for field in TRANSACTION_FIELDS})
            fallback = datetime.combine(fields['date'], time(), tzinfo=timezone.utc)
            transactions.append(Transaction(
                id=str(record['id']),
                created_at=_timestamp(record, 'created_at', fallback),
                updated_at=_timestamp(record, 'updated_at', fallback),
                **fields,
            ))
        except (KeyError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Record {index} of '{key}' is invalid: {exc}", key=key) from exc
    return transactions


def encode_budgets(budgets: Iterable[Budget]) -> str:
    return _dump([b.to_dict() for b in budgets])


def decode_budgets(document: str, key: str = 'budgets') -> List[Budget]:
    """Rebuild budgets from a stored document.

    Each record must be a valid budget (non-empty category, positive
    amount).  Duplicate categories collapse to the last amount seen,
    keeping the position of the first occurrence.

    Raises:
        PersistenceError: If the document or any record is malformed
    """
    by_category: Dict[str, Budget] = {}
    for index, raw in enumerate(_items(document, key)):
        try:
            if not isinstance(raw, dict):
                raise TypeError("record is not an object")
            budget = validate_budget(raw.get('category'), raw.get('amount'))
        except (TypeError, ValueError) as exc:
            raise PersistenceError(f"Record {index} of '{key}' is invalid: {exc}", key=key) from exc
        by_category[budget.category] = budget
    return list(by_category.values())
