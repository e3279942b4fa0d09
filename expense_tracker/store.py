"""Transaction and budget stores.

Each store owns one collection, keeps it in memory as an immutable tuple
and writes the whole collection through an injected
:class:`~expense_tracker.storage.StorageBackend` after every mutation.
Operations are coroutines: they may suspend (``latency``) before
completing, and mutations are serialised by a lock so they never
interleave.  A failed write leaves the in-memory collection untouched.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Any, Callable, Generic, Iterable, List, Mapping, Optional, Tuple, TypeVar

from .aggregation import sort_recent_first
from .config import BUDGETS_KEY, STORE_LATENCY, STRICT_LOAD, TRANSACTIONS_KEY
from .errors import NotFoundError, PersistenceError
from .models import Budget, Transaction, new_id, utcnow
from .storage import StorageBackend, decode_budgets, decode_transactions, encode_budgets, encode_transactions
from .validation import validate_budget, validate_transaction

logger = logging.getLogger(__name__)

T = TypeVar('T')

LIST_ORDERS = ('insertion', 'date_desc')


class _CollectionStore(Generic[T]):
    """Shared load/commit plumbing for the concrete stores."""

    kind = 'collection'

    def __init__(
        self,
        backend: StorageBackend,
        key: str,
        latency: float = STORE_LATENCY,
        strict_load: bool = STRICT_LOAD,
    ):
        self._backend = backend
        self._key = key
        self._latency = latency
        self._strict_load = strict_load
        self._lock = asyncio.Lock()
        self._items: Tuple[T, ...] = self._read()

    def _decode(self, document: str) -> List[T]:
        raise NotImplementedError

    def _encode(self, items: Iterable[T]) -> str:
        raise NotImplementedError

    def _read(self) -> Tuple[T, ...]:
        try:
            document = self._backend.load(self._key)
            if document is None:
                return ()
            items = tuple(self._decode(document))
        except PersistenceError as exc:
            if self._strict_load:
                raise
            logger.error("Could not load %s from '%s', starting empty: %s", self.kind, self._key, exc)
            return ()
        logger.debug("Loaded %d %s from '%s'", len(items), self.kind, self._key)
        return items

    def _commit(self, items: Tuple[T, ...]) -> None:
        document = self._encode(items)
        try:
            self._backend.save(self._key, document)
        except PersistenceError:
            logger.warning("Write of '%s' failed; keeping previous %s", self._key, self.kind)
            raise
        except OSError as exc:
            logger.warning("Write of '%s' failed; keeping previous %s", self._key, self.kind)
            raise PersistenceError(f"Failed to save '{self._key}': {exc}", key=self._key) from exc
        self._items = items

    async def _pause(self) -> None:
        await asyncio.sleep(self._latency)

    async def reload(self) -> None:
        """Re-read the collection from the backend."""
        await self._pause()
        async with self._lock:
            self._items = self._read()


class TransactionStore(_CollectionStore[Transaction]):
    """Authoritative list of expense transactions."""

    kind = 'transactions'

    def __init__(
        self,
        backend: StorageBackend,
        key: str = TRANSACTIONS_KEY,
        latency: float = STORE_LATENCY,
        strict_load: bool = STRICT_LOAD,
        clock: Callable[[], Any] = utcnow,
        id_factory: Callable[[], str] = new_id,
    ):
        self._clock = clock
        self._id_factory = id_factory
        super().__init__(backend, key, latency=latency, strict_load=strict_load)

    def _decode(self, document: str) -> List[Transaction]:
        return decode_transactions(document, key=self._key)

    def _encode(self, items: Iterable[Transaction]) -> str:
        return encode_transactions(items)

    def _index_of(self, transaction_id: str) -> int:
        for index, transaction in enumerate(self._items):
            if transaction.id == transaction_id:
                return index
        raise NotFoundError('Transaction', transaction_id)

    def _fresh_id(self) -> str:
        existing = {t.id for t in self._items}
        candidate = self._id_factory()
        while candidate in existing:
            candidate = self._id_factory()
        return candidate

    async def create(self, candidate: Mapping[str, Any]) -> Transaction:
        """Validate ``candidate`` and append it with a fresh id.

        Raises:
            ValidationError: If date, category, description or amount is
                             missing or invalid
            PersistenceError: If the collection could not be written
        """
        fields = validate_transaction(candidate)
        await self._pause()
        async with self._lock:
            now = self._clock()
            transaction = Transaction(id=self._fresh_id(), created_at=now, updated_at=now, **fields)
            self._commit(self._items + (transaction,))
        logger.debug("Created transaction %s", transaction.id)
        return transaction

    async def update(self, transaction_id: str, fields: Mapping[str, Any]) -> Transaction:
        """Replace the given fields of an existing transaction.

        Raises:
            NotFoundError: If no transaction has ``transaction_id``
            ValidationError: If a field is unknown or invalid
            PersistenceError: If the collection could not be written
        """
        await self._pause()
        async with self._lock:
            index = self._index_of(transaction_id)
            changes = validate_transaction(fields, partial=True)
            updated = dataclasses.replace(self._items[index], updated_at=self._clock(), **changes)
            items = list(self._items)
            items[index] = updated
            self._commit(tuple(items))
        logger.debug("Updated transaction %s", transaction_id)
        return updated

    async def delete(self, transaction_id: str) -> None:
        """Remove a transaction; unknown ids are ignored."""
        await self._pause()
        async with self._lock:
            self._commit(tuple(t for t in self._items if t.id != transaction_id))

    async def get(self, transaction_id: str) -> Transaction:
        await self._pause()
        return self._items[self._index_of(transaction_id)]

    async def list_all(self, order: str = 'insertion') -> Tuple[Transaction, ...]:
        """Return all transactions in insertion order or most recent first."""
        if order not in LIST_ORDERS:
            raise ValueError(f"Unknown order '{order}'; expected one of {LIST_ORDERS}")
        await self._pause()
        if order == 'date_desc':
            return tuple(sort_recent_first(self._items))
        return self._items


class BudgetStore(_CollectionStore[Budget]):
    """Per-category spending ceilings keyed by category."""

    kind = 'budgets'

    def __init__(
        self,
        backend: StorageBackend,
        key: str = BUDGETS_KEY,
        latency: float = STORE_LATENCY,
        strict_load: bool = STRICT_LOAD,
    ):
        super().__init__(backend, key, latency=latency, strict_load=strict_load)

    def _decode(self, document: str) -> List[Budget]:
        return decode_budgets(document, key=self._key)

    def _encode(self, items: Iterable[Budget]) -> str:
        return encode_budgets(items)

    def _find(self, category: str) -> Optional[int]:
        for index, budget in enumerate(self._items):
            if budget.category == category:
                return index
        return None

    async def upsert(self, category: str, amount: Any) -> Budget:
        """Set the budget for ``category``, replacing any existing amount.

        Raises:
            ValidationError: If the category is empty or the amount is not
                             a positive finite number
            PersistenceError: If the collection could not be written
        """
        budget = validate_budget(category, amount)
        await self._pause()
        async with self._lock:
            index = self._find(budget.category)
            items = list(self._items)
            if index is None:
                items.append(budget)
            else:
                items[index] = budget
            self._commit(tuple(items))
        return budget

    async def delete(self, category: str) -> None:
        """Remove the budget for ``category``; unknown categories are ignored."""
        category = category.strip()
        await self._pause()
        async with self._lock:
            self._commit(tuple(b for b in self._items if b.category != category))

    async def get(self, category: str) -> Budget:
        await self._pause()
        category = category.strip()
        index = self._find(category)
        if index is None:
            raise NotFoundError('Budget', category)
        return self._items[index]

    async def list_all(self) -> Tuple[Budget, ...]:
        await self._pause()
        return self._items
