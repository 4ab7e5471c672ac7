"""
Document store abstraction used by the repositories and the approval engine.

A store exposes single-document CRUD, equality queries, change subscriptions
and an optimistic transaction primitive. Writes staged on a transaction are
applied all at once on commit; a commit that collides with a concurrent write
raises TransactionConflictError and the whole callback is run again.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

from inventory_tracker.core.config import settings
from inventory_tracker.core.exceptions import TransactionConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Collection names
INVENTORY_COLLECTION = "inventory"
ADDITION_REQUESTS_COLLECTION = "addition_requests"
REMOVAL_REQUESTS_COLLECTION = "removal_requests"
ACTION_LOGS_COLLECTION = "action_logs"
NOTIFICATIONS_COLLECTION = "notifications"


class _ServerTimestamp:
    """Placeholder replaced with the store clock when a write is applied."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"

    # Writes are matched by identity, so copies must stay the same object
    def __copy__(self) -> "_ServerTimestamp":
        return self

    def __deepcopy__(self, memo: Dict[int, Any]) -> "_ServerTimestamp":
        return self


SERVER_TIMESTAMP = _ServerTimestamp()


def resolve_server_timestamps(data: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    """
    Return a copy of data with every SERVER_TIMESTAMP placeholder set to now.
    """
    resolved = {}
    for key, value in data.items():
        if value is SERVER_TIMESTAMP:
            resolved[key] = now
        elif isinstance(value, dict):
            resolved[key] = resolve_server_timestamps(value, now)
        else:
            resolved[key] = value
    return resolved


class Transaction(ABC):
    """
    A unit of work against the store.

    Reads go to the store immediately and are validated again at commit;
    writes are staged and only become visible once the transaction commits.
    """

    def __init__(self):
        self.writes: List[Tuple[str, str, str, Dict[str, Any]]] = []

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Read a document by id, or None if it does not exist."""

    @abstractmethod
    async def find(self, collection: str, query: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Read all documents whose fields equal the query values."""

    @abstractmethod
    def new_id(self) -> str:
        """Allocate an id for a document added in this transaction."""

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Stage a full overwrite (or creation) of a document."""
        self.writes.append(("set", collection, doc_id, dict(data)))

    def update(self, collection: str, doc_id: str, patch: Dict[str, Any]) -> None:
        """Stage a partial update of an existing document."""
        self.writes.append(("update", collection, doc_id, dict(patch)))

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        """Stage the creation of a document with a generated id."""
        doc_id = self.new_id()
        self.set(collection, doc_id, data)
        return doc_id


class DocumentStore(ABC):
    """
    Interface the domain code uses to reach the document database.
    """

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Get a document by id."""

    @abstractmethod
    async def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Create or overwrite a document."""

    @abstractmethod
    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        """Create a document with a generated id and return the id."""

    @abstractmethod
    async def update(self, collection: str, doc_id: str, patch: Dict[str, Any]) -> bool:
        """Update fields of a document; returns False if it does not exist."""

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> bool:
        """Delete a document; returns False if it does not exist."""

    @abstractmethod
    async def find(
            self,
            collection: str,
            query: Optional[Dict[str, Any]] = None,
            sort_by: Optional[str] = None,
            sort_desc: bool = False,
            limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Find documents whose fields equal the query values."""

    @abstractmethod
    def watch(self, collection: str, query: Optional[Dict[str, Any]] = None) -> AsyncIterator[List[Dict[str, Any]]]:
        """
        Subscribe to a query.

        Yields the current matching documents right away, then a fresh
        snapshot after every change to the collection.
        """

    @abstractmethod
    async def _run_transaction_once(self, callback: Callable[[Transaction], Awaitable[T]]) -> T:
        """Run callback in a new transaction and commit its staged writes."""

    async def run_transaction(
            self,
            callback: Callable[[Transaction], Awaitable[T]],
            max_attempts: Optional[int] = None
    ) -> T:
        """
        Run callback atomically, retrying on transaction conflicts.

        Only TransactionConflictError triggers a retry; any other exception
        raised by the callback aborts the transaction and propagates unchanged.

        Args:
            callback: Coroutine function receiving the Transaction
            max_attempts: Override of settings.TRANSACTION_MAX_ATTEMPTS

        Returns:
            Whatever the callback returned on the attempt that committed
        """
        attempts = max_attempts or settings.TRANSACTION_MAX_ATTEMPTS

        for attempt in range(1, attempts + 1):
            try:
                return await self._run_transaction_once(callback)
            except TransactionConflictError as e:
                if attempt >= attempts:
                    logger.error(f"Transaction failed after {attempt} attempts: {e.message}")
                    raise
                logger.warning(f"Transaction conflict on attempt {attempt}/{attempts}, retrying: {e.message}")

        raise TransactionConflictError("Transaction could not be committed.")
