"""
MongoDB connection management and the Motor-backed document store.
"""
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, TypeVar

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorClientSession, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from inventory_tracker.core.config import settings
from inventory_tracker.core.exceptions import TransactionConflictError
from inventory_tracker.db.document_store import (
    ADDITION_REQUESTS_COLLECTION,
    INVENTORY_COLLECTION,
    NOTIFICATIONS_COLLECTION,
    REMOVAL_REQUESTS_COLLECTION,
    DocumentStore,
    Transaction,
    resolve_server_timestamps,
)
from inventory_tracker.utils.datetime_handler import DateTimeHandler
from inventory_tracker.utils.id_handler import IdHandler

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Error labels MongoDB attaches to transactions that may succeed when retried
RETRYABLE_ERROR_LABELS = ("TransientTransactionError", "UnknownTransactionCommitResult")


class MongoDB:
    """
    MongoDB connection manager.
    Provides access to database and collections with connection management.
    """

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

    @classmethod
    def connect_to_mongodb(cls):
        """
        Connect to MongoDB if not already connected.
        The client connects lazily, so this does no network I/O.
        """
        if cls.client is None:
            logger.info(f"Connecting to MongoDB at {settings.MONGODB_URL} (database: {settings.MONGODB_DB})")

            cls.client = AsyncIOMotorClient(settings.MONGODB_URL, tz_aware=False)
            cls.db = cls.client[settings.MONGODB_DB]

    @classmethod
    async def close_mongodb_connection(cls):
        """
        Close MongoDB connection if open.
        """
        if cls.client is not None:
            cls.client.close()
            cls.client = None
            cls.db = None
            logger.info("Closed MongoDB connection")

    @classmethod
    def get_client(cls) -> AsyncIOMotorClient:
        if cls.client is None:
            cls.connect_to_mongodb()
        return cls.client

    @classmethod
    def get_database(cls) -> AsyncIOMotorDatabase:
        """
        Get database instance.

        Returns:
            AsyncIOMotorDatabase instance
        """
        if cls.db is None:
            cls.connect_to_mongodb()
        return cls.db


mongodb = MongoDB()


def _format_document(document: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if document is None:
        return None
    return IdHandler.format_object_ids(document)


class MongoTransaction(Transaction):
    """
    Transaction bound to a client session with an open MongoDB transaction.
    """

    def __init__(self, database: AsyncIOMotorDatabase, session: AsyncIOMotorClientSession):
        super().__init__()
        self.database = database
        self.session = session

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        document = await self.database[collection].find_one({"_id": doc_id}, session=self.session)
        return _format_document(document)

    async def find(self, collection: str, query: Dict[str, Any]) -> List[Dict[str, Any]]:
        cursor = self.database[collection].find(query, session=self.session)
        documents = await cursor.to_list(length=None)
        return IdHandler.format_object_ids(documents)

    def new_id(self) -> str:
        return IdHandler.generate_id()

    async def flush(self) -> None:
        """Apply the staged writes inside the session's transaction."""
        now = DateTimeHandler.get_current_datetime()
        for operation, collection, doc_id, data in self.writes:
            data = resolve_server_timestamps(data, now)
            if operation == "set":
                await self.database[collection].replace_one(
                    {"_id": doc_id}, data, upsert=True, session=self.session
                )
            else:
                await self.database[collection].update_one(
                    {"_id": doc_id}, {"$set": data}, session=self.session
                )


class MongoDocumentStore(DocumentStore):
    """
    DocumentStore backed by Motor.
    Transactions and change streams require a replica set deployment.
    """

    def __init__(self, client: AsyncIOMotorClient, database: AsyncIOMotorDatabase):
        self.client = client
        self.database = database

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        document = await self.database[collection].find_one({"_id": doc_id})
        return _format_document(document)

    async def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        data = resolve_server_timestamps(data, DateTimeHandler.get_current_datetime())
        data.pop("_id", None)
        await self.database[collection].replace_one({"_id": doc_id}, data, upsert=True)

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = IdHandler.generate_id()
        await self.set(collection, doc_id, data)
        return doc_id

    async def update(self, collection: str, doc_id: str, patch: Dict[str, Any]) -> bool:
        patch = resolve_server_timestamps(patch, DateTimeHandler.get_current_datetime())
        patch.pop("_id", None)
        result = await self.database[collection].update_one({"_id": doc_id}, {"$set": patch})
        return result.matched_count > 0

    async def delete(self, collection: str, doc_id: str) -> bool:
        result = await self.database[collection].delete_one({"_id": doc_id})
        return result.deleted_count > 0

    async def find(
            self,
            collection: str,
            query: Optional[Dict[str, Any]] = None,
            sort_by: Optional[str] = None,
            sort_desc: bool = False,
            limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        cursor = self.database[collection].find(query or {})

        if sort_by:
            cursor = cursor.sort(sort_by, DESCENDING if sort_desc else ASCENDING)

        if limit:
            cursor = cursor.limit(limit)

        documents = await cursor.to_list(length=limit)
        return IdHandler.format_object_ids(documents)

    async def watch(self, collection: str, query: Optional[Dict[str, Any]] = None) -> AsyncIterator[List[Dict[str, Any]]]:
        yield await self.find(collection, query)

        async with self.database[collection].watch() as stream:
            async for _change in stream:
                yield await self.find(collection, query)

    async def _run_transaction_once(self, callback: Callable[[Transaction], Awaitable[T]]) -> T:
        try:
            async with await self.client.start_session() as session:
                async with session.start_transaction():
                    transaction = MongoTransaction(self.database, session)
                    result = await callback(transaction)
                    await transaction.flush()
                return result
        except PyMongoError as e:
            if any(e.has_error_label(label) for label in RETRYABLE_ERROR_LABELS):
                raise TransactionConflictError(f"Concurrent update detected: {str(e)}") from e
            raise


async def ensure_indexes(database: AsyncIOMotorDatabase) -> None:
    """Create the indexes the lookups rely on."""
    await database[INVENTORY_COLLECTION].create_index("normalized_name")
    await database[INVENTORY_COLLECTION].create_index("name")
    for collection in (ADDITION_REQUESTS_COLLECTION, REMOVAL_REQUESTS_COLLECTION):
        await database[collection].create_index("status")
        await database[collection].create_index("user_id")
    await database[NOTIFICATIONS_COLLECTION].create_index("user_id")


def get_document_store() -> DocumentStore:
    """
    FastAPI dependency returning the store for the current process.
    """
    return MongoDocumentStore(mongodb.get_client(), mongodb.get_database())
