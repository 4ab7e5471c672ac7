"""
Base repository pattern implementation over a document store collection.
"""
from typing import Any, Dict, List, Optional

from inventory_tracker.db.document_store import SERVER_TIMESTAMP, DocumentStore


class BaseRepository:
    """
    Base repository class that implements standard CRUD operations for one collection.
    """

    timestamp_field: Optional[str] = None

    def __init__(self, store: DocumentStore, collection_name: str):
        """
        Initialize repository with a store and the collection it manages.

        Args:
            store: DocumentStore instance
            collection_name: Name of the collection
        """
        self.store = store
        self.collection_name = collection_name

    async def find_by_id(self, id_value: str) -> Optional[Dict[str, Any]]:
        """
        Find a document by ID.

        Args:
            id_value: Document id

        Returns:
            Document dict or None if not found
        """
        return await self.store.get(self.collection_name, id_value)

    async def find_many(self,
                        query: Dict[str, Any] = None,
                        limit: Optional[int] = None,
                        sort_by: str = None,
                        sort_desc: bool = False) -> List[Dict[str, Any]]:
        """
        Find documents matching an equality query.

        Args:
            query: Field/value pairs that must all match
            limit: Maximum number of documents to return
            sort_by: Field to sort by
            sort_desc: If True, sort in descending order

        Returns:
            List of documents
        """
        return await self.store.find(
            self.collection_name,
            query or {},
            sort_by=sort_by,
            sort_desc=sort_desc,
            limit=limit
        )

    async def find_one(self, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Find a single document matching query.

        Args:
            query: Field/value pairs that must all match

        Returns:
            Document dict or None if not found
        """
        documents = await self.store.find(self.collection_name, query, limit=1)
        return documents[0] if documents else None

    async def create(self, data: Dict[str, Any], doc_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Create a document, at doc_id when given, otherwise at a generated id.

        Args:
            data: Document data
            doc_id: Optional explicit id

        Returns:
            Created document as stored
        """
        data = {k: v for k, v in data.items() if k != "_id"}
        if self.timestamp_field:
            data[self.timestamp_field] = SERVER_TIMESTAMP

        if doc_id is None:
            doc_id = await self.store.add(self.collection_name, data)
        else:
            await self.store.set(self.collection_name, doc_id, data)

        return await self.find_by_id(doc_id)

    async def update(self, id_value: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Update a document by ID.

        Args:
            id_value: ID of document to update
            data: New field values

        Returns:
            Updated document or None if not found
        """
        update_data = {k: v for k, v in data.items() if k != "_id"}
        if self.timestamp_field:
            update_data[self.timestamp_field] = SERVER_TIMESTAMP

        if not await self.store.update(self.collection_name, id_value, update_data):
            return None

        return await self.find_by_id(id_value)

    async def delete(self, id_value: str) -> bool:
        """
        Delete a document by ID.

        Args:
            id_value: ID of document to delete

        Returns:
            True if document was deleted, False if not found
        """
        return await self.store.delete(self.collection_name, id_value)
