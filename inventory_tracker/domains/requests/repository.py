"""
Request repository for addition and removal request documents.
"""
from typing import Any, AsyncIterator, Dict, List, Optional

from inventory_tracker.db.base_repository import BaseRepository
from inventory_tracker.db.document_store import SERVER_TIMESTAMP, DocumentStore
from inventory_tracker.models.request import ChangeRequest, LineItem, RequestKind, RequestStatus
from inventory_tracker.models.user import CurrentUser


class RequestRepository(BaseRepository):
    """
    Repository for one request queue (addition or removal).
    Documents are returned as ChangeRequest models, which is where the legacy
    single-item shape is folded into `requested_items`.
    """

    def __init__(self, store: DocumentStore, kind: RequestKind):
        """Initialize with the collection for the given request kind."""
        super().__init__(store, kind.collection)
        self.kind = kind

    def to_request(self, document: Dict[str, Any]) -> ChangeRequest:
        return ChangeRequest.from_document(self.kind, document)

    async def create_request(self, user: CurrentUser, items: List[LineItem]) -> ChangeRequest:
        """
        Persist a new pending request.

        Args:
            user: Submitting user
            items: Validated line items

        Returns:
            Stored request
        """
        document = await self.create({
            "user_id": user.id,
            "user_name": user.name,
            "requested_items": [item.to_document() for item in items],
            "status": RequestStatus.PENDING.value,
            "request_timestamp": SERVER_TIMESTAMP,
        })
        return self.to_request(document)

    async def get_request(self, request_id: str) -> Optional[ChangeRequest]:
        document = await self.find_by_id(request_id)
        return self.to_request(document) if document else None

    async def find_pending(self) -> List[ChangeRequest]:
        """Pending requests, oldest first."""
        documents = await self.find_many(
            {"status": RequestStatus.PENDING.value}, sort_by="request_timestamp"
        )
        return [self.to_request(document) for document in documents]

    async def find_by_user(self, user_id: str) -> List[ChangeRequest]:
        """Requests submitted by a user, newest first."""
        documents = await self.find_many(
            {"user_id": user_id}, sort_by="request_timestamp", sort_desc=True
        )
        return [self.to_request(document) for document in documents]

    async def watch_pending(self) -> AsyncIterator[List[ChangeRequest]]:
        """
        Subscribe to the pending queue.
        Yields the full list of pending requests now and after every change.
        """
        snapshots = self.store.watch(self.collection_name, {"status": RequestStatus.PENDING.value})
        try:
            async for documents in snapshots:
                requests = [self.to_request(document) for document in documents]
                requests.sort(key=lambda r: (r.request_timestamp is None, r.request_timestamp))
                yield requests
        finally:
            # closes the underlying change stream when the subscriber goes away
            await snapshots.aclose()
