"""
Notification and action log repositories.
"""
from typing import Any, Dict, List, Optional

from inventory_tracker.db.base_repository import BaseRepository
from inventory_tracker.db.document_store import ACTION_LOGS_COLLECTION, NOTIFICATIONS_COLLECTION, DocumentStore


class NotificationRepository(BaseRepository):
    """
    Repository for per-user notifications.
    """

    def __init__(self, store: DocumentStore):
        """Initialize with notifications collection."""
        super().__init__(store, NOTIFICATIONS_COLLECTION)

    async def find_for_user(self, user_id: str, unread_only: bool = False,
                            limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Find notifications for a user, newest first.

        Args:
            user_id: Recipient id
            unread_only: Only return notifications not yet read
            limit: Maximum number of documents to return

        Returns:
            List of notification documents
        """
        query: Dict[str, Any] = {"user_id": user_id}
        if unread_only:
            query["is_read"] = False
        return await self.find_many(query, limit=limit, sort_by="timestamp", sort_desc=True)


class ActionLogRepository(BaseRepository):
    """
    Read access to the append-only action log.
    Entries are only written by the approval engine.
    """

    def __init__(self, store: DocumentStore):
        """Initialize with action logs collection."""
        super().__init__(store, ACTION_LOGS_COLLECTION)

    async def find_recent(self, request_id: Optional[str] = None, limit: Optional[int] = 100) -> List[Dict[str, Any]]:
        query = {"request_id": request_id} if request_id else {}
        return await self.find_many(query, limit=limit, sort_by="timestamp", sort_desc=True)
