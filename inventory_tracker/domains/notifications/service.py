"""
Notification service for the user inbox and the admin audit trail.
"""
import logging
from typing import Any, Dict, List, Optional

from inventory_tracker.core.exceptions import NotificationNotFoundError
from inventory_tracker.db.document_store import NOTIFICATIONS_COLLECTION, DocumentStore, Transaction
from inventory_tracker.domains.notifications.repository import ActionLogRepository, NotificationRepository
from inventory_tracker.models.user import CurrentUser

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Service for reading notifications and marking them read.
    `is_read` only ever moves from False to True.
    """

    def __init__(self, store: DocumentStore):
        self.store = store
        self.notification_repo = NotificationRepository(store)
        self.action_log_repo = ActionLogRepository(store)

    async def get_user_notifications(self, user: CurrentUser, unread_only: bool = False,
                                     limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return await self.notification_repo.find_for_user(user.id, unread_only=unread_only, limit=limit)

    async def mark_as_read(self, user: CurrentUser, notification_id: str) -> Dict[str, Any]:
        """
        Mark one of the user's notifications as read.

        Args:
            user: Current user
            notification_id: Notification ID

        Returns:
            The notification after the change

        Raises:
            NotificationNotFoundError: If it does not exist or belongs to someone else
        """
        notification = await self.notification_repo.find_by_id(notification_id)
        if not notification or notification.get("user_id") != user.id:
            raise NotificationNotFoundError(notification_id)

        if notification.get("is_read"):
            return notification

        return await self.notification_repo.update(notification_id, {"is_read": True})

    async def mark_all_as_read(self, user: CurrentUser) -> int:
        """
        Mark every unread notification of the user as read in one write group.

        Returns:
            Number of notifications changed
        """
        unread = await self.notification_repo.find_for_user(user.id, unread_only=True)
        if not unread:
            return 0

        async def mark(transaction: Transaction) -> int:
            for notification in unread:
                transaction.update(NOTIFICATIONS_COLLECTION, notification["_id"], {"is_read": True})
            return len(unread)

        count = await self.store.run_transaction(mark)
        logger.info(f"Marked {count} notification(s) read for user {user.id}")
        return count

    async def get_action_logs(self, request_id: Optional[str] = None, limit: Optional[int] = 100) -> List[Dict[str, Any]]:
        return await self.action_log_repo.find_recent(request_id=request_id, limit=limit)
