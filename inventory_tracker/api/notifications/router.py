# inventory_tracker/api/notifications/router.py
from typing import List, Optional
from fastapi import APIRouter, Depends

from inventory_tracker.dependencies.permissions import get_current_user
from inventory_tracker.dependencies.services import get_notification_service
from inventory_tracker.domains.notifications.service import NotificationService
from inventory_tracker.models.user import CurrentUser
from inventory_tracker.schemas.notification import MarkAllReadResponse, NotificationResponse

router = APIRouter()


@router.get("/", response_model=List[NotificationResponse])
async def get_my_notifications(
        unread_only: bool = False,
        limit: Optional[int] = None,
        current_user: CurrentUser = Depends(get_current_user),
        notification_service: NotificationService = Depends(get_notification_service)
):
    """
    Get current user's notifications, newest first
    """
    return await notification_service.get_user_notifications(current_user, unread_only=unread_only, limit=limit)


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_notifications_read(
        current_user: CurrentUser = Depends(get_current_user),
        notification_service: NotificationService = Depends(get_notification_service)
):
    """
    Mark every unread notification of the current user as read
    """
    return {"updated": await notification_service.mark_all_as_read(current_user)}


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
        notification_id: str,
        current_user: CurrentUser = Depends(get_current_user),
        notification_service: NotificationService = Depends(get_notification_service)
):
    """
    Mark one notification as read
    """
    return await notification_service.mark_as_read(current_user, notification_id)
