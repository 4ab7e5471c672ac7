# inventory_tracker/api/admin/router.py
import json
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, StreamingResponse

from inventory_tracker.db.document_store import DocumentStore
from inventory_tracker.db.mongodb import get_document_store
from inventory_tracker.dependencies.permissions import get_current_admin
from inventory_tracker.dependencies.services import (
    get_approval_service,
    get_notification_service,
    get_request_service,
)
from inventory_tracker.domains.approvals.service import ApprovalService
from inventory_tracker.domains.notifications.service import NotificationService
from inventory_tracker.domains.requests.repository import RequestRepository
from inventory_tracker.domains.requests.service import RequestService
from inventory_tracker.models.approval import ApprovalResult, PrecheckResult, UnitConflict
from inventory_tracker.models.request import RequestKind
from inventory_tracker.models.user import CurrentUser
from inventory_tracker.schemas.approval import ApproveBody, PrecheckBody, RejectBody
from inventory_tracker.schemas.notification import ActionLogResponse
from inventory_tracker.schemas.request import RequestResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def unit_conflict_response(conflict: UnitConflict) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": "Unit conversion conflict.", "conflict": jsonable_encoder(conflict)}
    )


@router.get("/requests/{kind}/pending", response_model=List[RequestResponse])
async def get_pending_requests(
        kind: RequestKind,
        current_user: CurrentUser = Depends(get_current_admin),
        request_service: RequestService = Depends(get_request_service)
):
    """
    Get pending requests of one kind, oldest first
    """
    return await request_service.get_pending_requests(kind)


@router.get("/requests/{kind}/pending/stream")
async def stream_pending_requests(
        kind: RequestKind,
        current_user: CurrentUser = Depends(get_current_admin),
        store: DocumentStore = Depends(get_document_store)
):
    """
    Server-sent events with the full pending queue now and after every change
    """
    repository = RequestRepository(store, kind)

    async def event_stream():
        async for requests in repository.watch_pending():
            payload = jsonable_encoder(requests)
            yield f"data: {json.dumps(payload)}\n\n"

    logger.info(f"Admin {current_user.id} subscribed to pending {kind.value} requests")
    return StreamingResponse(event_stream(), media_type="text/event-stream")


@router.post("/requests/{kind}/{request_id}/precheck", response_model=PrecheckResult)
async def precheck_request(
        kind: RequestKind,
        request_id: str,
        body: Optional[PrecheckBody] = None,
        current_user: CurrentUser = Depends(get_current_admin),
        approval_service: ApprovalService = Depends(get_approval_service)
):
    """
    Show what approving a request would do, without writing anything
    """
    resolutions = body.resolutions if body else None
    return await approval_service.precheck_request(kind, request_id, resolutions)


@router.post(
    "/requests/{kind}/{request_id}/approve",
    response_model=ApprovalResult,
    responses={status.HTTP_409_CONFLICT: {"description": "Unit conversion conflict or request already processed"}}
)
async def approve_request(
        kind: RequestKind,
        request_id: str,
        body: Optional[ApproveBody] = None,
        current_user: CurrentUser = Depends(get_current_admin),
        approval_service: ApprovalService = Depends(get_approval_service)
):
    """
    Approve a request. Answers 409 with the conflicting item when its unit
    cannot be converted and no resolution was given for it.
    """
    resolutions = body.resolutions if body else None
    outcome = await approval_service.approve_request(kind, request_id, current_user, resolutions)

    if outcome.conflict is not None:
        return unit_conflict_response(outcome.conflict)

    return outcome.result


@router.post("/requests/{kind}/{request_id}/reject", response_model=ApprovalResult)
async def reject_request(
        kind: RequestKind,
        request_id: str,
        body: Optional[RejectBody] = None,
        current_user: CurrentUser = Depends(get_current_admin),
        approval_service: ApprovalService = Depends(get_approval_service)
):
    """
    Reject a request with optional notes for the requester
    """
    notes = body.notes if body else None
    return await approval_service.reject_request(kind, request_id, current_user, notes)


@router.get("/action-logs", response_model=List[ActionLogResponse])
async def get_action_logs(
        request_id: Optional[str] = None,
        limit: int = 100,
        current_user: CurrentUser = Depends(get_current_admin),
        notification_service: NotificationService = Depends(get_notification_service)
):
    """
    Get the audit trail of approvals and rejections, newest first
    """
    return await notification_service.get_action_logs(request_id=request_id, limit=limit)
