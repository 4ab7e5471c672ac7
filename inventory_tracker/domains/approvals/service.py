"""
Approval service tying the pre-check and the transaction engine together.
"""
import logging
from typing import Dict, Optional

from inventory_tracker.core.exceptions import AlreadyProcessedError
from inventory_tracker.db.document_store import DocumentStore
from inventory_tracker.domains.approvals.engine import ApprovalEngine
from inventory_tracker.domains.approvals.precheck import PrecheckService
from inventory_tracker.domains.requests.service import RequestService
from inventory_tracker.models.approval import ApprovalOutcome, ApprovalResult, PrecheckResult, UnitResolution
from inventory_tracker.models.request import RequestKind
from inventory_tracker.models.user import CurrentUser

logger = logging.getLogger(__name__)


class ApprovalService:
    """
    Service for the admin review flow: pre-check, approve and reject.
    """

    def __init__(self, store: DocumentStore):
        self.request_service = RequestService(store)
        self.precheck_service = PrecheckService(store)
        self.engine = ApprovalEngine(store)

    async def precheck_request(
            self,
            kind: RequestKind,
            request_id: str,
            resolutions: Optional[Dict[str, UnitResolution]] = None
    ) -> PrecheckResult:
        """
        Pre-check a pending request without writing anything.

        Raises:
            RequestNotFoundError: If the request does not exist
            AlreadyProcessedError: If the request is no longer pending
        """
        request = await self.request_service.get_request(kind, request_id)
        if not request.is_pending:
            raise AlreadyProcessedError(request_id, request.status.value)

        return await self.precheck_service.precheck(kind, request.requested_items, resolutions)

    async def approve_request(
            self,
            kind: RequestKind,
            request_id: str,
            admin: CurrentUser,
            resolutions: Optional[Dict[str, UnitResolution]] = None
    ) -> ApprovalOutcome:
        """
        Pre-check a request and commit it when no unit conflict is left.

        Args:
            kind: Addition or removal
            request_id: Request ID
            admin: Approving admin
            resolutions: Unit choices for items whose units cannot be converted

        Returns:
            ApprovalOutcome with the committed result, or the conflict that halted
            the approval before any write
        """
        precheck = await self.precheck_request(kind, request_id, resolutions)
        if precheck.has_conflict:
            logger.info(f"Approval of {kind.value} request {request_id} halted on a unit conflict")
            return ApprovalOutcome(conflict=precheck.conflict)

        result = await self.engine.approve(kind, request_id, precheck.plan, admin)
        return ApprovalOutcome(result=result)

    async def reject_request(
            self,
            kind: RequestKind,
            request_id: str,
            admin: CurrentUser,
            notes: Optional[str] = None
    ) -> ApprovalResult:
        return await self.engine.reject(kind, request_id, admin, notes)
