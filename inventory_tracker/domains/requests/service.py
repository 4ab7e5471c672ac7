"""
Request service for submitting and reading change requests.
"""
import logging
from typing import Any, Dict, List, Union

from pydantic import ValidationError

from inventory_tracker.core.exceptions import InvalidRequestError, RequestNotFoundError
from inventory_tracker.db.document_store import DocumentStore
from inventory_tracker.domains.requests.repository import RequestRepository
from inventory_tracker.models.inventory import derive_item_id
from inventory_tracker.models.request import ChangeRequest, LineItem, RequestKind
from inventory_tracker.models.user import CurrentUser

logger = logging.getLogger(__name__)


class RequestService:
    """
    Service for request submission and lookups across both queues.
    """

    def __init__(self, store: DocumentStore):
        self.repositories = {kind: RequestRepository(store, kind) for kind in RequestKind}

    def repository(self, kind: RequestKind) -> RequestRepository:
        return self.repositories[kind]

    @staticmethod
    def validate_items(kind: RequestKind, items: List[Union[LineItem, Dict[str, Any]]]) -> List[LineItem]:
        """
        Validate the line items of a request before anything is stored.

        Args:
            kind: Request kind
            items: Line items as models or raw dicts

        Returns:
            Validated line items

        Raises:
            InvalidRequestError: If the list is empty or an item is malformed
        """
        if not items:
            raise InvalidRequestError("Items must be a non-empty list")

        validated = []
        for position, item in enumerate(items, start=1):
            if not isinstance(item, LineItem):
                try:
                    item = LineItem.model_validate(item)
                except ValidationError as e:
                    errors = "; ".join(
                        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                        for error in e.errors()
                    )
                    raise InvalidRequestError(f"Invalid item #{position}: {errors}")

            if kind is RequestKind.ADDITION and item.subcategory is None:
                raise InvalidRequestError(f"Item {item.name} must have a subcategory")

            if kind is RequestKind.ADDITION:
                # new items are stored under an id derived from the name
                derive_item_id(item.name)

            validated.append(item)

        return validated

    async def submit_request(
            self,
            kind: RequestKind,
            user: CurrentUser,
            items: List[Union[LineItem, Dict[str, Any]]]
    ) -> ChangeRequest:
        """
        Submit a new pending request on behalf of a user.

        Args:
            kind: Addition or removal
            user: Submitting user
            items: Requested line items

        Returns:
            Stored request
        """
        line_items = self.validate_items(kind, items)
        request = await self.repository(kind).create_request(user, line_items)
        logger.info(f"User {user.id} submitted {kind.value} request {request.id} with {len(line_items)} item(s)")
        return request

    async def get_request(self, kind: RequestKind, request_id: str) -> ChangeRequest:
        """
        Get a request by ID.

        Raises:
            RequestNotFoundError: If the request does not exist
        """
        request = await self.repository(kind).get_request(request_id)
        if not request:
            raise RequestNotFoundError(kind.value, request_id)
        return request

    async def get_pending_requests(self, kind: RequestKind) -> List[ChangeRequest]:
        return await self.repository(kind).find_pending()

    async def get_user_requests(self, user_id: str) -> List[ChangeRequest]:
        """Requests of both kinds submitted by a user, newest first."""
        requests = []
        for kind in RequestKind:
            requests.extend(await self.repository(kind).find_by_user(user_id))

        requests.sort(
            key=lambda r: (r.request_timestamp is not None, r.request_timestamp),
            reverse=True
        )
        return requests
