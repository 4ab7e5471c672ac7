# inventory_tracker/api/requests/router.py
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status

from inventory_tracker.dependencies.permissions import get_current_user
from inventory_tracker.dependencies.services import get_request_service
from inventory_tracker.domains.requests.service import RequestService
from inventory_tracker.models.request import RequestKind
from inventory_tracker.models.user import CurrentUser
from inventory_tracker.schemas.request import RequestCreate, RequestResponse

router = APIRouter()


@router.post("/additions", response_model=RequestResponse, status_code=status.HTTP_201_CREATED)
async def create_addition_request(
        request_in: RequestCreate,
        current_user: CurrentUser = Depends(get_current_user),
        request_service: RequestService = Depends(get_request_service)
):
    """
    Submit a request to add stock
    """
    return await request_service.submit_request(
        RequestKind.ADDITION,
        current_user,
        [item.model_dump(exclude_none=True) for item in request_in.items]
    )


@router.post("/removals", response_model=RequestResponse, status_code=status.HTTP_201_CREATED)
async def create_removal_request(
        request_in: RequestCreate,
        current_user: CurrentUser = Depends(get_current_user),
        request_service: RequestService = Depends(get_request_service)
):
    """
    Submit a request to take stock out
    """
    return await request_service.submit_request(
        RequestKind.REMOVAL,
        current_user,
        [item.model_dump(exclude_none=True) for item in request_in.items]
    )


@router.get("/me", response_model=List[RequestResponse])
async def get_my_requests(
        current_user: CurrentUser = Depends(get_current_user),
        request_service: RequestService = Depends(get_request_service)
):
    """
    Get current user's requests of both kinds, newest first
    """
    return await request_service.get_user_requests(current_user.id)


@router.get("/{kind}/{request_id}", response_model=RequestResponse)
async def get_request(
        kind: RequestKind,
        request_id: str,
        current_user: CurrentUser = Depends(get_current_user),
        request_service: RequestService = Depends(get_request_service)
):
    """
    Get a request by ID; only its submitter and admins may read it
    """
    request = await request_service.get_request(kind, request_id)

    if not current_user.is_admin and request.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only view your own requests"
        )

    return request
