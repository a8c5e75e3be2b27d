"""Institution contact request routes.

Prospective institutions submit an access request through the public
contact form; admins review the requests and approve or reject them.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from api.routes.auth import require_admin
from core.dependencies import ContactRequestManagerDep
from core.exceptions import QueryQuestError
from schemas.common import MessageResponse
from schemas.contact_request import (
    ContactRequest,
    ContactRequestCreate,
    UpdateContactRequestStatus,
)
from schemas.user import User
from utils.converters import model_to_contact_request

router = APIRouter(prefix="/api", tags=["Contact"])


@router.post(
    "/contact",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request access for an institution",
)
def submit_contact_request(
    req: ContactRequestCreate,
    contact_request_manager: ContactRequestManagerDep,
) -> MessageResponse:
    try:
        contact_request_manager.create_request(req)
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return MessageResponse(
        message=(
            "Contact request submitted successfully. We'll review your "
            "institution's request and contact you soon."
        )
    )


@router.get(
    "/contact-requests",
    response_model=List[ContactRequest],
    summary="List contact requests",
)
def list_contact_requests(
    contact_request_manager: ContactRequestManagerDep,
    current_user: User = Depends(require_admin),
) -> List[ContactRequest]:
    return [
        model_to_contact_request(model)
        for model in contact_request_manager.list_requests()
    ]


@router.put(
    "/contact-requests",
    response_model=ContactRequest,
    summary="Approve or reject a contact request",
)
def update_contact_request(
    req: UpdateContactRequestStatus,
    contact_request_manager: ContactRequestManagerDep,
    current_user: User = Depends(require_admin),
) -> ContactRequest:
    """Set a request's status.

    Approving creates the institution once; approving again only updates
    the status.

    Raises:
        HTTPException: 400 on missing or invalid status, 404 if the request
            does not exist.
    """
    try:
        model = contact_request_manager.set_status(req.id, req.status)
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return model_to_contact_request(model)
