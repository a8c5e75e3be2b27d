"""Challenge routes."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.routes.auth import get_current_user, require_staff
from core.dependencies import ChallengeManagerDep
from core.exceptions import QueryQuestError
from schemas.challenge import (
    BulkDeleteChallengesRequest,
    Challenge,
    ChallengeRequest,
    ChallengeStats,
)
from schemas.common import BulkDeleteResponse, MessageResponse
from schemas.user import User
from utils.converters import model_to_challenge

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/challenges", tags=["Challenges"])


@router.get("", response_model=List[Challenge], summary="List challenges")
def list_challenges(
    challenge_manager: ChallengeManagerDep,
    institution_id: Optional[int] = Query(default=None, alias="institutionId"),
) -> List[Challenge]:
    models = challenge_manager.list_challenges(institution_id)
    return [model_to_challenge(model) for model in models]


@router.get("/stats", response_model=ChallengeStats, summary="Challenge statistics")
def get_stats(challenge_manager: ChallengeManagerDep) -> ChallengeStats:
    return challenge_manager.get_stats()


@router.delete(
    "/bulk-delete",
    response_model=BulkDeleteResponse,
    summary="Delete several challenges",
)
def bulk_delete_challenges(
    req: BulkDeleteChallengesRequest,
    challenge_manager: ChallengeManagerDep,
    current_user: User = Depends(require_staff),
) -> BulkDeleteResponse:
    try:
        deleted = challenge_manager.bulk_delete_challenges(req.challenge_ids, current_user)
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return BulkDeleteResponse(
        message=f"Successfully deleted {deleted} challenges", deleted_count=deleted
    )


@router.get("/{challenge_id}", response_model=Challenge, summary="Get a challenge")
def get_challenge(challenge_id: int, challenge_manager: ChallengeManagerDep) -> Challenge:
    try:
        model = challenge_manager.get_challenge(challenge_id)
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return model_to_challenge(model)


@router.post(
    "",
    response_model=Challenge,
    status_code=status.HTTP_201_CREATED,
    summary="Create a challenge",
)
def create_challenge(
    req: ChallengeRequest,
    challenge_manager: ChallengeManagerDep,
    current_user: User = Depends(require_staff),
) -> Challenge:
    """Create a challenge.

    Teachers create challenges for their own institution only; admins may
    pick any institution or leave it platform-wide.

    Raises:
        HTTPException: 400 on missing fields, 403 if a teacher targets
            another institution.
    """
    try:
        model = challenge_manager.create_challenge(current_user, req)
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return model_to_challenge(model)


@router.put("/{challenge_id}", response_model=Challenge, summary="Update a challenge")
def update_challenge(
    challenge_id: int,
    req: ChallengeRequest,
    challenge_manager: ChallengeManagerDep,
    current_user: User = Depends(require_staff),
) -> Challenge:
    try:
        model = challenge_manager.update_challenge(challenge_id, current_user, req)
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return model_to_challenge(model)


@router.delete("/{challenge_id}", response_model=MessageResponse, summary="Delete a challenge")
def delete_challenge(
    challenge_id: int,
    challenge_manager: ChallengeManagerDep,
    current_user: User = Depends(require_staff),
) -> MessageResponse:
    try:
        challenge_manager.delete_challenge(challenge_id, current_user)
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return MessageResponse(message="Challenge deleted successfully")
