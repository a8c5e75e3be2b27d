"""Institution management routes."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from api.routes.auth import get_current_user, require_admin
from core.dependencies import InstitutionManagerDep
from core.exceptions import QueryQuestError
from schemas.institution import (
    Institution,
    InstitutionDeleteResponse,
    InstitutionDetail,
    InstitutionRequest,
    InstitutionWithCount,
)
from schemas.user import User
from utils.converters import (
    model_to_institution,
    model_to_institution_detail,
    model_to_institution_with_count,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/institutions", tags=["Institutions"])


@router.get("", response_model=List[InstitutionWithCount], summary="List institutions")
def list_institutions(
    institution_manager: InstitutionManagerDep,
) -> List[InstitutionWithCount]:
    """List institutions by name with their challenge counts.

    Public, since the sign-up and contact pages show the directory.
    """
    return [
        model_to_institution_with_count(model, count)
        for model, count in institution_manager.list_institutions()
    ]


@router.post(
    "",
    response_model=Institution,
    status_code=status.HTTP_201_CREATED,
    summary="Create an institution",
)
def create_institution(
    req: InstitutionRequest,
    institution_manager: InstitutionManagerDep,
    current_user: User = Depends(require_admin),
) -> Institution:
    try:
        model = institution_manager.create_institution(
            name=req.name,
            student_email_suffix=req.student_email_suffix,
            teacher_email_suffix=req.teacher_email_suffix,
            address=req.address,
        )
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return model_to_institution(model)


@router.get("/{institution_id}", response_model=InstitutionDetail, summary="Get an institution")
def get_institution(
    institution_id: int,
    institution_manager: InstitutionManagerDep,
    current_user: User = Depends(get_current_user),
) -> InstitutionDetail:
    try:
        model = institution_manager.get_institution(institution_id)
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return model_to_institution_detail(model)


@router.put("/{institution_id}", response_model=Institution, summary="Update an institution")
def update_institution(
    institution_id: int,
    req: InstitutionRequest,
    institution_manager: InstitutionManagerDep,
    current_user: User = Depends(require_admin),
) -> Institution:
    try:
        model = institution_manager.update_institution(
            institution_id,
            name=req.name,
            student_email_suffix=req.student_email_suffix,
            teacher_email_suffix=req.teacher_email_suffix,
            address=req.address,
        )
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return model_to_institution(model)


@router.delete(
    "/{institution_id}",
    response_model=InstitutionDeleteResponse,
    summary="Delete an institution and its data",
)
def delete_institution(
    institution_id: int,
    institution_manager: InstitutionManagerDep,
    current_user: User = Depends(require_admin),
) -> InstitutionDeleteResponse:
    """Delete an institution with its users, challenges and lessons.

    Args:
        institution_id: Institution to delete.
        institution_manager: Injected InstitutionManager instance.
        current_user: Current authenticated admin.

    Returns:
        Confirmation with the number of removed users and challenges.

    Raises:
        HTTPException: 404 if the institution does not exist, 500 if the
            cascade fails (nothing is removed in that case).
    """
    try:
        deleted_users, deleted_challenges = institution_manager.delete_institution(
            institution_id
        )
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return InstitutionDeleteResponse(
        message=(
            f"Institution deleted successfully. Removed {deleted_users} users "
            f"and {deleted_challenges} challenges."
        ),
        deleted_users=deleted_users,
        deleted_challenges=deleted_challenges,
    )
