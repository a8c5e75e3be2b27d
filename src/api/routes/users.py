"""User administration routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from api.routes.auth import get_current_user, require_admin, require_staff
from config import USERS_PAGE_SIZE
from core.dependencies import UserManagerDep
from core.exceptions import QueryQuestError
from schemas.common import BulkDeleteResponse, MessageResponse
from schemas.user import (
    BulkDeleteUsersRequest,
    BulkImportRequest,
    BulkImportResponse,
    CreateUserRequest,
    ParseImportResponse,
    Role,
    UpdateUserRequest,
    User,
    UserListResponse,
)
from utils.converters import model_to_user, models_to_users

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])

# Fields a user may change on their own account
SELF_EDITABLE_FIELDS = {"name", "alias"}


@router.get("", response_model=UserListResponse, summary="List users")
def list_users(
    user_manager: UserManagerDep,
    page: int = 1,
    limit: int = USERS_PAGE_SIZE,
    search: str = "",
    role: str = "",
    institution: str = "",
    current_user: User = Depends(require_staff),
) -> UserListResponse:
    """List users with search, role and institution filters.

    Args:
        user_manager: Injected UserManager instance.
        page: 1-based page number.
        limit: Page size.
        search: Substring of name or email.
        role: 'admin', 'teacher' or 'student'.
        institution: Institution ID or 'all'.
        current_user: Current authenticated staff member.

    Returns:
        Page of users with pagination info.
    """
    try:
        models, pagination = user_manager.list_users(
            page=page, limit=limit, search=search, role=role, institution=institution
        )
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return UserListResponse(users=models_to_users(models), pagination=pagination)


@router.post(
    "",
    response_model=User,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
)
def create_user(
    req: CreateUserRequest,
    user_manager: UserManagerDep,
    current_user: User = Depends(require_admin),
) -> User:
    try:
        model = user_manager.create_user(
            name=req.name,
            email=req.email,
            password=req.password,
            role=req.role,
            institution_id=req.institution_id,
            alias=req.alias,
        )
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return model_to_user(model)


@router.delete("/bulk-delete", response_model=BulkDeleteResponse, summary="Delete several users")
def bulk_delete_users(
    req: BulkDeleteUsersRequest,
    user_manager: UserManagerDep,
    current_user: User = Depends(require_admin),
) -> BulkDeleteResponse:
    try:
        deleted = user_manager.bulk_delete_users(req.user_ids)
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return BulkDeleteResponse(
        message=f"Successfully deleted {deleted} users", deleted_count=deleted
    )


@router.post("/parse-import", response_model=ParseImportResponse, summary="Parse an import file")
async def parse_import(
    user_manager: UserManagerDep,
    file: Optional[UploadFile] = File(default=None),
    current_user: User = Depends(require_admin),
) -> ParseImportResponse:
    """Read an uploaded CSV and return the rows for review before import.

    Raises:
        HTTPException: 400 if no file is uploaded or its type is not supported.
    """
    if file is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded"
        )
    content = await file.read()
    try:
        rows = user_manager.parse_import_file(file.filename or "", content)
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except UnicodeDecodeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="File is not valid UTF-8 text",
        )
    return ParseImportResponse(users=rows)


@router.post("/bulk", response_model=BulkImportResponse, summary="Import users")
def bulk_import(
    req: BulkImportRequest,
    user_manager: UserManagerDep,
    current_user: User = Depends(require_admin),
) -> BulkImportResponse:
    try:
        imported = user_manager.bulk_import(req.users, req.institution_id)
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return BulkImportResponse(
        message=f"Successfully imported {imported} users",
        imported_count=imported,
        total_users=len(req.users),
    )


@router.get("/{user_id}", response_model=User, summary="Get a user")
def get_user(
    user_id: int,
    user_manager: UserManagerDep,
    current_user: User = Depends(get_current_user),
) -> User:
    try:
        model = user_manager.get_user(user_id)
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return model_to_user(model)


@router.put("/{user_id}", response_model=User, summary="Update a user")
def update_user(
    user_id: int,
    req: UpdateUserRequest,
    user_manager: UserManagerDep,
    current_user: User = Depends(get_current_user),
) -> User:
    """Update a user.

    Users may rename themselves or change their alias; only admins may
    edit other accounts or change role and institution.

    Raises:
        HTTPException: 403 if the caller may not make the change, 404 if
            the user does not exist.
    """
    changes = {field: getattr(req, field) for field in req.model_fields_set}
    if current_user.role != Role.ADMIN:
        if current_user.id != user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only update your own account.",
            )
        if set(changes) - SELF_EDITABLE_FIELDS:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only admins can change role or institution.",
            )
    try:
        model = user_manager.update_user(user_id, changes)
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return model_to_user(model)


@router.delete("/{user_id}", response_model=MessageResponse, summary="Delete a user")
def delete_user(
    user_id: int,
    user_manager: UserManagerDep,
    current_user: User = Depends(require_admin),
) -> MessageResponse:
    try:
        user_manager.delete_user(user_id)
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return MessageResponse(message="User deleted successfully")
