"""Lesson routes."""

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from api.routes.auth import require_staff
from core.dependencies import LessonManagerDep
from core.exceptions import QueryQuestError
from schemas.common import MessageResponse
from schemas.lesson import Lesson, LessonRequest, PublishLessonRequest
from schemas.user import User
from utils.converters import model_to_lesson

router = APIRouter(prefix="/api/lessons", tags=["Lessons"])


@router.get("", response_model=List[Lesson], summary="List lessons")
def list_lessons(
    lesson_manager: LessonManagerDep,
    institution_id: Optional[int] = Query(default=None, alias="institutionId"),
    published: bool = False,
) -> List[Lesson]:
    """List lessons in display order.

    Args:
        lesson_manager: Injected LessonManager instance.
        institution_id: Only lessons of this institution.
        published: Only published lessons.
    """
    models = lesson_manager.list_lessons(institution_id, published_only=published)
    return [model_to_lesson(model) for model in models]


@router.get("/{lesson_id}", response_model=Lesson, summary="Get a lesson")
def get_lesson(lesson_id: int, lesson_manager: LessonManagerDep) -> Lesson:
    try:
        model = lesson_manager.get_lesson(lesson_id)
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return model_to_lesson(model)


@router.post(
    "",
    response_model=Lesson,
    status_code=status.HTTP_201_CREATED,
    summary="Create a lesson",
)
def create_lesson(
    req: LessonRequest,
    lesson_manager: LessonManagerDep,
    current_user: User = Depends(require_staff),
) -> Lesson:
    try:
        model = lesson_manager.create_lesson(current_user, req)
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return model_to_lesson(model)


@router.put("/{lesson_id}", response_model=Lesson, summary="Update a lesson")
def update_lesson(
    lesson_id: int,
    req: LessonRequest,
    lesson_manager: LessonManagerDep,
    current_user: User = Depends(require_staff),
) -> Lesson:
    try:
        model = lesson_manager.update_lesson(lesson_id, current_user, req)
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return model_to_lesson(model)


@router.patch("/{lesson_id}/publish", response_model=Lesson, summary="Publish or unpublish")
def publish_lesson(
    lesson_id: int,
    lesson_manager: LessonManagerDep,
    req: Optional[PublishLessonRequest] = Body(default=None),
    current_user: User = Depends(require_staff),
) -> Lesson:
    """Change the publish state only; without a body the state is flipped."""
    is_published = req.is_published if req is not None else None
    try:
        model = lesson_manager.set_published(lesson_id, current_user, is_published)
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return model_to_lesson(model)


@router.delete("/{lesson_id}", response_model=MessageResponse, summary="Delete a lesson")
def delete_lesson(
    lesson_id: int,
    lesson_manager: LessonManagerDep,
    current_user: User = Depends(require_staff),
) -> MessageResponse:
    try:
        lesson_manager.delete_lesson(lesson_id, current_user)
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return MessageResponse(message="Lesson deleted successfully")
