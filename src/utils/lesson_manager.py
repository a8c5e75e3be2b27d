"""Lesson management utilities."""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from core.exceptions import AuthorizationError, LessonNotFoundError, MissingFieldsError
from models.lesson import LessonModel
from schemas.lesson import LessonRequest
from schemas.user import Role, User

logger = logging.getLogger(__name__)


class LessonManager:
    """Manages lessons written by teachers and admins."""

    def __init__(self, db: Session):
        self.db = db

    def get_lesson(self, lesson_id: int) -> LessonModel:
        model = self.db.query(LessonModel).filter(LessonModel.id == lesson_id).first()
        if not model:
            raise LessonNotFoundError(lesson_id)
        return model

    def list_lessons(
        self,
        institution_id: Optional[int] = None,
        published_only: bool = False,
    ) -> List[LessonModel]:
        """List lessons by display order, newest first within the same order."""
        query = self.db.query(LessonModel)
        if institution_id is not None:
            query = query.filter(LessonModel.institution_id == institution_id)
        if published_only:
            query = query.filter(LessonModel.is_published.is_(True))
        return query.order_by(
            LessonModel.order.asc(),
            LessonModel.created_at.desc(),
            LessonModel.id.desc(),
        ).all()

    def _check_staff(self, actor: User, action: str) -> None:
        if not actor.role.is_staff:
            raise AuthorizationError(f"Only teachers and admins can {action} lessons")

    def _check_can_edit(self, actor: User, model: LessonModel, action: str) -> None:
        self._check_staff(actor, action)
        if actor.role == Role.TEACHER and model.institution_id != actor.institution_id:
            raise AuthorizationError(
                f"Teachers can only {action} lessons of their own institution"
            )

    def create_lesson(self, actor: User, req: LessonRequest) -> LessonModel:
        """Create a lesson in the creator's institution.

        Raises:
            AuthorizationError: If the actor is not staff.
            MissingFieldsError: If title or content is blank.
        """
        self._check_staff(actor, "create")
        if not req.title or not req.content:
            raise MissingFieldsError("Title and content are required")

        model = LessonModel(
            title=req.title,
            content=req.content,
            description=req.description or None,
            order=req.order or 0,
            is_published=bool(req.is_published),
            institution_id=actor.institution_id,
            creator_id=actor.id,
        )
        self.db.add(model)
        self.db.commit()
        self.db.refresh(model)
        logger.info("User %s created lesson %s", actor.id, model.id)
        return model

    def update_lesson(self, lesson_id: int, actor: User, req: LessonRequest) -> LessonModel:
        self._check_staff(actor, "update")
        if not req.title or not req.content:
            raise MissingFieldsError("Title and content are required")
        model = self.get_lesson(lesson_id)
        self._check_can_edit(actor, model, "update")

        model.title = req.title
        model.content = req.content
        model.description = req.description or None
        model.order = req.order or 0
        if req.is_published is not None:
            model.is_published = req.is_published
        self.db.commit()
        self.db.refresh(model)
        logger.info("User %s updated lesson %s", actor.id, lesson_id)
        return model

    def set_published(
        self, lesson_id: int, actor: User, is_published: Optional[bool] = None
    ) -> LessonModel:
        """Change only the publish flag; None flips the current value."""
        model = self.get_lesson(lesson_id)
        self._check_can_edit(actor, model, "publish")
        model.is_published = (
            not model.is_published if is_published is None else is_published
        )
        self.db.commit()
        self.db.refresh(model)
        logger.info(
            "User %s set lesson %s published=%s", actor.id, lesson_id, model.is_published
        )
        return model

    def delete_lesson(self, lesson_id: int, actor: User) -> None:
        model = self.get_lesson(lesson_id)
        self._check_can_edit(actor, model, "delete")
        self.db.delete(model)
        self.db.commit()
        logger.info("User %s deleted lesson %s", actor.id, lesson_id)
