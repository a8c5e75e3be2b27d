"""Institution management utilities."""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.exceptions import InstitutionNotFoundError, MissingFieldsError
from models.challenge import ChallengeModel
from models.institution import InstitutionModel
from models.lesson import LessonModel
from models.log import LogModel
from models.user import UserModel
from models.user_challenge import UserChallengeModel

logger = logging.getLogger(__name__)


def _require_fields(
    name: Optional[str],
    student_email_suffix: Optional[str],
    teacher_email_suffix: Optional[str],
) -> None:
    if not name or not student_email_suffix or not teacher_email_suffix:
        raise MissingFieldsError(
            "Institution name, student email suffix, and teacher email suffix are required"
        )


class InstitutionManager:
    """Manages institutions and their cascading removal."""

    def __init__(self, db: Session):
        self.db = db

    def get_institution(self, institution_id: int) -> InstitutionModel:
        model = (
            self.db.query(InstitutionModel)
            .filter(InstitutionModel.id == institution_id)
            .first()
        )
        if not model:
            raise InstitutionNotFoundError(institution_id)
        return model

    def list_institutions(self) -> List[Tuple[InstitutionModel, int]]:
        """Return institutions ordered by name with their challenge count."""
        counts = (
            self.db.query(
                ChallengeModel.institution_id,
                func.count(ChallengeModel.id).label("challenge_count"),
            )
            .group_by(ChallengeModel.institution_id)
            .subquery()
        )
        rows = (
            self.db.query(InstitutionModel, counts.c.challenge_count)
            .outerjoin(counts, counts.c.institution_id == InstitutionModel.id)
            .order_by(InstitutionModel.name.asc(), InstitutionModel.id.asc())
            .all()
        )
        return [(model, count or 0) for model, count in rows]

    def create_institution(
        self,
        name: Optional[str],
        student_email_suffix: Optional[str],
        teacher_email_suffix: Optional[str],
        address: Optional[str] = None,
        contact_request_id: Optional[int] = None,
        commit: bool = True,
    ) -> InstitutionModel:
        """Create an institution.

        Args:
            name: Display name.
            student_email_suffix: Suffix identifying student emails.
            teacher_email_suffix: Suffix identifying teacher emails.
            address: Optional postal address.
            contact_request_id: Contact request this institution comes from.
            commit: Commit immediately; False lets the caller batch it with
                other changes.

        Raises:
            MissingFieldsError: If name or a suffix is blank.
        """
        _require_fields(name, student_email_suffix, teacher_email_suffix)
        model = InstitutionModel(
            name=name.strip(),
            address=address or None,
            student_email_suffix=student_email_suffix.strip(),
            teacher_email_suffix=teacher_email_suffix.strip(),
            contact_request_id=contact_request_id,
        )
        self.db.add(model)
        if commit:
            self.db.commit()
            self.db.refresh(model)
            logger.info("Created institution %s (%s)", model.id, model.name)
        else:
            self.db.flush()
        return model

    def update_institution(
        self,
        institution_id: int,
        name: Optional[str],
        student_email_suffix: Optional[str],
        teacher_email_suffix: Optional[str],
        address: Optional[str] = None,
    ) -> InstitutionModel:
        _require_fields(name, student_email_suffix, teacher_email_suffix)
        model = self.get_institution(institution_id)
        model.name = name.strip()
        model.address = address or None
        model.student_email_suffix = student_email_suffix.strip()
        model.teacher_email_suffix = teacher_email_suffix.strip()
        self.db.commit()
        self.db.refresh(model)
        logger.info("Updated institution %s", institution_id)
        return model

    def delete_institution(self, institution_id: int) -> Tuple[int, int]:
        """Delete an institution and everything that depends on it.

        The whole cascade runs in one transaction: logs and solved records
        of the institution's challenges, the challenges, logs and solved
        records of the institution's users, its lessons, the users, and
        finally the institution. On any failure nothing is removed.

        Args:
            institution_id: Institution to delete.

        Returns:
            Tuple of (deleted users, deleted challenges), counted before the
            deletion.

        Raises:
            InstitutionNotFoundError: If the institution does not exist.
        """
        self.get_institution(institution_id)

        user_ids = [
            row.id
            for row in self.db.query(UserModel.id).filter(
                UserModel.institution_id == institution_id
            )
        ]
        challenge_ids = [
            row.id
            for row in self.db.query(ChallengeModel.id).filter(
                ChallengeModel.institution_id == institution_id
            )
        ]

        try:
            if challenge_ids:
                self.db.query(LogModel).filter(
                    LogModel.challenge_id.in_(challenge_ids)
                ).delete(synchronize_session=False)
                self.db.query(UserChallengeModel).filter(
                    UserChallengeModel.challenge_id.in_(challenge_ids)
                ).delete(synchronize_session=False)
            self.db.query(ChallengeModel).filter(
                ChallengeModel.institution_id == institution_id
            ).delete(synchronize_session=False)

            if user_ids:
                self.db.query(LogModel).filter(LogModel.user_id.in_(user_ids)).delete(
                    synchronize_session=False
                )
                self.db.query(UserChallengeModel).filter(
                    UserChallengeModel.user_id.in_(user_ids)
                ).delete(synchronize_session=False)
                # Lessons they wrote for other institutions stay, authorless
                self.db.query(LessonModel).filter(
                    LessonModel.creator_id.in_(user_ids)
                ).update({LessonModel.creator_id: None}, synchronize_session=False)

            self.db.query(LessonModel).filter(
                LessonModel.institution_id == institution_id
            ).delete(synchronize_session=False)
            self.db.query(UserModel).filter(
                UserModel.institution_id == institution_id
            ).delete(synchronize_session=False)

            self.db.query(InstitutionModel).filter(
                InstitutionModel.id == institution_id
            ).delete(synchronize_session=False)
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.error(
                "Institution %s cascade delete failed, rolled back",
                institution_id,
                exc_info=True,
            )
            raise

        logger.info(
            "Deleted institution %s with %d users and %d challenges",
            institution_id,
            len(user_ids),
            len(challenge_ids),
        )
        return len(user_ids), len(challenge_ids)
