"""Challenge management utilities."""

import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.exceptions import (
    AuthorizationError,
    ChallengeNotFoundError,
    InstitutionNotFoundError,
    MissingFieldsError,
)
from models.challenge import ChallengeModel
from models.institution import InstitutionModel
from models.log import LogModel
from models.user_challenge import UserChallengeModel
from schemas.challenge import ChallengeRequest, ChallengeStats
from schemas.user import Role, User

logger = logging.getLogger(__name__)


def _require_fields(req: ChallengeRequest) -> None:
    # Zero scores count as missing, like the web client does
    if (
        not req.statement
        or not req.solution
        or not req.level
        or not req.score
        or not req.score_base
        or not req.score_min
    ):
        raise MissingFieldsError()


class ChallengeManager:
    """Manages challenge CRUD with per-institution scoping for teachers."""

    def __init__(self, db: Session):
        self.db = db

    def get_challenge(self, challenge_id: int) -> ChallengeModel:
        model = (
            self.db.query(ChallengeModel)
            .filter(ChallengeModel.id == challenge_id)
            .first()
        )
        if not model:
            raise ChallengeNotFoundError(challenge_id)
        return model

    def list_challenges(self, institution_id: Optional[int] = None) -> List[ChallengeModel]:
        query = self.db.query(ChallengeModel)
        if institution_id is not None:
            query = query.filter(ChallengeModel.institution_id == institution_id)
        return query.order_by(
            ChallengeModel.created_at.desc(), ChallengeModel.id.desc()
        ).all()

    def get_stats(self) -> ChallengeStats:
        """Aggregate counts over every challenge on the platform."""
        total, solves, points, avg_level = self.db.query(
            func.count(ChallengeModel.id),
            func.coalesce(func.sum(ChallengeModel.solves), 0),
            func.coalesce(func.sum(ChallengeModel.score), 0),
            func.avg(ChallengeModel.level),
        ).one()
        return ChallengeStats(
            total_challenges=total,
            total_solves=int(solves),
            avg_difficulty=round(float(avg_level), 1) if total else 0,
            total_points=int(points),
        )

    def _resolve_institution(
        self, actor: User, requested_id: Optional[int]
    ) -> Optional[int]:
        """Decide which institution a new challenge belongs to.

        Teachers are pinned to their own institution; admins may pick any
        institution or none (platform-wide).
        """
        if actor.role == Role.ADMIN:
            if requested_id is not None:
                exists = (
                    self.db.query(InstitutionModel.id)
                    .filter(InstitutionModel.id == requested_id)
                    .first()
                )
                if not exists:
                    raise InstitutionNotFoundError(requested_id)
            return requested_id

        if actor.institution_id is None:
            raise AuthorizationError(
                "Teachers must be associated with an institution to create challenges"
            )
        if requested_id is not None and requested_id != actor.institution_id:
            raise AuthorizationError(
                "Teachers can only create challenges for their own institution"
            )
        return actor.institution_id

    def _check_can_edit(self, actor: User, model: ChallengeModel) -> None:
        if actor.role == Role.ADMIN:
            return
        if actor.institution_id is None:
            raise AuthorizationError(
                "Teachers must be associated with an institution to update challenges"
            )
        if model.institution_id != actor.institution_id:
            raise AuthorizationError(
                "Teachers can only update challenges for their own institution"
            )

    def create_challenge(self, actor: User, req: ChallengeRequest) -> ChallengeModel:
        """Create a challenge.

        Raises:
            AuthorizationError: If the actor is not staff or is a teacher
                targeting another institution.
            MissingFieldsError: If a required field is missing.
        """
        if not actor.role.is_staff:
            raise AuthorizationError("Only teachers and admins can create challenges")
        _require_fields(req)
        institution_id = self._resolve_institution(actor, req.institution_id)

        model = ChallengeModel(
            statement=req.statement,
            help=req.help or None,
            solution=req.solution,
            level=req.level,
            score=req.score,
            score_base=req.score_base,
            score_min=req.score_min,
            solves=0,
            institution_id=institution_id,
        )
        self.db.add(model)
        self.db.commit()
        self.db.refresh(model)
        logger.info(
            "User %s created challenge %s for institution %s",
            actor.id,
            model.id,
            institution_id,
        )
        return model

    def update_challenge(
        self, challenge_id: int, actor: User, req: ChallengeRequest
    ) -> ChallengeModel:
        if not actor.role.is_staff:
            raise AuthorizationError("Only teachers and admins can update challenges")
        _require_fields(req)
        model = self.get_challenge(challenge_id)
        self._check_can_edit(actor, model)

        model.statement = req.statement
        model.help = req.help or None
        model.solution = req.solution
        model.level = req.level
        model.score = req.score
        model.score_base = req.score_base
        model.score_min = req.score_min
        self.db.commit()
        self.db.refresh(model)
        logger.info("User %s updated challenge %s", actor.id, challenge_id)
        return model

    def _delete_challenges(self, challenge_ids: List[int]) -> None:
        self.db.query(LogModel).filter(LogModel.challenge_id.in_(challenge_ids)).delete(
            synchronize_session=False
        )
        self.db.query(UserChallengeModel).filter(
            UserChallengeModel.challenge_id.in_(challenge_ids)
        ).delete(synchronize_session=False)
        self.db.query(ChallengeModel).filter(ChallengeModel.id.in_(challenge_ids)).delete(
            synchronize_session=False
        )

    def delete_challenge(self, challenge_id: int, actor: User) -> None:
        if not actor.role.is_staff:
            raise AuthorizationError("Only teachers and admins can delete challenges")
        model = self.get_challenge(challenge_id)
        self._check_can_edit(actor, model)
        try:
            self._delete_challenges([challenge_id])
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("User %s deleted challenge %s", actor.id, challenge_id)

    def bulk_delete_challenges(
        self, challenge_ids: Optional[List[int]], actor: User
    ) -> int:
        """Delete several challenges; all must exist or nothing is deleted.

        Returns:
            Number of deleted challenges.
        """
        if not actor.role.is_staff:
            raise AuthorizationError("Only teachers and admins can delete challenges")
        if not challenge_ids:
            raise MissingFieldsError("Challenge IDs array is required")
        ids = list(set(challenge_ids))
        models = self.db.query(ChallengeModel).filter(ChallengeModel.id.in_(ids)).all()
        if len(models) != len(ids):
            raise ChallengeNotFoundError()
        for model in models:
            self._check_can_edit(actor, model)
        try:
            self._delete_challenges(ids)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("User %s bulk deleted %d challenges", actor.id, len(ids))
        return len(ids)
