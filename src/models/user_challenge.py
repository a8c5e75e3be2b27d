from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.sql import func

from .base import Base


class UserChallengeModel(Base):
    """A challenge solved by a user."""

    __tablename__ = "user_challenges"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "challenge_id",
            name="uq_user_challenges_user_challenge",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    challenge_id = Column(
        Integer, ForeignKey("challenges.id"), index=True, nullable=False
    )
    score = Column(Integer, nullable=False, default=0)
    solved_at = Column(DateTime(timezone=True), server_default=func.now())
