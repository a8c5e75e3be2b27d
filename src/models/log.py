from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .base import Base


class LogModel(Base):
    """A single query attempt of a user on a challenge."""

    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    challenge_id = Column(
        Integer, ForeignKey("challenges.id"), index=True, nullable=False
    )
    query = Column(Text, nullable=True)
    is_correct = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("UserModel")
    challenge = relationship("ChallengeModel")
