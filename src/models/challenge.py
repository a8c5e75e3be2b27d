from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .base import Base


class ChallengeModel(Base):
    __tablename__ = "challenges"

    id = Column(Integer, primary_key=True, index=True)
    statement = Column(Text, nullable=False)
    help = Column(Text, nullable=True)
    solution = Column(Text, nullable=False)
    level = Column(Integer, nullable=False)  # 1..5
    score = Column(Integer, nullable=False)
    score_base = Column(Integer, nullable=False)
    score_min = Column(Integer, nullable=False)
    solves = Column(Integer, nullable=False, default=0)

    # NULL means the challenge is platform-wide
    institution_id = Column(
        Integer, ForeignKey("institutions.id"), index=True, nullable=True
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    institution = relationship("InstitutionModel", back_populates="challenges")
