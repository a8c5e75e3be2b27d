"""Institution database model.

An institution is a tenant: it owns users, challenges and lessons, and its two
email suffixes decide which institution and role a new account belongs to.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .base import Base


class InstitutionModel(Base):
    """Institution database model."""

    __tablename__ = "institutions"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    address = Column(String, nullable=True)
    student_email_suffix = Column(String, nullable=False)  # e.g. '@alum.uca.es'
    teacher_email_suffix = Column(String, nullable=False)  # e.g. '@uca.es'

    # Set when the institution was created by approving a contact request
    contact_request_id = Column(
        Integer, ForeignKey("contact_requests.id"), unique=True, nullable=True
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    users = relationship("UserModel", back_populates="institution")
    challenges = relationship("ChallengeModel", back_populates="institution")
    lessons = relationship("LessonModel", back_populates="institution")
