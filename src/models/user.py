"""User database model.

This module defines the User database model using SQLAlchemy.
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .base import Base


class UserModel(Base):
    """User database model."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    alias = Column(String, nullable=True)
    email = Column(String, unique=True, index=True, nullable=False)  # stored lowercased
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default="student")  # 'admin', 'teacher', or 'student'

    verification_token = Column(String, unique=True, index=True, nullable=True)
    verification_sent_at = Column(DateTime(timezone=True), nullable=True)
    is_email_verified = Column(Boolean, nullable=False, default=False)

    institution_id = Column(
        Integer, ForeignKey("institutions.id"), index=True, nullable=True
    )
    points = Column(Integer, nullable=False, default=0)
    solved_challenges = Column(Integer, nullable=False, default=0)

    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    institution = relationship("InstitutionModel", back_populates="users")
    created_lessons = relationship("LessonModel", back_populates="creator")
