"""Contact request database model.

A public application from an institution that wants to be onboarded.
"""

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from .base import Base


class ContactRequestModel(Base):
    """Contact request database model."""

    __tablename__ = "contact_requests"

    id = Column(Integer, primary_key=True, index=True)
    institution_name = Column(String, nullable=False)
    contact_name = Column(String, nullable=False)
    contact_email = Column(String, nullable=False)
    contact_phone = Column(String, nullable=True)
    website = Column(String, nullable=True)
    student_email_suffix = Column(String, nullable=False)
    teacher_email_suffix = Column(String, nullable=False)
    message = Column(Text, nullable=True)
    estimated_students = Column(Integer, nullable=True)
    estimated_teachers = Column(Integer, nullable=True)
    status = Column(String, nullable=False, default="pending")  # pending | approved | rejected

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
