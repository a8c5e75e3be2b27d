"""Contact request schema definitions."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from schemas.common import APIModel


class ContactRequestCreate(APIModel):
    institution_name: Optional[str] = Field(default=None, alias="institutionName")
    contact_name: Optional[str] = Field(default=None, alias="contactName")
    contact_email: Optional[str] = Field(default=None, alias="contactEmail")
    contact_phone: Optional[str] = Field(default=None, alias="contactPhone")
    website: Optional[str] = None
    student_email_suffix: Optional[str] = Field(default=None, alias="studentEmailSuffix")
    teacher_email_suffix: Optional[str] = Field(default=None, alias="teacherEmailSuffix")
    message: Optional[str] = None
    estimated_students: Optional[int] = Field(default=None, alias="estimatedStudents")
    estimated_teachers: Optional[int] = Field(default=None, alias="estimatedTeachers")


class ContactRequest(APIModel):
    id: int
    institution_name: str = Field(alias="institutionName")
    contact_name: str = Field(alias="contactName")
    contact_email: str = Field(alias="contactEmail")
    contact_phone: Optional[str] = Field(default=None, alias="contactPhone")
    website: Optional[str] = None
    student_email_suffix: str = Field(alias="studentEmailSuffix")
    teacher_email_suffix: str = Field(alias="teacherEmailSuffix")
    message: Optional[str] = None
    estimated_students: Optional[int] = Field(default=None, alias="estimatedStudents")
    estimated_teachers: Optional[int] = Field(default=None, alias="estimatedTeachers")
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UpdateContactRequestStatus(APIModel):
    id: Optional[int] = None
    status: Optional[str] = None
