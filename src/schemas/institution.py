"""Institution schema definitions."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from schemas.common import APIModel, InstitutionSummary
from schemas.user import User


class Institution(InstitutionSummary):
    contact_request_id: Optional[int] = Field(default=None, alias="contactRequestId")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class InstitutionWithCount(Institution):
    challenge_count: int = Field(default=0, alias="challengeCount")


class InstitutionDetail(Institution):
    users: List[User] = []


class InstitutionRequest(APIModel):
    name: Optional[str] = None
    address: Optional[str] = None
    student_email_suffix: Optional[str] = Field(default=None, alias="studentEmailSuffix")
    teacher_email_suffix: Optional[str] = Field(default=None, alias="teacherEmailSuffix")


class InstitutionDeleteResponse(APIModel):
    message: str
    deleted_users: int = Field(alias="deletedUsers")
    deleted_challenges: int = Field(alias="deletedChallenges")
