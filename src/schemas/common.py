"""Shared schema building blocks.

JSON payloads keep the camelCase keys the web client already speaks
(``isValid``, ``studentEmailSuffix``, ...). Attributes stay snake_case and
map to those keys through field aliases.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class APIModel(BaseModel):
    """Base model accepting both attribute names and JSON aliases."""

    model_config = ConfigDict(populate_by_name=True)


class MessageResponse(APIModel):
    message: str


class BulkDeleteResponse(APIModel):
    message: str
    deleted_count: int = Field(alias="deletedCount")


class InstitutionSummary(APIModel):
    """Minimal institution info embedded in other payloads."""

    id: int
    name: str
    address: Optional[str] = None
    student_email_suffix: str = Field(alias="studentEmailSuffix")
    teacher_email_suffix: str = Field(alias="teacherEmailSuffix")
