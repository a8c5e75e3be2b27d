"""Lesson schema definitions."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from schemas.common import APIModel, InstitutionSummary


class CreatorSummary(APIModel):
    id: int
    name: str
    is_teacher: bool = Field(alias="isTeacher")
    is_admin: bool = Field(alias="isAdmin")


class Lesson(APIModel):
    id: int
    title: str
    description: Optional[str] = None
    content: str
    order: int = 0
    is_published: bool = Field(alias="isPublished")
    institution_id: Optional[int] = None
    institution: Optional[InstitutionSummary] = None
    creator_id: Optional[int] = None
    creator: Optional[CreatorSummary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LessonRequest(APIModel):
    title: Optional[str] = None
    content: Optional[str] = None
    description: Optional[str] = None
    order: Optional[int] = None
    is_published: Optional[bool] = Field(default=None, alias="isPublished")


class PublishLessonRequest(APIModel):
    """Sets the publish flag; an empty body flips it."""

    is_published: Optional[bool] = Field(default=None, alias="isPublished")
