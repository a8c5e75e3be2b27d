"""Attempt log schema definitions."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from schemas.challenge import Challenge
from schemas.common import APIModel
from schemas.user import User


class Log(APIModel):
    id: int
    user_id: int
    challenge_id: int
    query: Optional[str] = None
    is_correct: bool = Field(alias="isCorrect")
    created_at: Optional[datetime] = None
    user: Optional[User] = None
    challenge: Optional[Challenge] = None
