"""Challenge schema definitions."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from schemas.common import APIModel, InstitutionSummary


class Challenge(APIModel):
    id: int
    statement: str
    help: Optional[str] = None
    solution: str
    level: int
    score: int
    score_base: int
    score_min: int
    solves: int = 0
    institution_id: Optional[int] = None
    institution: Optional[InstitutionSummary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ChallengeRequest(APIModel):
    """Body of challenge create and update calls."""

    statement: Optional[str] = None
    help: Optional[str] = None
    solution: Optional[str] = None
    level: Optional[int] = Field(default=None, ge=1, le=5)
    score: Optional[int] = None
    score_base: Optional[int] = None
    score_min: Optional[int] = None
    institution_id: Optional[int] = None


class ChallengeStats(APIModel):
    total_challenges: int = Field(alias="totalChallenges")
    total_solves: int = Field(alias="totalSolves")
    avg_difficulty: float = Field(alias="avgDifficulty")
    total_points: int = Field(alias="totalPoints")


class BulkDeleteChallengesRequest(APIModel):
    challenge_ids: Optional[List[int]] = Field(default=None, alias="challengeIds")
