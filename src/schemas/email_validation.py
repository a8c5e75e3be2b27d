"""Email domain validation schemas."""

from typing import Optional

from pydantic import Field

from schemas.common import APIModel, InstitutionSummary
from schemas.user import Role


class ValidateEmailRequest(APIModel):
    email: Optional[str] = None


class EmailValidationResult(APIModel):
    """Outcome of matching an email against the institution directory."""

    is_valid: bool = Field(alias="isValid")
    message: str
    institution: Optional[InstitutionSummary] = None
    role: Optional[Role] = None
