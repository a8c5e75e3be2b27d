"""Institution and role resolution from email addresses.

An institution registers two email suffixes, one for students and one for
teachers. A new account belongs to the first institution, in directory order,
whose suffix the email ends with. The student suffix of an institution is
tested before its teacher suffix, so ``jane@alum.uca.es`` is a student of an
institution registering ``@alum.uca.es`` / ``@uca.es``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from sqlalchemy.orm import Session

from models.institution import InstitutionModel
from schemas.email_validation import EmailValidationResult
from schemas.user import Role
from utils.converters import institution_to_summary

logger = logging.getLogger(__name__)

UNRECOGNIZED_DOMAIN_MESSAGE = (
    "Email domain not recognized. Only registered institutions can access this platform."
)


@dataclass(frozen=True)
class DomainMatch:
    """Result of resolving an email against the institution directory."""

    institution: Optional[InstitutionModel] = None
    role: Optional[Role] = None

    @property
    def matched(self) -> bool:
        return self.institution is not None


NO_MATCH = DomainMatch()


def _ends_with(email: str, suffix: Optional[str]) -> bool:
    return bool(suffix) and email.endswith(suffix.lower())


def resolve(email: Any, institutions: Iterable[InstitutionModel]) -> DomainMatch:
    """Match an email against institutions, first match wins.

    Args:
        email: Email address to analyze. Anything that is not a non-empty
            string yields no match.
        institutions: Institution directory in the order it should be scanned.

    Returns:
        DomainMatch with the institution and inferred role, or NO_MATCH.
    """
    if not email or not isinstance(email, str):
        return NO_MATCH

    email_lower = email.strip().lower()
    for institution in institutions:
        if _ends_with(email_lower, institution.student_email_suffix):
            return DomainMatch(institution=institution, role=Role.STUDENT)
        if _ends_with(email_lower, institution.teacher_email_suffix):
            return DomainMatch(institution=institution, role=Role.TEACHER)
    return NO_MATCH


def list_directory(db: Session) -> list:
    """Return the institution directory in scan order."""
    return db.query(InstitutionModel).order_by(InstitutionModel.id.asc()).all()


def analyze_email_domain(db: Session, email: Any) -> DomainMatch:
    """Resolve an email against the institutions stored in the database."""
    return resolve(email, list_directory(db))


def validate_email_domain(db: Session, email: Any) -> EmailValidationResult:
    """Check whether an email may register, and as what.

    Args:
        db: Database session.
        email: Email address to validate.

    Returns:
        EmailValidationResult. ``is_valid`` is False when no institution
        recognizes the domain; the client then offers the institution
        access request form.
    """
    match = analyze_email_domain(db, email)
    if not match.matched:
        logger.debug("No institution matches email domain of %r", email)
        return EmailValidationResult(
            is_valid=False,
            message=UNRECOGNIZED_DOMAIN_MESSAGE,
            institution=None,
            role=None,
        )

    role_label = "Teacher" if match.role == Role.TEACHER else "Student"
    return EmailValidationResult(
        is_valid=True,
        message=f"Email verified for {match.institution.name} ({role_label})",
        institution=institution_to_summary(match.institution),
        role=match.role,
    )
