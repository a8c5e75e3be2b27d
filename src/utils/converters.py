"""Conversions between database models and API schemas."""

from typing import List, Optional

from models.challenge import ChallengeModel
from models.contact_request import ContactRequestModel
from models.institution import InstitutionModel
from models.lesson import LessonModel
from models.log import LogModel
from models.user import UserModel
from schemas.challenge import Challenge
from schemas.common import InstitutionSummary
from schemas.contact_request import ContactRequest
from schemas.institution import Institution, InstitutionDetail, InstitutionWithCount
from schemas.lesson import CreatorSummary, Lesson
from schemas.log import Log
from schemas.user import Role, User


def institution_to_summary(
    model: Optional[InstitutionModel],
) -> Optional[InstitutionSummary]:
    if model is None:
        return None
    return InstitutionSummary(
        id=model.id,
        name=model.name,
        address=model.address,
        student_email_suffix=model.student_email_suffix,
        teacher_email_suffix=model.teacher_email_suffix,
    )


def _institution_fields(model: InstitutionModel) -> dict:
    return dict(
        id=model.id,
        name=model.name,
        address=model.address,
        student_email_suffix=model.student_email_suffix,
        teacher_email_suffix=model.teacher_email_suffix,
        contact_request_id=model.contact_request_id,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def model_to_institution(model: InstitutionModel) -> Institution:
    return Institution(**_institution_fields(model))


def model_to_institution_with_count(
    model: InstitutionModel, challenge_count: int
) -> InstitutionWithCount:
    return InstitutionWithCount(
        **_institution_fields(model), challenge_count=challenge_count
    )


def model_to_institution_detail(model: InstitutionModel) -> InstitutionDetail:
    return InstitutionDetail(
        **_institution_fields(model),
        users=[model_to_user(u) for u in model.users],
    )


def model_to_user(model: UserModel) -> User:
    """Convert a UserModel to the public User schema.

    Password hash and verification token are never copied.
    """
    role = Role(model.role)
    return User(
        id=model.id,
        name=model.name,
        alias=model.alias,
        email=model.email,
        role=role,
        is_admin=role == Role.ADMIN,
        is_teacher=role == Role.TEACHER,
        is_email_verified=bool(model.is_email_verified),
        institution_id=model.institution_id,
        institution=institution_to_summary(model.institution),
        points=model.points or 0,
        solved_challenges=model.solved_challenges or 0,
        last_login=model.last_login,
        created_at=model.created_at,
    )


def model_to_challenge(model: ChallengeModel) -> Challenge:
    return Challenge(
        id=model.id,
        statement=model.statement,
        help=model.help,
        solution=model.solution,
        level=model.level,
        score=model.score,
        score_base=model.score_base,
        score_min=model.score_min,
        solves=model.solves or 0,
        institution_id=model.institution_id,
        institution=institution_to_summary(model.institution),
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _creator_summary(model: Optional[UserModel]) -> Optional[CreatorSummary]:
    if model is None:
        return None
    return CreatorSummary(
        id=model.id,
        name=model.name,
        is_teacher=model.role == Role.TEACHER.value,
        is_admin=model.role == Role.ADMIN.value,
    )


def model_to_lesson(model: LessonModel) -> Lesson:
    return Lesson(
        id=model.id,
        title=model.title,
        description=model.description,
        content=model.content,
        order=model.order or 0,
        is_published=bool(model.is_published),
        institution_id=model.institution_id,
        institution=institution_to_summary(model.institution),
        creator_id=model.creator_id,
        creator=_creator_summary(model.creator),
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def model_to_contact_request(model: ContactRequestModel) -> ContactRequest:
    return ContactRequest(
        id=model.id,
        institution_name=model.institution_name,
        contact_name=model.contact_name,
        contact_email=model.contact_email,
        contact_phone=model.contact_phone,
        website=model.website,
        student_email_suffix=model.student_email_suffix,
        teacher_email_suffix=model.teacher_email_suffix,
        message=model.message,
        estimated_students=model.estimated_students,
        estimated_teachers=model.estimated_teachers,
        status=model.status,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def model_to_log(model: LogModel) -> Log:
    return Log(
        id=model.id,
        user_id=model.user_id,
        challenge_id=model.challenge_id,
        query=model.query,
        is_correct=bool(model.is_correct),
        created_at=model.created_at,
        user=model_to_user(model.user) if model.user else None,
        challenge=model_to_challenge(model.challenge) if model.challenge else None,
    )


def models_to_users(models: List[UserModel]) -> List[User]:
    return [model_to_user(m) for m in models]
