"""Dependency injection module for FastAPI.

This module provides dependency injection functions for FastAPI routes.
Managers are built per request around the request-scoped DB session; the
chat completion provider is a process-wide singleton that tests replace
through ``app.dependency_overrides``.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from core.database import get_db
from utils import challenge_manager
from utils import chat_assistant
from utils import contact_request_manager
from utils import institution_manager
from utils import lesson_manager
from utils import log_manager
from utils import mailer
from utils import user_manager


def get_mailer() -> mailer.Mailer:
    """Get the configured Mailer singleton."""
    return mailer.get_mailer()


def get_user_manager(
    db: Session = Depends(get_db),
    mailer_instance: mailer.Mailer = Depends(get_mailer),
) -> user_manager.UserManager:
    """Get UserManager instance with request-scoped DB session.

    Args:
        db: Database session.
        mailer_instance: Verification email sender.

    Returns:
        UserManager instance.
    """
    return user_manager.UserManager(db, mailer=mailer_instance)


def get_institution_manager(
    db: Session = Depends(get_db),
) -> institution_manager.InstitutionManager:
    """Get InstitutionManager instance with request-scoped DB session."""
    return institution_manager.InstitutionManager(db)


def get_contact_request_manager(
    db: Session = Depends(get_db),
) -> contact_request_manager.ContactRequestManager:
    """Get ContactRequestManager instance with request-scoped DB session."""
    return contact_request_manager.ContactRequestManager(db)


def get_challenge_manager(
    db: Session = Depends(get_db),
) -> challenge_manager.ChallengeManager:
    """Get ChallengeManager instance with request-scoped DB session."""
    return challenge_manager.ChallengeManager(db)


def get_lesson_manager(db: Session = Depends(get_db)) -> lesson_manager.LessonManager:
    """Get LessonManager instance with request-scoped DB session."""
    return lesson_manager.LessonManager(db)


def get_log_manager(db: Session = Depends(get_db)) -> log_manager.LogManager:
    """Get LogManager instance with request-scoped DB session."""
    return log_manager.LogManager(db)


def get_chat_completer() -> chat_assistant.ChatCompleter:
    """Get the chat completion provider singleton."""
    return chat_assistant.get_chat_completer()


def get_chat_assistant(
    db: Session = Depends(get_db),
    completer: chat_assistant.ChatCompleter = Depends(get_chat_completer),
) -> chat_assistant.ChatAssistant:
    """Get ChatAssistant bound to the request session and the provider."""
    return chat_assistant.ChatAssistant(db, completer)


# Type aliases for dependency injection
UserManagerDep = Annotated[user_manager.UserManager, Depends(get_user_manager)]
InstitutionManagerDep = Annotated[
    institution_manager.InstitutionManager, Depends(get_institution_manager)
]
ContactRequestManagerDep = Annotated[
    contact_request_manager.ContactRequestManager,
    Depends(get_contact_request_manager),
]
ChallengeManagerDep = Annotated[
    challenge_manager.ChallengeManager, Depends(get_challenge_manager)
]
LessonManagerDep = Annotated[lesson_manager.LessonManager, Depends(get_lesson_manager)]
LogManagerDep = Annotated[log_manager.LogManager, Depends(get_log_manager)]
ChatAssistantDep = Annotated[
    chat_assistant.ChatAssistant, Depends(get_chat_assistant)
]
DbSessionDep = Annotated[Session, Depends(get_db)]
