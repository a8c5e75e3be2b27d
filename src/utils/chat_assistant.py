"""Chat assistant bridge.

This module assembles a snapshot of the caller's progress and institution,
turns it into a system prompt and forwards it, with the recent conversation,
to a chat completion provider. The provider sits behind ``ChatCompleter`` so
the context assembly and fallback behavior work with any implementation.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import openai
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from sqlalchemy.orm import Session

from config import (
    CHAT_MAX_HISTORY_LENGTH,
    CHAT_SYSTEM_PROMPT,
    OPENAI_API_KEY,
    OPENAI_BASE_URL,
    OPENAI_MAX_TOKENS,
    OPENAI_MODEL,
    OPENAI_TEMPERATURE,
)
from core.exceptions import CompletionError, ConfigurationError, UserNotFoundError
from models.challenge import ChallengeModel
from models.lesson import LessonModel
from models.user import UserModel
from schemas.chat import ChatTurn

logger = logging.getLogger(__name__)

POPULAR_CHALLENGES_LIMIT = 3
RECENT_LESSONS_LIMIT = 3
SNIPPET_LENGTH = 100

NOT_CONFIGURED_FALLBACK = (
    "I'm sorry, but my AI service is not properly configured. "
    "Please contact your administrator to set up the OpenAI API key."
)
QUOTA_FALLBACK = (
    "I'm sorry, but my knowledge base is currently limited due to quota restrictions. "
    "Please try again later or contact your administrator."
)
AUTH_FALLBACK = (
    "I'm having trouble connecting to my knowledge base. "
    "Please check the API configuration."
)
GENERIC_FALLBACK = (
    "I'm sorry, I'm experiencing some technical difficulties. "
    "Please try again in a moment."
)

_completer_instance: Optional["ChatCompleter"] = None


class ChatCompleter:
    """Chat completion provider interface."""

    def complete(
        self, system_prompt: str, history: Sequence[ChatTurn], user_message: str
    ) -> str:
        """Return the assistant's reply.

        Args:
            system_prompt: Instructions and context for the model.
            history: Previous turns, already truncated and normalized.
            user_message: The new user message.

        Raises:
            ConfigurationError: If the provider is not configured.
            Exception: Provider errors propagate to the caller.
        """
        raise NotImplementedError


class OpenAIChatCompleter(ChatCompleter):
    """Completion through an OpenAI-compatible endpoint via LangChain."""

    def __init__(
        self,
        api_key: str = OPENAI_API_KEY,
        model: str = OPENAI_MODEL,
        base_url: str = OPENAI_BASE_URL,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self._llm: Optional[ChatOpenAI] = None

    def _get_llm(self) -> ChatOpenAI:
        if not self.api_key:
            raise ConfigurationError("OPENAI_API_KEY is not set")
        if self._llm is None:
            kwargs = {
                "model": self.model,
                "api_key": self.api_key,
                "temperature": OPENAI_TEMPERATURE,
                "max_tokens": OPENAI_MAX_TOKENS,
                "top_p": 0.9,
                "frequency_penalty": 0.1,
                "presence_penalty": 0.1,
            }
            if self.base_url:
                kwargs["base_url"] = self.base_url
            self._llm = ChatOpenAI(**kwargs)
        return self._llm

    def complete(
        self, system_prompt: str, history: Sequence[ChatTurn], user_message: str
    ) -> str:
        messages: List[BaseMessage] = [SystemMessage(content=system_prompt)]
        for turn in history:
            if turn.role == "user":
                messages.append(HumanMessage(content=turn.content))
            else:
                messages.append(AIMessage(content=turn.content))
        messages.append(HumanMessage(content=user_message))

        result = self._get_llm().invoke(messages)
        return result.content if isinstance(result.content, str) else str(result.content)


def get_chat_completer() -> ChatCompleter:
    """Return the process-wide completion provider."""
    global _completer_instance
    if _completer_instance is None:
        _completer_instance = OpenAIChatCompleter()
        logger.info("Chat completer initialized with model %s", OPENAI_MODEL)
    return _completer_instance


@dataclass
class ChatContext:
    """Snapshot of what the assistant knows about the caller."""

    user: Dict[str, Any]
    institution: Optional[Dict[str, Any]] = None
    popular_challenges: List[Dict[str, Any]] = field(default_factory=list)
    recent_lessons: List[Dict[str, Any]] = field(default_factory=list)


def _snippet(text: Optional[str], default: str) -> str:
    return text[:SNIPPET_LENGTH] if text else default


def _role_label(role: str) -> str:
    return {"admin": "Administrator", "teacher": "Teacher"}.get(role, "Student")


def fallback_for(exc: Exception) -> str:
    """Pick the user-facing message for a provider failure."""
    if isinstance(exc, ConfigurationError):
        return NOT_CONFIGURED_FALLBACK
    code = getattr(exc, "code", None)
    if code == "insufficient_quota":
        return QUOTA_FALLBACK
    if code == "invalid_api_key" or isinstance(exc, openai.AuthenticationError):
        return AUTH_FALLBACK
    return GENERIC_FALLBACK


class ChatAssistant:
    """Answers chat messages with institution-aware context."""

    def __init__(self, db: Session, completer: ChatCompleter):
        self.db = db
        self.completer = completer

    def gather_context(self, user: UserModel) -> ChatContext:
        """Collect the caller's stats and their institution's highlights."""
        institution = user.institution
        context = ChatContext(
            user={
                "name": user.name,
                "alias": user.alias,
                "role": user.role,
                "points": user.points or 0,
                "solved_challenges": user.solved_challenges or 0,
                "institution": institution.name if institution else None,
            }
        )
        if institution is None:
            return context

        context.institution = {
            "name": institution.name,
            "total_users": self.db.query(UserModel)
            .filter(UserModel.institution_id == institution.id)
            .count(),
            "total_challenges": self.db.query(ChallengeModel)
            .filter(ChallengeModel.institution_id == institution.id)
            .count(),
            "total_lessons": self.db.query(LessonModel)
            .filter(LessonModel.institution_id == institution.id)
            .count(),
        }
        challenges = (
            self.db.query(ChallengeModel)
            .filter(ChallengeModel.institution_id == institution.id)
            .order_by(ChallengeModel.solves.desc(), ChallengeModel.id.asc())
            .limit(POPULAR_CHALLENGES_LIMIT)
            .all()
        )
        context.popular_challenges = [
            {"statement": c.statement, "solves": c.solves or 0} for c in challenges
        ]
        lessons = (
            self.db.query(LessonModel)
            .filter(
                LessonModel.institution_id == institution.id,
                LessonModel.is_published.is_(True),
            )
            .order_by(LessonModel.created_at.desc(), LessonModel.id.desc())
            .limit(RECENT_LESSONS_LIMIT)
            .all()
        )
        context.recent_lessons = [
            {"title": l.title, "description": l.description} for l in lessons
        ]
        return context

    def build_system_prompt(self, context: ChatContext) -> str:
        """Append the serialized context to the static instructions."""
        sections = [CHAT_SYSTEM_PROMPT]

        user = context.user
        alias = f" (alias: {user['alias']})" if user.get("alias") else ""
        sections.append(
            "USER CONTEXT:\n"
            f"- Name: {user['name']}{alias}\n"
            f"- Role: {_role_label(user['role'])}\n"
            f"- Progress: {user['solved_challenges']} challenges solved, "
            f"{user['points']} total points\n"
            f"- Institution: {user['institution'] or 'Not affiliated with an institution'}"
        )

        if context.institution:
            inst = context.institution
            sections.append(
                "INSTITUTION CONTEXT:\n"
                f"- Institution: {inst['name']}\n"
                f"- Total Users: {inst['total_users']}\n"
                f"- Total Challenges: {inst['total_challenges']}\n"
                f"- Total Lessons: {inst['total_lessons']}"
            )

        if context.popular_challenges:
            lines = [
                f"{i}. {_snippet(c['statement'], 'Challenge')}... ({c['solves']} solves)"
                for i, c in enumerate(context.popular_challenges, start=1)
            ]
            sections.append("POPULAR CHALLENGES:\n" + "\n".join(lines))

        if context.recent_lessons:
            lines = [
                f"{i}. {l['title']}: {_snippet(l['description'], 'No description')}..."
                for i, l in enumerate(context.recent_lessons, start=1)
            ]
            sections.append("RECENT LESSONS:\n" + "\n".join(lines))

        return "\n\n".join(sections)

    @staticmethod
    def format_history(history: Optional[Sequence[ChatTurn]]) -> List[ChatTurn]:
        """Keep the most recent turns and map every non-user role to assistant."""
        if not history or CHAT_MAX_HISTORY_LENGTH <= 0:
            return []
        recent = list(history)[-CHAT_MAX_HISTORY_LENGTH:]
        return [
            ChatTurn(
                role="user" if turn.role == "user" else "assistant",
                content=turn.content,
            )
            for turn in recent
        ]

    def respond(
        self,
        message: str,
        history: Optional[Sequence[ChatTurn]],
        caller_id: int,
    ) -> str:
        """Answer a chat message.

        Args:
            message: New user message.
            history: Conversation so far, oldest first.
            caller_id: ID of the authenticated user asking.

        Returns:
            The model's reply, or a static fallback message when the
            provider fails. Never raises for provider errors.

        Raises:
            UserNotFoundError: If the caller no longer exists.
        """
        caller = self.db.query(UserModel).filter(UserModel.id == caller_id).first()
        if caller is None:
            raise UserNotFoundError(caller_id)
        context = self.gather_context(caller)
        system_prompt = self.build_system_prompt(context)
        try:
            reply = self.completer.complete(
                system_prompt, self.format_history(history), message
            )
            reply = (reply or "").strip()
            if not reply:
                raise CompletionError("Empty response from completion provider")
            return reply
        except Exception as exc:
            logger.error("Chat completion failed: %s", exc, exc_info=True)
            return fallback_for(exc)
