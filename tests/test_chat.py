"""
Tests for the chat assistant bridge
"""

import pytest

from core.exceptions import ConfigurationError, UserNotFoundError
from schemas.chat import ChatTurn
from utils import chat_assistant as chat_assistant_module
from utils.chat_assistant import (
    AUTH_FALLBACK,
    GENERIC_FALLBACK,
    NOT_CONFIGURED_FALLBACK,
    QUOTA_FALLBACK,
    ChatAssistant,
    OpenAIChatCompleter,
)


class ProviderError(Exception):
    def __init__(self, code):
        super().__init__(code)
        self.code = code


@pytest.fixture
def assistant(db, completer):
    return ChatAssistant(db, completer)


# ============================================================================
# CONTEXT AND PROMPT
# ============================================================================


class TestContext:
    def test_prompt_contains_user_and_institution(
        self, assistant, db, student, teacher, acme, make_challenge, make_lesson
    ):
        student.alias = "jd"
        student.points = 40
        student.solved_challenges = 3
        db.commit()
        make_challenge(acme, statement="Count orders per customer", solves=9)
        make_challenge(acme, statement="Find duplicate emails", solves=2)
        make_lesson(acme, creator=teacher, title="Joins 101", is_published=True)
        make_lesson(acme, creator=teacher, title="Draft lesson", is_published=False)

        prompt = assistant.build_system_prompt(assistant.gather_context(student))

        assert "You are Query Quest Assistant" in prompt
        assert "- Name: Jane (alias: jd)" in prompt
        assert "- Role: Student" in prompt
        assert "3 challenges solved, 40 total points" in prompt
        assert "- Total Users: 2" in prompt
        assert "- Total Challenges: 2" in prompt
        assert "- Total Lessons: 2" in prompt
        assert "1. Count orders per customer... (9 solves)" in prompt
        assert "Joins 101" in prompt
        assert "Draft lesson" not in prompt

    def test_popular_challenges_limited_to_three(
        self, assistant, student, acme, make_challenge
    ):
        for solves in range(5):
            make_challenge(acme, statement=f"Q{solves}", solves=solves)
        context = assistant.gather_context(student)
        assert [c["solves"] for c in context.popular_challenges] == [4, 3, 2]

    def test_user_without_institution(self, assistant, admin):
        prompt = assistant.build_system_prompt(assistant.gather_context(admin))
        assert "- Role: Administrator" in prompt
        assert "Not affiliated with an institution" in prompt
        assert "INSTITUTION CONTEXT" not in prompt

    def test_history_truncated_and_roles_normalized(self):
        history = [ChatTurn(role="user", content=f"m{i}") for i in range(12)]
        history.append(ChatTurn(role="bot", content="reply"))

        formatted = ChatAssistant.format_history(history)

        assert len(formatted) == 10
        assert formatted[0].content == "m3"
        assert formatted[-1].role == "assistant"
        assert ChatAssistant.format_history(None) == []

    def test_history_dropped_when_limit_is_zero(self, monkeypatch):
        monkeypatch.setattr(chat_assistant_module, "CHAT_MAX_HISTORY_LENGTH", 0)
        history = [ChatTurn(role="user", content=f"m{i}") for i in range(5)]
        assert ChatAssistant.format_history(history) == []


# ============================================================================
# RESPONSES AND FALLBACKS
# ============================================================================


class TestRespond:
    def test_forwards_message_and_history(self, assistant, completer, student):
        reply = assistant.respond(
            "How do I join?", [ChatTurn(role="user", content="hi")], student.id
        )
        assert reply == "Try a LEFT JOIN."
        call = completer.calls[0]
        assert call["message"] == "How do I join?"
        assert [turn.content for turn in call["history"]] == ["hi"]
        assert "USER CONTEXT" in call["system_prompt"]

    @pytest.mark.parametrize(
        "error,expected",
        [
            (ProviderError("insufficient_quota"), QUOTA_FALLBACK),
            (ProviderError("invalid_api_key"), AUTH_FALLBACK),
            (ConfigurationError("OPENAI_API_KEY is not set"), NOT_CONFIGURED_FALLBACK),
            (TimeoutError("read timed out"), GENERIC_FALLBACK),
        ],
    )
    def test_provider_failure_returns_fallback(
        self, assistant, completer, student, error, expected
    ):
        completer.error = error
        assert assistant.respond("hello", [], student.id) == expected

    def test_empty_reply_returns_fallback(self, assistant, completer, student):
        completer.reply = "   "
        assert assistant.respond("hello", [], student.id) == GENERIC_FALLBACK

    def test_unknown_caller(self, assistant):
        with pytest.raises(UserNotFoundError):
            assistant.respond("hello", [], 999)

    def test_unconfigured_openai_completer(self, db, student):
        assistant = ChatAssistant(db, OpenAIChatCompleter(api_key=""))
        assert assistant.respond("hello", [], student.id) == NOT_CONFIGURED_FALLBACK


class TestChatApi:
    def test_reply(self, client, student, auth):
        resp = client.post(
            "/api/chat",
            json={
                "message": "What is a JOIN?",
                "conversationHistory": [{"role": "assistant", "content": "Hi!"}],
            },
            headers=auth(student),
        )
        assert resp.status_code == 200
        assert resp.json() == {"response": "Try a LEFT JOIN."}

    def test_requires_authentication(self, client, completer):
        resp = client.post("/api/chat", json={"message": "hello"})
        assert resp.status_code == 401
        assert completer.calls == []

    def test_requires_message(self, client, student, auth, completer):
        resp = client.post("/api/chat", json={"message": "  "}, headers=auth(student))
        assert resp.status_code == 400
        assert completer.calls == []

    def test_provider_failure_is_still_200(self, client, student, auth, completer):
        completer.error = RuntimeError("boom")
        resp = client.post("/api/chat", json={"message": "hello"}, headers=auth(student))
        assert resp.status_code == 200
        assert resp.json()["response"] == GENERIC_FALLBACK
