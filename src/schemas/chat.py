"""Chat assistant schema definitions."""

from typing import List, Optional

from pydantic import Field

from schemas.common import APIModel


class ChatTurn(APIModel):
    """One message of the conversation kept by the client."""

    role: str
    content: str


class ChatRequest(APIModel):
    message: Optional[str] = None
    conversation_history: List[ChatTurn] = Field(
        default_factory=list, alias="conversationHistory"
    )


class ChatResponse(APIModel):
    response: str
