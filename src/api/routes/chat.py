"""Chat assistant routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from api.routes.auth import get_current_user
from core.dependencies import ChatAssistantDep
from core.exceptions import QueryQuestError
from schemas.chat import ChatRequest, ChatResponse
from schemas.user import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["Chat"])


@router.post("", response_model=ChatResponse, summary="Ask the assistant")
def chat(
    req: ChatRequest,
    assistant: ChatAssistantDep,
    current_user: User = Depends(get_current_user),
) -> ChatResponse:
    """Answer a chat message with the caller's context.

    Provider failures are answered with a fallback message, so this only
    fails on bad input or authentication.

    Raises:
        HTTPException: 400 if the message is missing, 401 if the caller is
            not authenticated.
    """
    if not req.message or not req.message.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Message is required",
        )
    try:
        reply = assistant.respond(req.message, req.conversation_history, current_user.id)
    except QueryQuestError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return ChatResponse(response=reply)
