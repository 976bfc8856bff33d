"""
Chat Routes

FastAPI endpoint for the "ask your data" chat assistant.
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from kopikita.models.api import ChatRequest, ChatResponse
from kopikita.policies.chat import GENERIC_FAILURE_REPLY

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/ai-chat", response_model=ChatResponse)
async def ai_chat(chat_request: ChatRequest) -> ChatResponse | JSONResponse:
    """
    Answer one chat message.

    Args:
        chat_request: The message plus up to 12 earlier turns

    Returns:
        ChatResponse with the reply; 500 with the apology reply on failure
    """
    logger.info(
        f"Chat request received: {chat_request.message[:100]}",
        extra={"history": len(chat_request.history)},
    )

    try:
        from kopikita.api.main import get_runtime

        runtime = get_runtime()
        reply = await runtime.generate_chat_reply(chat_request.message, chat_request.history)
    except Exception as e:
        logger.error(f"Chat request failed: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"reply": GENERIC_FAILURE_REPLY},
        )

    return ChatResponse(reply=reply)
