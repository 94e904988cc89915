"""
Chat API routes.

One request per user turn. The client sends the full conversation
history with each request; the response carries the answer, the SQL that
was executed, follow-up suggestions and any clarification options.
"""

import logging
import uuid

from api.dependencies import get_flight_assistant
from entities.assistant import FlightAssistant
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from models import ChatRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


def _sanitized_error_response(error: Exception) -> JSONResponse:
    """Build a sanitized 500 payload with a correlation ID.

    Logs the full exception server-side and returns a generic message
    to the client so internal details are never leaked.
    """
    correlation_id = uuid.uuid4().hex[:12]
    logger.error("Chat error [%s]: %s", correlation_id, error, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "An internal error occurred. Please try again.",
            "correlation_id": correlation_id,
        },
    )


@router.post("/api/chat")
@router.post("/chatbot-agent", include_in_schema=False)
async def chat(
    body: ChatRequest,
    assistant: FlightAssistant = Depends(get_flight_assistant),
) -> JSONResponse:
    """Answer one chat turn."""
    logger.info(
        "Chat request: %s (history=%d turns, search=%s)",
        body.user_query[:100],
        len(body.history),
        body.search_params is not None,
    )
    try:
        response = await assistant.handle(body)
    except Exception as e:
        return _sanitized_error_response(e)

    return JSONResponse(content=response.model_dump(by_alias=True))
