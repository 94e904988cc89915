"""
FastAPI dependencies for shared resources.
"""

import logging

from entities.assistant import FlightAssistant
from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)


def get_flight_assistant(request: Request) -> FlightAssistant:
    """
    Get the FlightAssistant from app state.

    Raises HTTPException 503 if not initialized.
    """
    assistant = getattr(request.app.state, "assistant", None)
    if assistant is None:
        raise HTTPException(status_code=503, detail="Assistant not initialized")
    return assistant
