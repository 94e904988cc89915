"""
FastAPI server for the flight information assistant.

This module handles application setup, lifespan management, and middleware configuration.
Route handlers are organized in the routers/ package.

The agent clients (Foundry agent, Supabase client) are created once in
the lifespan and shared by every request; the assistant itself keeps no
per-session state.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from api.routers import chat_router
from config.settings import get_settings
from dotenv import load_dotenv
from entities.assistant import FlightAssistant
from entities.shared.protocols import LoggingReporter
from entities.workflow import create_agent_clients
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

# Configure logging - use force=True to prevent duplicate handlers
logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO, force=True)

# Reduce noise from Azure SDK and other libraries
logging.getLogger("azure").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
# Reduce agent_framework verbosity (it logs all message content at INFO level)
logging.getLogger("agent_framework").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan handler.

    Builds the agent clients and the FlightAssistant on startup. If the
    clients cannot be created the app still starts; chat requests then
    return 503 and ``/health`` reports ``agent_ready: false``.
    """
    logger.info("Flight Assistant API starting")
    settings = get_settings()

    try:
        clients = await create_agent_clients(settings, reporter=LoggingReporter())
        application.state.assistant = FlightAssistant(clients, settings)
    except Exception:
        logger.exception("Failed to initialize the flight assistant")
        application.state.assistant = None

    yield

    assistant = getattr(application.state, "assistant", None)
    if assistant is not None:
        await assistant.wait_for_background_tasks()
    logger.info("Application shutdown complete")


# Create FastAPI application
app = FastAPI(title="Flight Assistant", lifespan=lifespan)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(chat_router)


@app.get("/health")
async def health_check() -> dict[str, object]:
    """Health check endpoint."""
    agent_ready = getattr(app.state, "assistant", None) is not None
    return {"status": "healthy", "agent_ready": agent_ready}


if __name__ == "__main__":
    uvicorn.run("api.main:app", host="0.0.0.0", port=8000, reload=True)  # noqa: S104
