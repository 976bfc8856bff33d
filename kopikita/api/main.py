"""
FastAPI Application

Main FastAPI application for the KopiKita agents with:
- Lifespan management for the agent runtime
- CORS middleware for the admin frontend
- Request validation failures answered in the agent endpoints' error format
- Chat, dummy-data, promo-idea and health endpoints

Usage:
    uvicorn kopikita.api.main:app --reload --port 8000
"""

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from kopikita.api.routes import chat, dummy_data, health, promo_ideas
from kopikita.api.routes.dummy_data import GENERATE_FAILED_MESSAGE
from kopikita.config import get_settings
from kopikita.connectors.base import ConnectionError as ConnectorConnectionError
from kopikita.models.api import ErrorResponse
from kopikita.policies.chat import GENERIC_FAILURE_REPLY
from kopikita.runtime import AgentRuntime

logger = logging.getLogger(__name__)

# Global state shared with the routes
app_state: dict[str, AgentRuntime | None] = {
    "runtime": None,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Lifespan context manager for startup and shutdown.

    Builds the AgentRuntime; the database pool and the model client are
    created lazily on the first request that needs them.
    """
    config = get_settings()
    logger.info(f"Starting {config.app_name} API server...")

    if config.database.url is None:
        logger.warning("DATABASE_URL not set; agent endpoints will fail until it is configured.")
    if not config.llm.is_configured:
        logger.warning("AI_API_KEY not set; agent endpoints will return configuration errors.")

    runtime = AgentRuntime(config)
    app_state["runtime"] = runtime

    try:
        yield  # Application runs here
    finally:
        logger.info(f"Shutting down {config.app_name} API server...")
        try:
            await runtime.close()
        except ConnectorConnectionError as e:
            logger.error(f"Error closing connector: {e}")
        app_state["runtime"] = None
        logger.info("API server shut down complete")


def get_runtime() -> AgentRuntime:
    """Get the initialized agent runtime."""
    runtime = app_state["runtime"]
    if runtime is None:
        raise RuntimeError("Agent runtime not initialized")
    return runtime


# Create FastAPI app
app = FastAPI(
    title="KopiKita Agent API",
    description="LLM agents over the KopiKita coffee-shop CRM database",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for frontend
cors_origins_env = os.getenv("CORS_ORIGINS", "")
cors_origins = (
    [origin.strip() for origin in cors_origins_env.split(",") if origin.strip()]
    if cors_origins_env
    else ["http://localhost:3000"]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
VALIDATION_FAILURE_BODIES = {
    "/api/ai-chat": {"reply": GENERIC_FAILURE_REPLY},
    "/api/generate-dummy": ErrorResponse(error=GENERATE_FAILED_MESSAGE).model_dump(),
}


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Answer malformed agent requests with the same body as any other failure.

    The chat and dummy-data clients only read ``reply`` / ``error``; other
    endpoints keep FastAPI's 422 detail.
    """
    body = VALIDATION_FAILURE_BODIES.get(request.url.path)
    if body is None:
        return await request_validation_exception_handler(request, exc)

    logger.warning(
        f"Invalid request body for {request.url.path}",
        extra={"errors": jsonable_encoder(exc.errors())},
    )
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)


# Include routers
app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(chat.router, prefix="/api", tags=["chat"])
app.include_router(dummy_data.router, prefix="/api", tags=["dummy-data"])
app.include_router(promo_ideas.router, prefix="/api", tags=["promo-ideas"])


# Root endpoint
@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with API information."""
    return {
        "name": "KopiKita Agent API",
        "version": "0.1.0",
        "description": "Chat, promo ideas and dummy data over the CRM database",
        "docs": "/docs",
    }
