"""
KopiKita Models Module

Pydantic models for type-safe data validation throughout the application.

Available Models:
    Agent Models:
        - AgentRunStatus: Terminal state of an agent run
        - AgentError: Base exception for agent errors
        - LLMError: Model endpoint errors
        - LLMConfigurationError: Missing model endpoint configuration

    API Models:
        - ChatRequest / ChatResponse: Chat assistant endpoint
        - DummyDataRequest / DummyDataResponse: Dummy-data generator endpoint
        - PromoIdeasRequest / PromoIdeasResponse / PromoIdea: Promo generator
        - HealthResponse, ErrorResponse

Usage:
    from kopikita.models import AgentRunStatus, LLMError
    from kopikita.models.api import ChatRequest, ChatResponse
"""

from kopikita.models.agent import (
    AgentError,
    AgentRunStatus,
    LLMConfigurationError,
    LLMError,
)
from kopikita.models.api import (
    ChatMessage,
    ChatRequest,
    ChatResponse,
    DummyDataRequest,
    DummyDataResponse,
    ErrorResponse,
    GenerationMode,
    HealthResponse,
    PromoIdea,
    PromoIdeasRequest,
    PromoIdeasResponse,
)

__all__ = [
    # Agent models
    "AgentRunStatus",
    # Error types
    "AgentError",
    "LLMError",
    "LLMConfigurationError",
    # API models
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "DummyDataRequest",
    "DummyDataResponse",
    "GenerationMode",
    "PromoIdea",
    "PromoIdeasRequest",
    "PromoIdeasResponse",
    "HealthResponse",
    "ErrorResponse",
]
