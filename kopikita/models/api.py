"""
API Request/Response Models

Pydantic models for FastAPI endpoints and the promo-idea payloads shared
with the promo generator.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MAX_MESSAGE_LENGTH = 1200
MAX_HISTORY_ITEMS = 12

GenerationMode = Literal["new", "existing", "mixed"]


class ChatMessage(BaseModel):
    """Chat message in conversation history."""

    role: Literal["user", "assistant"] = Field(..., description="Message role")
    content: str = Field(
        ...,
        min_length=1,
        max_length=MAX_MESSAGE_LENGTH,
        description="Message content",
    )


class ChatRequest(BaseModel):
    """Request model for the chat assistant endpoint."""

    message: str = Field(
        ...,
        min_length=1,
        max_length=MAX_MESSAGE_LENGTH,
        description="User's natural language question",
    )
    history: list[ChatMessage] = Field(
        default_factory=list,
        max_length=MAX_HISTORY_ITEMS,
        description="Previous messages in the conversation (oldest first)",
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "message": "Berapa total penjualan minggu ini?",
                "history": [],
            }
        }
    }

    @field_validator("history", mode="before")
    @classmethod
    def keep_recent_history(cls, v: Any) -> Any:
        """Drop everything but the most recent messages; non-lists mean no history."""
        if v is None or not isinstance(v, list):
            return []
        return v[-MAX_HISTORY_ITEMS:]


class ChatResponse(BaseModel):
    """Response model for the chat assistant endpoint."""

    reply: str = Field(..., description="Assistant reply shown to the user")


class DummyDataRequest(BaseModel):
    """Request model for the dummy-data generator endpoint."""

    mode: GenerationMode = Field(default="mixed", description="Generation mode")


class DummyDataResponse(BaseModel):
    """Response model for the dummy-data generator endpoint."""

    output: str = Field(..., description="Agent summary of the inserted rows")


class PromoIdea(BaseModel):
    """A weekly promo idea, as drafted by the promo agent."""

    theme: str = Field(..., min_length=1, description="Short campaign name")
    segment: str = Field(..., min_length=1, description="Targeted customer segment")
    why_now: str = Field(..., min_length=1, description="Data-backed reason to run it now")
    message: str = Field(..., min_length=1, description="Ready-to-send customer message")
    best_time: str | None = Field(None, description="Suggested time window")
    suggested_tag_names: list[str] = Field(
        default_factory=list, description="Existing tag names the idea targets"
    )
    suggested_product_names: list[str] = Field(
        default_factory=list, description="Existing product names the idea features"
    )

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("suggested_tag_names", "suggested_product_names", mode="before")
    @classmethod
    def clean_names(cls, v: Any) -> list[str]:
        """Trim names, drop blanks and duplicates while keeping order."""
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        seen: list[str] = []
        for item in v:
            name = str(item).strip()
            if name and name not in seen:
                seen.append(name)
        return seen


class PromoIdeasRequest(BaseModel):
    """Request model for the promo-idea generator endpoint."""

    week_start: str | None = Field(
        None, description="Monday of the target week (YYYY-MM-DD); defaults to this week"
    )

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PromoIdeasResponse(BaseModel):
    """Response model for the promo-idea generator endpoint."""

    week_start: str = Field(..., description="Monday of the target week (YYYY-MM-DD)")
    source: Literal["agent", "fallback"] = Field(
        ..., description="Whether ideas came from the agent or the built-in library"
    )
    ideas: list[PromoIdea] = Field(..., description="Promo ideas for the week")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthResponse(BaseModel):
    """Response model for health check endpoints."""

    status: str = Field(..., description="Service status: 'healthy' or 'unhealthy'")
    version: str = Field(..., description="API version")
    timestamp: str = Field(..., description="Current timestamp (ISO 8601)")


class ErrorResponse(BaseModel):
    """Error response model."""

    error: str = Field(..., description="Human-readable error message")
