"""
LLM Request and Response Models

Pydantic models for model-endpoint interactions, including the tool-calling
shapes of the OpenAI chat completions contract.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator


class ToolCallRequest(BaseModel):
    """A tool invocation requested by the model inside an assistant message."""

    id: str = Field(
        ...,
        description="Call identifier used to correlate the tool result"
    )
    name: str = Field(
        ...,
        description="Name of the requested tool"
    )
    arguments: Dict[str, Any] = Field(
        default_factory=dict,
        description="Decoded JSON arguments"
    )
    arguments_error: Optional[str] = Field(
        None,
        description="Set when the raw arguments could not be decoded"
    )


class LLMMessage(BaseModel):
    """Single message in an LLM conversation."""

    role: Literal["system", "user", "assistant", "tool"] = Field(
        ...,
        description="Message role"
    )
    content: Union[str, List[Any]] = Field(
        default="",
        description="Plain text or a list of typed content parts"
    )
    tool_calls: List[ToolCallRequest] = Field(
        default_factory=list,
        description="Tool invocations requested by an assistant message"
    )
    tool_call_id: Optional[str] = Field(
        None,
        description="Call identifier answered by a tool message"
    )

    @model_validator(mode="after")
    def check_role_fields(self) -> "LLMMessage":
        """Keep tool-call fields on the roles that carry them."""
        if self.tool_calls and self.role != "assistant":
            raise ValueError("Only assistant messages can request tool calls")
        if self.role == "tool" and not self.tool_call_id:
            raise ValueError("Tool messages require tool_call_id")
        return self


class LLMRequest(BaseModel):
    """Request to an LLM provider."""

    messages: List[LLMMessage] = Field(
        ...,
        description="Conversation messages",
        min_length=1
    )
    tools: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Tool definitions in OpenAI function format"
    )
    temperature: Optional[float] = Field(
        None,
        ge=0.0,
        le=2.0,
        description="Sampling temperature (overrides default)"
    )
    max_tokens: Optional[int] = Field(
        None,
        gt=0,
        description="Maximum tokens to generate (overrides default)"
    )
    model: Optional[str] = Field(
        None,
        description="Specific model to use (overrides default)"
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Additional provider-specific parameters"
    )


class LLMUsage(BaseModel):
    """Token usage information."""

    prompt_tokens: int = Field(
        default=0,
        ge=0,
        description="Number of tokens in the prompt"
    )
    completion_tokens: int = Field(
        default=0,
        ge=0,
        description="Number of tokens in the completion"
    )
    total_tokens: int = Field(
        default=0,
        ge=0,
        description="Total tokens used"
    )


class LLMResponse(BaseModel):
    """Response from an LLM provider."""

    content: str = Field(
        default="",
        description="Generated text content"
    )
    tool_calls: List[ToolCallRequest] = Field(
        default_factory=list,
        description="Tool invocations requested instead of (or alongside) text"
    )
    model: str = Field(
        ...,
        description="Model that generated the response"
    )
    usage: LLMUsage = Field(
        default_factory=LLMUsage,
        description="Token usage information"
    )
    finish_reason: Literal["stop", "length", "tool_calls", "content_filter", "error"] = Field(
        default="stop",
        description="Reason the generation stopped"
    )
    provider: str = Field(
        ...,
        description="Provider that handled the request"
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Additional provider-specific response data"
    )

    def to_message(self) -> LLMMessage:
        """Convert the response into the assistant message appended to history."""
        return LLMMessage(
            role="assistant",
            content=self.content,
            tool_calls=list(self.tool_calls),
        )
