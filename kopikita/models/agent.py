"""
Agent Models

Run statuses and the exception types shared by the agent loop, the LLM layer
and the call sites.
"""

from enum import StrEnum
from typing import Any


class AgentRunStatus(StrEnum):
    """Terminal state of one agent run."""

    DONE = "done"
    STEP_LIMIT = "step_limit"
    TIMEOUT = "timeout"
    UPSTREAM_ERROR = "upstream_error"


class AgentError(Exception):
    """
    Custom exception for agent execution errors.

    Attributes:
        agent: Name of the component that raised the error
        message: Error description
        recoverable: Whether the caller can retry or continue
        context: Additional context for debugging
    """

    def __init__(
        self,
        agent: str,
        message: str,
        recoverable: bool = True,
        context: dict[str, Any] | None = None,
    ):
        self.agent = agent
        self.message = message
        self.recoverable = recoverable
        self.context = context or {}
        super().__init__(f"[{agent}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/API responses."""
        return {
            "agent": self.agent,
            "message": self.message,
            "recoverable": self.recoverable,
            "context": self.context,
            "type": self.__class__.__name__,
        }


class LLMError(AgentError):
    """Error during a model endpoint call (not retried at this layer)."""

    def __init__(self, agent: str, message: str, context: dict[str, Any] | None = None):
        super().__init__(agent, message, recoverable=False, context=context)


class LLMConfigurationError(AgentError):
    """The model endpoint is not configured (missing API key)."""

    def __init__(self, agent: str, message: str, context: dict[str, Any] | None = None):
        super().__init__(agent, message, recoverable=False, context=context)
