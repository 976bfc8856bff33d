"""Tool execution engine."""

from __future__ import annotations

import logging

from pydantic import BaseModel, ValidationError

from kopikita.agents.sanitizer import SQLRejectedError
from kopikita.llm.models import ToolCallRequest
from kopikita.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class ToolExecutionError(Exception):
    pass


class ToolCallResult(BaseModel):
    call_id: str
    name: str
    content: str
    is_error: bool = False


def _error_text(message: str) -> str:
    return f"Error: {message}\nPlease fix your mistakes."


class ToolExecutor:
    """
    Runs tool calls requested by the model.

    ``execute`` never raises: protocol errors, argument validation errors,
    sanitizer rejections and handler failures all come back as error text so
    the model can correct itself on its next step.
    """

    def __init__(self, registry: ToolRegistry) -> None:
        self.registry = registry

    async def execute(self, call: ToolCallRequest) -> ToolCallResult:
        tool = self.registry.get(call.name)
        if tool is None:
            logger.warning(f"Model requested unknown tool: {call.name}")
            return self._failure(call, f"Unknown tool: {call.name}")

        if call.arguments_error:
            logger.warning(f"Malformed arguments for {call.name}: {call.arguments_error}")
            return self._failure(call, call.arguments_error)

        logger.debug(f"Tool invoked: {call.name}", extra={"call_id": call.id})

        try:
            content = await tool.invoke(call.arguments)
        except ValidationError as exc:
            return self._failure(call, f"Invalid arguments for {call.name}: {exc}")
        except SQLRejectedError as exc:
            return self._failure(call, exc.message)
        except ToolExecutionError as exc:
            return self._failure(call, str(exc))
        except Exception as exc:
            logger.error(f"Tool execution failed: {call.name} - {exc}")
            return self._failure(call, str(exc) or exc.__class__.__name__)

        logger.debug(f"Tool completed: {call.name}", extra={"call_id": call.id})
        return ToolCallResult(call_id=call.id, name=call.name, content=content)

    def _failure(self, call: ToolCallRequest, message: str) -> ToolCallResult:
        return ToolCallResult(
            call_id=call.id,
            name=call.name,
            content=_error_text(message),
            is_error=True,
        )
