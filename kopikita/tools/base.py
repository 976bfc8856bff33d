"""Tool system base types and decorator."""

from __future__ import annotations

import inspect
import json
import logging
import types
from collections.abc import Awaitable, Callable
from typing import Annotated, Any, Literal, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel, Field, validate_call
from pydantic.fields import FieldInfo

logger = logging.getLogger(__name__)
NONE_TYPE = type(None)

ToolHandler = Callable[..., Awaitable[Any]]


class ToolDefinition(BaseModel):
    name: str = Field(..., pattern=r"^[a-zA-Z0-9_-]{1,64}$")
    description: str
    parameters_schema: dict[str, Any]

    def to_openai(self) -> dict[str, Any]:
        """Render in the chat completions ``tools`` format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters_schema,
            },
        }


class Tool:
    """A tool definition paired with the async handler that implements it."""

    def __init__(self, definition: ToolDefinition, handler: ToolHandler):
        self.definition = definition
        self.handler = handler
        self._validated_handler = validate_call(handler)

    @property
    def name(self) -> str:
        return self.definition.name

    async def invoke(self, arguments: dict[str, Any]) -> str:
        """
        Validate arguments against the handler signature and run it.

        Raises:
            pydantic.ValidationError: If arguments do not match the signature
        """
        result = self._validated_handler(**arguments)
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, str):
            return result
        return json.dumps(result, default=str, ensure_ascii=False)

    def __repr__(self) -> str:
        return f"<Tool {self.name}>"


def _extract_parameters_schema(func: Callable[..., Any]) -> dict[str, Any]:
    signature = inspect.signature(func)
    type_hints = get_type_hints(func, include_extras=True)
    properties: dict[str, Any] = {}
    required: list[str] = []

    for name, param in signature.parameters.items():
        param_schema = _annotation_to_json_schema(type_hints.get(name, param.annotation))
        if param.default is inspect.Parameter.empty:
            required.append(name)
        else:
            if param.default is None and {"type": "null"} not in param_schema.get("anyOf", []):
                param_schema = {"anyOf": [param_schema, {"type": "null"}]}
            param_schema["default"] = param.default
        properties[name] = param_schema

    return {
        "type": "object",
        "properties": properties,
        "required": required,
        "additionalProperties": False,
    }


def _annotation_to_json_schema(annotation: Any) -> dict[str, Any]:
    if annotation is inspect.Parameter.empty or annotation is Any:
        return {}

    origin = get_origin(annotation)
    args = get_args(annotation)

    if origin is Annotated:
        schema = _annotation_to_json_schema(args[0])
        for extra in args[1:]:
            if isinstance(extra, FieldInfo) and extra.description:
                schema["description"] = extra.description
        return schema

    if origin is Literal:
        schema: dict[str, Any] = {"enum": list(args)}
        if args and all(isinstance(value, str) for value in args):
            schema["type"] = "string"
        return schema

    if origin in (list, tuple, set, frozenset):
        return {"type": "array", "items": _annotation_to_json_schema(args[0]) if args else {}}

    if origin in (Union, types.UnionType):
        variants = [_annotation_to_json_schema(arg) for arg in args if arg is not NONE_TYPE]
        if len(variants) != len(args):
            variants.append({"type": "null"})
        return variants[0] if len(variants) == 1 else {"anyOf": variants}

    simple = {bool: "boolean", int: "integer", float: "number", str: "string", dict: "object"}
    if annotation in simple:
        return {"type": simple[annotation]}

    if inspect.isclass(annotation) and issubclass(annotation, BaseModel):
        schema = annotation.model_json_schema()
        schema.pop("title", None)
        return schema

    return {"type": "string"}


def tool(name: str, description: str):
    """
    Build a Tool from an async function.

    The JSON schema of the arguments is derived from the type hints;
    ``Annotated[str, Field(description=...)]`` adds per-argument descriptions.

    Usage:
        @tool("execute_sql", "Execute ONE read-only SELECT statement.")
        async def execute_sql(query: str) -> str:
            ...

        registry = ToolRegistry([execute_sql])
    """

    def decorator(func: ToolHandler) -> Tool:
        definition = ToolDefinition(
            name=name,
            description=description,
            parameters_schema=_extract_parameters_schema(func),
        )
        logger.debug(f"Built tool: {name}")
        return Tool(definition, func)

    return decorator
