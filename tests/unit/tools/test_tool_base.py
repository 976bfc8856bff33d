"""Unit tests for tool definitions and the registry."""

from typing import Annotated, Literal

import pytest
from pydantic import Field, ValidationError

from kopikita.tools.base import Tool, ToolDefinition, tool
from kopikita.tools.registry import ToolRegistry


@tool("top_products", "List best-selling products.")
async def top_products(
    days: Annotated[int, Field(description="Look-back window in days")],
    category: Literal["coffee", "pastry"] | None = None,
    limit: int = 5,
) -> list[dict]:
    return [{"days": days, "category": category, "limit": limit}]


class TestToolDecorator:
    def test_builds_tool(self):
        assert isinstance(top_products, Tool)
        assert top_products.name == "top_products"

    def test_parameters_schema(self):
        schema = top_products.definition.parameters_schema

        assert schema["required"] == ["days"]
        assert schema["additionalProperties"] is False
        assert schema["properties"]["days"] == {
            "type": "integer",
            "description": "Look-back window in days",
        }
        assert schema["properties"]["limit"] == {"type": "integer", "default": 5}
        category = schema["properties"]["category"]
        assert {"type": "null"} in category["anyOf"]

    def test_openai_format(self):
        rendered = top_products.definition.to_openai()

        assert rendered["type"] == "function"
        assert rendered["function"]["name"] == "top_products"
        assert rendered["function"]["description"] == "List best-selling products."

    def test_invalid_name(self):
        with pytest.raises(ValidationError):
            ToolDefinition(name="bad name!", description="x", parameters_schema={})


class TestToolInvoke:
    @pytest.mark.asyncio
    async def test_structured_result_serialized(self):
        content = await top_products.invoke({"days": 7})

        assert content == '[{"days": 7, "category": null, "limit": 5}]'

    @pytest.mark.asyncio
    async def test_arguments_validated(self):
        with pytest.raises(ValidationError):
            await top_products.invoke({"days": "last week"})

    @pytest.mark.asyncio
    async def test_unknown_argument_rejected(self):
        with pytest.raises(ValidationError):
            await top_products.invoke({"days": 7, "sql": "DROP TABLE x"})


class TestToolRegistry:
    def test_register_and_lookup(self):
        registry = ToolRegistry([top_products])

        assert "top_products" in registry
        assert registry.get("top_products") is top_products
        assert registry.get("missing") is None
        assert len(registry) == 1

    def test_duplicate_names_rejected(self):
        registry = ToolRegistry([top_products])

        with pytest.raises(ValueError, match="Duplicate tool name: top_products"):
            registry.register(top_products)

    def test_registries_are_independent(self):
        first = ToolRegistry([top_products])
        second = ToolRegistry()

        assert "top_products" in first
        assert "top_products" not in second

    def test_to_openai(self):
        registry = ToolRegistry([top_products])

        assert registry.to_openai() == [top_products.definition.to_openai()]
