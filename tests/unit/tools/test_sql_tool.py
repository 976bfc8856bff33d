"""Unit tests for the execute_sql tool."""

import pytest
from pydantic import ValidationError

from kopikita.agents.sanitizer import SQLPolicy, SQLRejectedError
from kopikita.connectors.base import QueryError, QueryResult
from kopikita.tools.executor import ToolExecutionError
from kopikita.tools.sql import create_execute_sql_tool, format_rows


def source_for(connector):
    async def connector_source():
        return connector

    return connector_source


class TestFormatRows:
    def test_rows_as_compact_json(self):
        assert format_rows([{"name": "Kopi Susu", "total": 12}], "SELECT 1", ["name", "total"]) == (
            '[{"name":"Kopi Susu","total":12}]'
        )

    def test_empty_result_set(self):
        assert format_rows([], "SELECT 0", ["name"]) == "[]"

    def test_status_for_statements_without_rows(self):
        assert format_rows([], "INSERT 0 3", []) == "INSERT 0 3"
        assert format_rows([], None, []) == "OK"


class TestExecuteSqlTool:
    def test_definition(self, fake_connector):
        sql_tool = create_execute_sql_tool(source_for(fake_connector), SQLPolicy(row_limit=5))

        definition = sql_tool.definition
        assert definition.name == "execute_sql"
        assert "5 rows" in definition.description
        assert definition.parameters_schema["required"] == ["query"]
        assert "SELECT" in definition.parameters_schema["properties"]["query"]["description"]

    @pytest.mark.asyncio
    async def test_sanitized_statement_executed(self, fake_connector):
        sql_tool = create_execute_sql_tool(source_for(fake_connector), SQLPolicy(row_limit=5))

        content = await sql_tool.invoke({"query": 'SELECT COUNT(*) FROM "Sale"'})

        assert fake_connector.queries == ['SELECT COUNT(*) FROM "Sale" LIMIT 5']
        assert content == '[{"count":3}]'

    @pytest.mark.asyncio
    async def test_rejected_statement_never_reaches_database(self, fake_connector):
        sql_tool = create_execute_sql_tool(source_for(fake_connector), SQLPolicy())

        with pytest.raises(SQLRejectedError):
            await sql_tool.invoke({"query": 'DELETE FROM "Sale"'})

        assert fake_connector.queries == []

    @pytest.mark.asyncio
    async def test_write_policy(self, make_connector):
        connector = make_connector(
            result=QueryResult(
                rows=[], row_count=0, columns=[], status_message="INSERT 0 2", execution_time_ms=2.0
            )
        )
        sql_tool = create_execute_sql_tool(source_for(connector), SQLPolicy(read_only=False))

        content = await sql_tool.invoke(
            {"query": 'INSERT INTO "Sale" ("quantity") VALUES (1), (2);'}
        )

        assert content == "INSERT 0 2"
        assert connector.queries == ['INSERT INTO "Sale" ("quantity") VALUES (1), (2)']

    @pytest.mark.asyncio
    async def test_database_error_becomes_tool_error(self, make_connector):
        connector = make_connector(error=QueryError('column "total" does not exist'))
        sql_tool = create_execute_sql_tool(source_for(connector), SQLPolicy())

        with pytest.raises(ToolExecutionError, match='column "total" does not exist'):
            await sql_tool.invoke({"query": 'SELECT "total" FROM "Sale"'})

    @pytest.mark.asyncio
    async def test_missing_query_argument(self, fake_connector):
        sql_tool = create_execute_sql_tool(source_for(fake_connector), SQLPolicy())

        with pytest.raises(ValidationError):
            await sql_tool.invoke({})
