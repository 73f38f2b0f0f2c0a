"""Tests for the tool registry and built-in tools."""

import asyncio
import json

import pytest

from resilient_llm.exceptions import ToolError, UnknownToolError
from resilient_llm.tools import (
    Tool,
    ToolRegistry,
    calculate,
    default_registry,
    evaluate_expression,
    get_weather,
)

from .fixtures.responses import make_tool_call


class TestToolRegistry:
    """Tests for registering and running tools."""

    @pytest.fixture
    def registry(self):
        registry = ToolRegistry()

        @registry.register("echo", "Echo the input")
        def echo(text):
            return {"text": text}

        @registry.register("add", "Add two numbers", {"type": "object", "properties": {}})
        async def add(a, b):
            return a + b

        return registry

    def test_register_and_lookup(self, registry):
        assert "echo" in registry
        assert "missing" not in registry
        assert len(registry) == 2
        assert registry.names == ["echo", "add"]

    def test_duplicate_rejected(self, registry):
        with pytest.raises(ValueError, match="already registered"):
            registry.add(Tool("echo", "again", lambda: None))

    def test_definitions(self, registry):
        definitions = registry.definitions()

        assert definitions[0] == {
            "type": "function",
            "function": {
                "name": "echo",
                "description": "Echo the input",
                "parameters": {"type": "object", "properties": {}},
            },
        }

    @pytest.mark.asyncio
    async def test_execute_sync_and_async(self, registry):
        assert await registry.execute("echo", {"text": "hi"}) == {"text": "hi"}
        assert await registry.execute("add", {"a": 2, "b": 3}) == 5

    @pytest.mark.asyncio
    async def test_unknown_tool(self, registry):
        with pytest.raises(UnknownToolError, match="Unknown tool: nope"):
            await registry.execute("nope", {})

    @pytest.mark.asyncio
    async def test_bad_arguments(self, registry):
        with pytest.raises(ToolError, match="Invalid arguments for add"):
            await registry.execute("add", {"a": 1})

    @pytest.mark.asyncio
    async def test_execute_calls_keeps_order_and_ids(self, registry):
        calls = [
            make_tool_call("call_1", "add", {"a": 1, "b": 2}),
            make_tool_call("call_2", "echo", {"text": "x"}),
        ]

        results = await registry.execute_calls(calls)

        assert results == [
            {"role": "tool", "tool_call_id": "call_1", "content": "3"},
            {"role": "tool", "tool_call_id": "call_2", "content": json.dumps({"text": "x"})},
        ]

    @pytest.mark.asyncio
    async def test_execute_calls_runs_concurrently(self):
        """Each tool waits for the other; only concurrent execution finishes."""
        registry = ToolRegistry()
        first_started = asyncio.Event()
        second_started = asyncio.Event()

        @registry.register("first", "First")
        async def first():
            first_started.set()
            await second_started.wait()
            return "first"

        @registry.register("second", "Second")
        async def second():
            second_started.set()
            await first_started.wait()
            return "second"

        results = await asyncio.wait_for(
            registry.execute_calls(
                [make_tool_call("a", "first", {}), make_tool_call("b", "second", {})]
            ),
            timeout=2,
        )

        assert [r["content"] for r in results] == ['"first"', '"second"']

    @pytest.mark.asyncio
    async def test_invalid_argument_json(self, registry):
        call = {"id": "c", "function": {"name": "echo", "arguments": "{broken"}}

        with pytest.raises(ToolError, match="Invalid JSON arguments"):
            await registry.execute_calls([call])


class TestBuiltinTools:
    """Tests for the demonstration tools."""

    @pytest.mark.parametrize(
        "expression,expected",
        [("15 + 27", 42), ("2 * (3 + 4)", 14), ("-5 + 2", -3), ("7 / 2", 3.5), ("2 ** 10", 1024)],
    )
    def test_evaluate_expression(self, expression, expected):
        assert evaluate_expression(expression) == expected

    @pytest.mark.parametrize(
        "expression",
        ["__import__('os').system('ls')", "abs(-1)", "x + 1", "2 ** 1000", "'a' * 3"],
    )
    def test_evaluate_rejects_non_arithmetic(self, expression):
        with pytest.raises(ValueError):
            evaluate_expression(expression)

    @pytest.mark.asyncio
    async def test_calculate(self):
        assert await calculate("15 * 4") == {"expression": "15 * 4", "result": 60}

    @pytest.mark.asyncio
    async def test_calculate_invalid(self):
        assert await calculate("1 / 0") == {"error": "Invalid expression", "expression": "1 / 0"}
        assert (await calculate("import os"))["error"] == "Invalid expression"

    @pytest.mark.asyncio
    async def test_get_weather(self):
        weather = await get_weather("Paris", unit="fahrenheit")

        assert weather["location"] == "Paris"
        assert weather["temperature"] == 72
        assert weather["conditions"] == "Sunny"

    def test_default_registry(self):
        registry = default_registry()
        assert registry.names == ["get_weather", "search_database", "calculate"]

    @pytest.mark.asyncio
    async def test_default_registry_executes(self):
        results = await default_registry().execute_calls(
            [
                make_tool_call("w", "get_weather", {"location": "Tokyo"}),
                make_tool_call("s", "search_database", {"query": "llm", "limit": 1}),
            ]
        )

        assert json.loads(results[0]["content"])["temperature"] == 22
        assert len(json.loads(results[1]["content"])["results"]) == 1
