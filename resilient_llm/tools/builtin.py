"""Demonstration tools: weather, database search and a calculator."""

import ast
import asyncio
import operator
from typing import Any, Dict, Union

from .registry import ToolRegistry

Number = Union[int, float]

_BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

MAX_EXPONENT = 100


def evaluate_expression(expression: str) -> Number:
    """Evaluate an arithmetic expression without ``eval``."""

    def visit(node: ast.AST) -> Number:
        if isinstance(node, ast.Expression):
            return visit(node.body)
        if isinstance(node, ast.Constant) and type(node.value) in (int, float):
            return node.value
        if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
            left, right = visit(node.left), visit(node.right)
            if isinstance(node.op, ast.Pow) and abs(right) > MAX_EXPONENT:
                raise ValueError("Exponent too large")
            return _BINARY_OPS[type(node.op)](left, right)
        if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
            return _UNARY_OPS[type(node.op)](visit(node.operand))
        raise ValueError(f"Unsupported expression element: {type(node).__name__}")

    return visit(ast.parse(expression, mode="eval"))


async def get_weather(location: str, unit: str = "celsius") -> Dict[str, Any]:
    # Simulated weather API call
    await asyncio.sleep(0.1)
    return {
        "location": location,
        "temperature": 22 if unit == "celsius" else 72,
        "unit": unit,
        "conditions": "Sunny",
        "humidity": 45,
    }


async def search_database(query: str, limit: int = 10) -> Dict[str, Any]:
    # Simulated database search
    await asyncio.sleep(0.15)
    results = [
        {"id": 1, "title": f"Result for {query}"},
        {"id": 2, "title": f"Another result for {query}"},
    ]
    return {"query": query, "results": results[:limit]}


async def calculate(expression: str) -> Dict[str, Any]:
    try:
        result = evaluate_expression(expression)
    except (SyntaxError, ValueError, ZeroDivisionError, OverflowError):
        return {"error": "Invalid expression", "expression": expression}

    await asyncio.sleep(0.05)
    return {"expression": expression, "result": result}


def default_registry() -> ToolRegistry:
    """Registry with the three demonstration tools."""
    registry = ToolRegistry()

    registry.register(
        "get_weather",
        "Get current weather for a location",
        {
            "type": "object",
            "properties": {
                "location": {"type": "string", "description": "City name"},
                "unit": {"type": "string", "enum": ["celsius", "fahrenheit"]},
            },
            "required": ["location"],
        },
    )(get_weather)

    registry.register(
        "search_database",
        "Search database for records",
        {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Search query"},
                "limit": {
                    "type": "integer",
                    "description": "Maximum results to return",
                    "default": 10,
                },
            },
            "required": ["query"],
        },
    )(search_database)

    registry.register(
        "calculate",
        "Perform mathematical calculations",
        {
            "type": "object",
            "properties": {
                "expression": {
                    "type": "string",
                    "description": "Mathematical expression to evaluate",
                },
            },
            "required": ["expression"],
        },
    )(calculate)

    return registry
