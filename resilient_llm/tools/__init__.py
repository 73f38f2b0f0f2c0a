"""Tool registry and built-in tools for agentic completion loops."""

from .builtin import calculate, default_registry, evaluate_expression, get_weather, search_database
from .registry import Tool, ToolRegistry

__all__ = [
    "Tool",
    "ToolRegistry",
    "default_registry",
    "evaluate_expression",
    "get_weather",
    "search_database",
    "calculate",
]
