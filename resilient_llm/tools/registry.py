"""Registry of tools the model may call."""

import asyncio
import inspect
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..exceptions import ToolError, UnknownToolError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tool:
    """A named capability with a JSON-schema parameter description."""

    name: str
    description: str
    handler: Callable[..., Any]
    parameters: Dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )

    def to_definition(self) -> Dict[str, Any]:
        """OpenAI-style function tool definition."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


class ToolRegistry:
    """
    Lookup table from tool name to handler.

    Usage:
        registry = ToolRegistry()

        @registry.register("get_weather", "Get current weather", {...})
        async def get_weather(location: str):
            ...
    """

    def __init__(self):
        self._tools: Dict[str, Tool] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    @property
    def names(self) -> List[str]:
        return list(self._tools)

    def add(self, tool: Tool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name}")
        self._tools[tool.name] = tool

    def register(
        self,
        name: str,
        description: str,
        parameters: Optional[Dict[str, Any]] = None,
    ):
        """Decorator registering a sync or async handler under ``name``."""

        def decorator(func: Callable[..., Any]):
            if parameters is None:
                self.add(Tool(name, description, func))
            else:
                self.add(Tool(name, description, func, parameters))
            return func

        return decorator

    def definitions(self) -> List[Dict[str, Any]]:
        """The ``tools`` request payload."""
        return [tool.to_definition() for tool in self._tools.values()]

    async def execute(self, name: str, arguments: Dict[str, Any]) -> Any:
        """
        Run one tool.

        Raises:
            UnknownToolError: no tool is registered under ``name``
            ToolError: arguments do not fit the handler
        """
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(name)

        logger.info(f"Executing tool: {name}")
        try:
            result = tool.handler(**arguments)
        except TypeError as e:
            raise ToolError(f"Invalid arguments for {name}: {e}") from e

        if inspect.isawaitable(result):
            result = await result
        return result

    async def execute_calls(self, tool_calls: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Run every requested tool call concurrently.

        Returns one ``role: tool`` message per call, in call order, each
        tagged with the originating ``tool_call_id``.
        """

        async def run(call: Dict[str, Any]) -> Dict[str, Any]:
            function = call.get("function") or {}
            name = function.get("name", "")
            raw_arguments = function.get("arguments") or "{}"

            if isinstance(raw_arguments, str):
                try:
                    arguments = json.loads(raw_arguments)
                except ValueError as e:
                    raise ToolError(f"Invalid JSON arguments for {name}: {e}") from e
            else:
                arguments = raw_arguments

            result = await self.execute(name, arguments)
            return {
                "role": "tool",
                "tool_call_id": call.get("id"),
                "content": json.dumps(result),
            }

        return list(await asyncio.gather(*(run(call) for call in tool_calls)))
