"""Agentic loop: let the model call tools until it produces an answer."""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from .exceptions import MaxIterationsExceededError
from .logging_config import request_scope
from .tools import ToolRegistry

if TYPE_CHECKING:
    from .openrouter import OpenRouterClient

logger = logging.getLogger(__name__)


@dataclass
class AgentResult:
    """Final answer of an agent loop."""

    content: Optional[str]
    iterations: int
    messages: List[Dict[str, Any]] = field(default_factory=list)
    total_tokens: int = 0


async def run_agent_loop(
    client: "OpenRouterClient",
    messages: Sequence[Dict[str, Any]],
    registry: ToolRegistry,
    model: Optional[str] = None,
    max_iterations: int = 10,
    **params: Any,
) -> AgentResult:
    """
    Alternate model calls and tool execution.

    Each model call goes through the retry executor. Tool calls requested in
    one response run concurrently; their results are fed back matched to
    their call ids. All iterations share one request id.

    Raises:
        UnknownToolError: the model requested an unregistered tool
        MaxIterationsExceededError: no final answer within ``max_iterations``
    """
    model = model or client.config.default_model
    history: List[Dict[str, Any]] = list(messages)
    total_tokens = 0

    with request_scope():
        for iteration in range(max_iterations):
            logger.info(f"Agent iteration {iteration + 1}/{max_iterations}", extra={"model": model})

            result = await client.complete(
                model,
                history,
                tools=registry.definitions(),
                tool_choice="auto",
                parallel_tool_calls=True,
                **params,
            )
            total_tokens += result.total_tokens
            history.append(result.message)

            if not result.tool_calls:
                logger.info(f"Agent loop complete after {iteration + 1} iteration(s)")
                return AgentResult(
                    content=result.content,
                    iterations=iteration + 1,
                    messages=history,
                    total_tokens=total_tokens,
                )

            names = [call.get("function", {}).get("name") for call in result.tool_calls]
            logger.info(f"Model requested {len(names)} tool(s): {', '.join(map(str, names))}")
            history.extend(await registry.execute_calls(result.tool_calls))

    raise MaxIterationsExceededError(max_iterations)
