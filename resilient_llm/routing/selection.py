"""Model selection and fallback lists."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class Task(str, Enum):
    GENERAL = "general"
    CODING = "coding"
    REASONING = "reasoning"
    CREATIVE = "creative"
    SUMMARIZATION = "summarization"
    TRANSLATION = "translation"


class Priority(str, Enum):
    QUALITY = "quality"
    SPEED = "speed"
    COST = "cost"


class Budget(str, Enum):
    FREE = "free"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class ModelRequirements:
    """What the caller needs from a model."""

    task: Task = Task.GENERAL
    priority: Priority = Priority.QUALITY
    needs_current_info: bool = False
    large_context: bool = False
    needs_tools: bool = True
    needs_multimodal: bool = False
    budget: Budget = Budget.MEDIUM

    def __post_init__(self):
        self.task = Task(self.task)
        self.priority = Priority(self.priority)
        self.budget = Budget(self.budget)


# Fallback chains, most preferred first
MODEL_FALLBACKS: Dict[str, List[str]] = {
    "anthropic/claude-3.5-sonnet": [
        "openai/gpt-4o",
        "google/gemini-2.5-pro",
        "meta-llama/llama-3.1-70b:free",
    ],
    "openai/gpt-4o": [
        "anthropic/claude-3.5-sonnet",
        "google/gemini-2.5-pro",
    ],
    "google/gemini-2.0-flash": [
        "openai/gpt-4o-mini",
        "anthropic/claude-haiku-4",
    ],
    "anthropic/claude-opus-4": [
        "openai/o1",
        "anthropic/claude-3.5-sonnet",
    ],
}

DEFAULT_FALLBACKS = [
    "anthropic/claude-3.5-sonnet",
    "openai/gpt-4o",
    "google/gemini-2.0-flash",
]

PROVIDER_PREFERENCES: Dict[Priority, Dict[str, Any]] = {
    Priority.QUALITY: {
        "order": ["anthropic", "openai", "google"],
        "allow_fallbacks": True,
        "sort": None,  # Let provider decide
    },
    Priority.SPEED: {
        "order": ["google", "anthropic", "openai"],
        "allow_fallbacks": True,
        "sort": "latency",
    },
    Priority.COST: {
        "order": ["google", "meta-llama", "anthropic"],
        "allow_fallbacks": True,
        "sort": "price",
    },
}

# (temperature, max_tokens) per task
TASK_PARAMETERS: Dict[Task, tuple] = {
    Task.CODING: (0.3, 1500),
    Task.CREATIVE: (1.0, 1000),
    Task.SUMMARIZATION: (0.2, 500),
}
DEFAULT_TASK_PARAMETERS = (0.6, 1000)
LARGE_CONTEXT_MAX_TOKENS = 4000
FREE_TIER_MAX_TOKENS = 500


def _select(req: ModelRequirements) -> str:
    if req.priority is Priority.QUALITY:
        if req.task is Task.REASONING:
            return "anthropic/claude-opus-4:online" if req.needs_current_info else "anthropic/claude-opus-4"
        if req.task is Task.CODING:
            return "anthropic/claude-opus-4:extended" if req.large_context else "anthropic/claude-3.5-sonnet"
        return "anthropic/claude-3.5-sonnet:online" if req.needs_current_info else "anthropic/claude-3.5-sonnet"

    if req.priority is Priority.SPEED:
        if req.task is Task.CODING:
            return "anthropic/claude-3.5-sonnet:nitro"
        return "google/gemini-2.0-flash:online:nitro" if req.needs_current_info else "google/gemini-2.0-flash:nitro"

    # Priority.COST
    if req.budget is Budget.FREE:
        return "google/gemini-2.0-flash:free"
    if req.task is Task.CODING:
        return "qwen/qwen-2.5-coder-32b"
    return "google/gemini-2.0-flash"


def select_model(requirements: Optional[ModelRequirements] = None) -> str:
    """Pick a model identifier for the given requirements."""
    requirements = requirements or ModelRequirements()
    model = _select(requirements)
    logger.debug(
        f"Selected {model} for task={requirements.task.value} "
        f"priority={requirements.priority.value} budget={requirements.budget.value}"
    )
    return model


def get_fallback_models(model: str) -> List[str]:
    """Ordered fallbacks for a model; a default chain for unknown models."""
    return list(MODEL_FALLBACKS.get(model, DEFAULT_FALLBACKS))


def get_tier_params(model: str) -> Dict[str, Any]:
    """Payload overrides for a model used as a fallback tier."""
    if model.endswith(":free"):
        return {"max_tokens": FREE_TIER_MAX_TOKENS}
    return {}


def get_provider_preferences(priority: Priority = Priority.QUALITY) -> Dict[str, Any]:
    """Provider routing preferences for a priority."""
    prefs = PROVIDER_PREFERENCES[Priority(priority)]
    return {**prefs, "order": list(prefs["order"])}


def build_optimized_request(
    messages: List[Dict[str, Any]],
    requirements: Optional[ModelRequirements] = None,
) -> Dict[str, Any]:
    """Build a request payload with model, fallbacks, provider routing and sampling."""
    requirements = requirements or ModelRequirements()
    primary = select_model(requirements)
    model = primary
    temperature, max_tokens = TASK_PARAMETERS.get(requirements.task, DEFAULT_TASK_PARAMETERS)

    if requirements.large_context:
        max_tokens = LARGE_CONTEXT_MAX_TOKENS

    if requirements.needs_current_info and ":online" not in model:
        model = f"{model}:online"

    return {
        "model": model,
        "models": get_fallback_models(primary),
        "provider": get_provider_preferences(requirements.priority),
        "messages": list(messages),
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
