"""Model selection, fallback chains and provider routing preferences."""

from .selection import (
    DEFAULT_FALLBACKS,
    MODEL_FALLBACKS,
    Budget,
    ModelRequirements,
    Priority,
    Task,
    build_optimized_request,
    get_fallback_models,
    get_provider_preferences,
    get_tier_params,
    select_model,
)

__all__ = [
    "ModelRequirements",
    "Task",
    "Priority",
    "Budget",
    "select_model",
    "get_fallback_models",
    "get_provider_preferences",
    "get_tier_params",
    "build_optimized_request",
    "MODEL_FALLBACKS",
    "DEFAULT_FALLBACKS",
]
