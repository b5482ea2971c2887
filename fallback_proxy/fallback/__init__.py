from .errors import (
    FallbackError,
    MalformedFallbackError,
    ConfigUnavailableError,
    FallbackNotFoundError,
    FallbackPersistenceError,
)
from .rules import DEFAULT_FALLBACK_DEPTH, FallbackRule, FallbackSnapshot, normalize_model_name
from .sanitizer import sanitize_rules, normalize_depth
from .resolver import lookup, resolve_chain
from .registry import FallbackRegistry, describe_chain
from .store import ConfigFileFallbackStore
from .notifier import FallbackNotifier
from .catalog import collect_available_models, COMMON_MODELS

__all__ = [
    "FallbackError",
    "MalformedFallbackError",
    "ConfigUnavailableError",
    "FallbackNotFoundError",
    "FallbackPersistenceError",
    "DEFAULT_FALLBACK_DEPTH",
    "FallbackRule",
    "FallbackSnapshot",
    "normalize_model_name",
    "sanitize_rules",
    "normalize_depth",
    "lookup",
    "resolve_chain",
    "FallbackRegistry",
    "describe_chain",
    "ConfigFileFallbackStore",
    "FallbackNotifier",
    "collect_available_models",
    "COMMON_MODELS",
]
