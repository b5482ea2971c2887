"""Default configuration for the application.

Assembles the modular definitions from `fallback_proxy.config.base` into the
single CONFIG dictionary that `ConfigManager` merges the on-disk config over.
"""

from fallback_proxy.config.base.models import PROVIDER_MODELS
from fallback_proxy.config.base.routing import (
    MODEL_MAPPINGS, MODEL_FALLBACKS, MODEL_FALLBACK_DEPTH
)
from fallback_proxy.config.base.settings import (
    AUTH_SETTINGS, REDIS_SETTINGS, RATE_LIMIT_SETTINGS
)

CONFIG = {
    "provider_models": PROVIDER_MODELS,
    "model_mappings": MODEL_MAPPINGS,
    "model_fallbacks": MODEL_FALLBACKS,
    "model_fallback_depth": MODEL_FALLBACK_DEPTH,
    "auth_settings": AUTH_SETTINGS,
    "redis_settings": REDIS_SETTINGS,
    "rate_limit_settings": RATE_LIMIT_SETTINGS,
}
