from slowapi import Limiter
from slowapi.util import get_remote_address
import os

from fallback_proxy.config.base.settings import RATE_LIMIT_SETTINGS

MANAGEMENT_RATE_LIMIT = RATE_LIMIT_SETTINGS["management"]


def get_limiter():
    # Shared counters across workers need Redis; a single worker can use memory.
    # Note: the 'limits' library uses the 'redis://' scheme.
    storage_uri = os.getenv("REDIS_URL", "memory://")
    return Limiter(
        key_func=get_remote_address,
        storage_uri=storage_uri,
        strategy="fixed-window",
    )


limiter = get_limiter()

if os.getenv("RATE_LIMIT_ENABLED", "true").lower() != "true":
    limiter.enabled = False
