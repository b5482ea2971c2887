import os

"""Common configuration settings, read from the environment."""

CONFIG_PATH = os.getenv("FALLBACK_PROXY_CONFIG", "proxy_config.json")

AUTH_SETTINGS = {
    "enabled": os.getenv("AUTH_ENABLED", "True").lower() == "true",
    "management_key": os.getenv("MANAGEMENT_KEY", ""),
}

REDIS_SETTINGS = {
    "enabled": os.getenv("REDIS_ENABLED", "False").lower() == "true",
    "host": os.getenv("REDIS_HOST", "localhost"),
    "port": int(os.getenv("REDIS_PORT", 6379)),
    "channel": "fallback_proxy:model_fallbacks",
}

RATE_LIMIT_SETTINGS = {
    "management": os.getenv("MANAGEMENT_RATE_LIMIT", "60/minute"),
}

SERVER_SETTINGS = {
    "host": os.getenv("HOST", "0.0.0.0"),
    "port": int(os.getenv("PORT", 8317)),
}
