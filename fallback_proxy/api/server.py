import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv

load_dotenv()
import redis.asyncio as redis
from redis.exceptions import RedisError

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from fallback_proxy import __version__
from fallback_proxy.common import tracing, logging_config
from fallback_proxy.config import ConfigManager, ConfigLoadError
from fallback_proxy.fallback import (
    ConfigFileFallbackStore,
    FallbackNotifier,
    FallbackRegistry,
)
from fallback_proxy.api.routes import management
from fallback_proxy.api.middleware.rate_limit import limiter
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

logging_config.setup_json_logging()
logger = logging.getLogger("FallbackProxy")
logger.addFilter(logging_config.ApiKeyFilter())


async def connect_redis(redis_settings: dict):
    """Returns a connected Redis client, or None when disabled or unreachable."""
    if not redis_settings or not redis_settings.get("enabled", False):
        logger.warning("Redis is not configured. Fallback reloads will stay in-process.")
        return None

    host = redis_settings.get("host", "localhost")
    port = int(redis_settings.get("port", 6379))
    client = redis.Redis(host=host, port=port, db=0, decode_responses=True)
    try:
        await client.ping()
        logger.info(f"✅ Successfully connected to Redis: {host}:{port}")
        return client
    except (RedisError, OSError) as e:
        logger.error(
            f"❌ Could not connect to Redis at {host}:{port}: {e}. Fallback reloads will stay in-process."
        )
        await client.aclose()
        return None


def create_app(config_manager: Optional[ConfigManager] = None, redis_client=None) -> FastAPI:
    """Builds the management application.

    `config_manager` and `redis_client` are created during startup when not given.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Loads configuration, builds the fallback registry and wires persistence
        and reload notification. Closes Redis on shutdown.
        """
        logger.info("Initializing Model Fallback Proxy...")
        tracing.setup_tracing()

        manager = config_manager
        if manager is None:
            try:
                manager = ConfigManager()
            except ConfigLoadError as e:
                # Reads degrade to defaults, mutations fail with 'config not available'
                logger.error(f"❌ Configuration unavailable: {e}")

        app.state.config_manager = manager
        app.state.config = manager.get_active_config() if manager else None
        app.state.redis_client = redis_client
        owns_redis = False

        if manager is not None:
            config = app.state.config
            auth_settings = config.get("auth_settings", {})
            logging_config.ApiKeyFilter.add_sensitive_keys([auth_settings.get("management_key")])

            if app.state.redis_client is None:
                app.state.redis_client = await connect_redis(config.get("redis_settings", {}))
                owns_redis = app.state.redis_client is not None

            notifier = FallbackNotifier(
                redis_client=app.state.redis_client,
                channel=config.get("redis_settings", {}).get("channel", "fallback_proxy:model_fallbacks"),
            )

            def refresh_app_config(_snapshot):
                app.state.config = manager.get_active_config()

            notifier.add_listener(refresh_app_config)

            app.state.fallback_registry = FallbackRegistry.from_config(
                config,
                store=ConfigFileFallbackStore(manager),
                notifier=notifier,
            )
        else:
            app.state.fallback_registry = None

        logger.info("Application initialized successfully.")
        yield
        logger.info("Shutting down...")

        if owns_redis and app.state.redis_client:
            await app.state.redis_client.aclose()
        logger.info("Application stopped.")

    app = FastAPI(
        title="Model Fallback Proxy", version=__version__, lifespan=lifespan
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(management.router)
    FastAPIInstrumentor.instrument_app(app)

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok", "fallbacks_loaded": getattr(app.state, "fallback_registry", None) is not None}

    return app


app = create_app()
