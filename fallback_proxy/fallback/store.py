import asyncio
import logging

from fallback_proxy.config import ConfigManager

from .errors import FallbackPersistenceError
from .rules import FallbackSnapshot

logger = logging.getLogger("FallbackProxy")


class ConfigFileFallbackStore:
    """Persists the fallback rules and depth into the proxy's JSON config file."""

    def __init__(self, config_manager: ConfigManager):
        self.config_manager = config_manager

    async def save(self, snapshot: FallbackSnapshot):
        """Writes the snapshot durably.

        Raises:
            FallbackPersistenceError: If the config file could not be written.
        """
        rules = [rule.to_wire() for rule in snapshot.rules]
        try:
            await asyncio.to_thread(
                self.config_manager.save_model_fallbacks, rules, snapshot.depth
            )
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to persist model fallbacks: {e}")
            raise FallbackPersistenceError(f"failed to save config: {e}") from e
