import inspect
import json
import logging
from typing import Any, Callable, List

from redis.exceptions import RedisError

from .rules import FallbackSnapshot

logger = logging.getLogger("FallbackProxy")

DEFAULT_CHANNEL = "fallback_proxy:model_fallbacks"

FallbackListener = Callable[[FallbackSnapshot], Any]


class FallbackNotifier:
    """Tells other subsystems that a new fallback rule set was committed.

    In-process listeners receive the new snapshot directly. When a Redis
    client is configured the rule set is also published on a pub/sub channel
    so sibling workers can reload their configuration.
    """

    def __init__(self, redis_client: Any = None, channel: str = DEFAULT_CHANNEL):
        self.redis_client = redis_client
        self.channel = channel
        self._listeners: List[FallbackListener] = []

    def add_listener(self, listener: FallbackListener):
        self._listeners.append(listener)

    def remove_listener(self, listener: FallbackListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def notify(self, snapshot: FallbackSnapshot):
        """Delivers the snapshot to every listener; one failure does not stop the rest."""
        for listener in list(self._listeners):
            try:
                result = listener(snapshot)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Model fallback listener {listener!r} failed: {e}", exc_info=True)

        await self._publish(snapshot)

    async def _publish(self, snapshot: FallbackSnapshot):
        if not self.redis_client:
            return
        payload = json.dumps(
            {
                "rules": [rule.to_wire() for rule in snapshot.rules],
                "depth": snapshot.depth,
            },
            ensure_ascii=False,
        )
        try:
            receivers = await self.redis_client.publish(self.channel, payload)
            logger.debug(f"Published model fallback reload to '{self.channel}' ({receivers} receivers).")
        except (RedisError, OSError) as e:
            logger.warning(f"Failed to publish model fallback reload to Redis: {e}")

