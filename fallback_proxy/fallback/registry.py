import asyncio
import logging
from typing import Any, Iterable, List, Optional

from opentelemetry import trace

from . import resolver
from .errors import FallbackNotFoundError
from .notifier import FallbackNotifier
from .rules import EMPTY_SNAPSHOT, FallbackRule, FallbackSnapshot
from .sanitizer import normalize_depth, sanitize_rules
from .store import ConfigFileFallbackStore

logger = logging.getLogger("FallbackProxy")
tracer = trace.get_tracer(__name__)


class FallbackRegistry:
    """Process-wide table of model fallback rules.

    Reads never take a lock: they grab the current snapshot reference once
    and work on that immutable object. Writers serialize on an asyncio lock,
    build a fresh rule list from the current snapshot, sanitize it, persist
    it, and only then publish the new snapshot and notify listeners. A
    failure before publication leaves the previous snapshot in place.
    """

    def __init__(
        self,
        rules: Optional[Iterable[Any]] = None,
        depth: Optional[int] = None,
        store: Optional[ConfigFileFallbackStore] = None,
        notifier: Optional[FallbackNotifier] = None,
    ):
        self.store = store
        self.notifier = notifier
        self._snapshot = FallbackSnapshot.build(sanitize_rules(rules), normalize_depth(depth))
        self._lock = asyncio.Lock()
        logger.info(
            f"FallbackRegistry initialized with {len(self._snapshot.rules)} rule(s), "
            f"depth={self._snapshot.depth}."
        )

    @classmethod
    def from_config(cls, config: dict, store=None, notifier=None) -> "FallbackRegistry":
        """Builds a registry from the `model_fallbacks` / `model_fallback_depth` config keys."""
        return cls(
            rules=config.get("model_fallbacks") or [],
            depth=config.get("model_fallback_depth"),
            store=store,
            notifier=notifier,
        )

    # --- Reads ---

    @property
    def snapshot(self) -> FallbackSnapshot:
        return self._snapshot

    def get_config(self) -> FallbackSnapshot:
        return self._snapshot

    def lookup(self, model: Optional[str]) -> Optional[str]:
        """Single-hop substitute for `model`; None when fallback is disabled (depth 0)."""
        snapshot = self._snapshot
        if snapshot.depth <= 0:
            return None
        return resolver.lookup(snapshot, model)

    def resolve_chain(self, model: Optional[str]) -> List[str]:
        return resolver.resolve_chain(self._snapshot, model)

    # --- Writes ---

    async def replace(self, rules: Optional[Iterable[Any]], depth: Optional[int] = None) -> FallbackSnapshot:
        """Replaces the whole rule set. Unset or negative depth resets to the default."""
        async with self._lock:
            return await self._commit(rules or [], normalize_depth(depth), "replace")

    async def add(self, rule: FallbackRule) -> bool:
        """Appends a rule.

        Returns False without persisting anything when the rule would be
        dropped by sanitization (blank or self-referencing) or when an
        equivalent `(from, to)` pair already exists.
        """
        cleaned = sanitize_rules([rule])
        if not cleaned:
            logger.info(
                f"Model fallback '{rule.from_model}' -> '{rule.to_model}' ignored: blank or self-referencing."
            )
            return False
        rule = cleaned[0]

        async with self._lock:
            current = self._snapshot
            if any(existing.key == rule.key for existing in current.rules):
                logger.info(
                    f"Model fallback '{rule.from_model}' -> '{rule.to_model}' already exists."
                )
                return False
            await self._commit(list(current.rules) + [rule], current.depth, "add")
            return True

    async def delete(
        self,
        index: Optional[int] = None,
        from_model: Optional[str] = None,
        to_model: Optional[str] = None,
    ) -> int:
        """Removes rules and returns how many were removed.

        Selectors are tried in order: an in-bounds `index`, then every rule
        whose `from` matches when no `to` is given, then the exact
        `(from, to)` pair.

        Raises:
            FallbackNotFoundError: If no selector matched a rule.
        """
        from_model = (from_model or "").strip()
        to_model = (to_model or "").strip()

        async with self._lock:
            current = self._snapshot
            rules = list(current.rules)

            if index is not None and 0 <= index < len(rules):
                del rules[index]
                await self._commit(rules, current.depth, "delete")
                return 1

            if from_model and not to_model:
                remaining = [rule for rule in rules if not rule.matches(from_model)]
                if len(remaining) != len(rules):
                    await self._commit(remaining, current.depth, "delete")
                    return len(rules) - len(remaining)

            if from_model and to_model:
                remaining = [rule for rule in rules if not rule.matches(from_model, to_model)]
                if len(remaining) != len(rules):
                    await self._commit(remaining, current.depth, "delete")
                    return len(rules) - len(remaining)

        raise FallbackNotFoundError("fallback not found")

    async def _commit(self, rules: Iterable[Any], depth: int, operation: str) -> FallbackSnapshot:
        """Sanitizes, persists, publishes and notifies. Caller holds the lock."""
        with tracer.start_as_current_span("model_fallbacks.commit") as span:
            snapshot = FallbackSnapshot.build(sanitize_rules(rules), depth)
            span.set_attribute("model_fallbacks.operation", operation)
            span.set_attribute("model_fallbacks.rule_count", len(snapshot.rules))
            span.set_attribute("model_fallbacks.depth", snapshot.depth)

            if self.store is not None:
                # FallbackPersistenceError propagates; nothing has been published yet.
                await self.store.save(snapshot)

            self._snapshot = snapshot
            logger.info(
                f"Model fallbacks updated ({operation}): {len(snapshot.rules)} rule(s), "
                f"depth={snapshot.depth}."
            )

            if self.notifier is not None:
                await self.notifier.notify(snapshot)
            return snapshot


def describe_chain(registry: Optional[FallbackRegistry], model: str) -> dict:
    """Read-only resolution preview for the management API."""
    snapshot = registry.snapshot if registry is not None else EMPTY_SNAPSHOT
    fallback = resolver.lookup(snapshot, model) if snapshot.depth > 0 else None
    return {
        "model": model,
        "fallback": fallback,
        "chain": resolver.resolve_chain(snapshot, model),
        "depth": snapshot.depth,
    }
