import logging
from typing import Any, Iterable, List, Mapping, Optional, Set, Tuple

from .rules import DEFAULT_FALLBACK_DEPTH, FallbackRule, normalize_model_name

logger = logging.getLogger("FallbackProxy")


def _coerce_rule(entry: Any) -> Optional[FallbackRule]:
    """Accepts a FallbackRule or a `{"from": .., "to": ..}` mapping from config."""
    if isinstance(entry, FallbackRule):
        return entry
    if isinstance(entry, Mapping):
        from_model = entry.get("from", entry.get("from_model"))
        to_model = entry.get("to", entry.get("to_model"))
        if isinstance(from_model, str) and isinstance(to_model, str):
            return FallbackRule(from_model=from_model, to_model=to_model)
    return None


def sanitize_rules(rules: Optional[Iterable[Any]]) -> List[FallbackRule]:
    """Normalizes a rule list so it satisfies the rule set invariants.

    Trims both names, then drops blank entries, self-references (`a -> A`)
    and case-insensitive duplicates. The first occurrence of a duplicate is
    kept with its trimmed casing and relative order is preserved.

    Each rule is checked on its own: multi-hop cycles such as
    `a -> b, b -> a` pass unchanged and are handled at resolution time.
    """
    if not rules:
        return []

    seen: Set[Tuple[str, str]] = set()
    sanitized: List[FallbackRule] = []
    dropped = 0

    for entry in rules:
        rule = _coerce_rule(entry)
        if rule is None:
            dropped += 1
            continue

        from_model = rule.from_model.strip()
        to_model = rule.to_model.strip()
        if not from_model or not to_model:
            dropped += 1
            continue

        key = (normalize_model_name(from_model), normalize_model_name(to_model))
        if key[0] == key[1] or key in seen:
            dropped += 1
            continue

        seen.add(key)
        if from_model != rule.from_model or to_model != rule.to_model:
            rule = FallbackRule(from_model=from_model, to_model=to_model)
        sanitized.append(rule)

    if dropped:
        logger.debug(f"Sanitizer dropped {dropped} invalid or duplicate model fallback(s).")
    return sanitized


def normalize_depth(depth: Any) -> int:
    """Unset or negative depth resets to the default; 0 disables fallback."""
    if depth is None or isinstance(depth, bool):
        return DEFAULT_FALLBACK_DEPTH
    try:
        value = int(depth)
    except (TypeError, ValueError):
        return DEFAULT_FALLBACK_DEPTH
    if value < 0:
        return DEFAULT_FALLBACK_DEPTH
    return value
