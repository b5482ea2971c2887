from typing import Any, Dict, Iterable, List, Optional, Set

from .rules import FallbackRule

# Always offered for autocomplete, even when no provider lists them
COMMON_MODELS = [
    "gemini-2.5-flash", "gemini-2.5-pro", "gemini-2.0-flash-exp",
    "claude-sonnet-4", "claude-haiku-3-5", "claude-opus-4",
    "gpt-4o", "gpt-4o-mini", "gpt-4-turbo",
]


def _add(models: Set[str], name: Any):
    if isinstance(name, str) and name.strip():
        models.add(name.strip())


def collect_available_models(
    config: Optional[Dict[str, Any]],
    rules: Iterable[FallbackRule] = (),
) -> List[str]:
    """Returns every model name known to the proxy, sorted, for UI autocomplete.

    Sources: provider model names and aliases, model mappings, fallback rule
    endpoints and COMMON_MODELS. Provider credentials are never included.
    """
    models: Set[str] = set()
    config = config or {}

    for entries in (config.get("provider_models") or {}).values():
        for entry in entries or []:
            if isinstance(entry, str):
                _add(models, entry)
            elif isinstance(entry, dict):
                _add(models, entry.get("name"))
                _add(models, entry.get("alias"))

    for mapping in config.get("model_mappings") or []:
        if isinstance(mapping, dict):
            _add(models, mapping.get("from"))
            _add(models, mapping.get("to"))

    for rule in rules:
        _add(models, rule.from_model)
        _add(models, rule.to_model)

    for name in COMMON_MODELS:
        _add(models, name)

    return sorted(models)
