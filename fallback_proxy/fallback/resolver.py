from typing import List, Optional

from .rules import FallbackSnapshot, normalize_model_name


def lookup(snapshot: FallbackSnapshot, model: Optional[str]) -> Optional[str]:
    """Returns the substitute for `model` from the first matching rule, or None.

    Matching on `from` is case-insensitive. Depth is not consulted here.
    """
    key = normalize_model_name(model)
    if not key:
        return None
    return snapshot.targets.get(key)


def resolve_chain(snapshot: FallbackSnapshot, model: Optional[str]) -> List[str]:
    """Follows substitutions from `model` and returns the models reached, in order.

    The starting model is not part of the result. Traversal stops when no rule
    matches, after `snapshot.depth` hops, or when the next model was already
    visited (the starting model included), so a cyclic rule set still
    terminates. Depth 0 returns an empty chain.
    """
    if snapshot.depth <= 0:
        return []

    current = normalize_model_name(model)
    if not current:
        return []

    visited = {current}
    chain: List[str] = []
    while len(chain) < snapshot.depth:
        candidate = snapshot.targets.get(current)
        if candidate is None:
            break
        candidate_key = normalize_model_name(candidate)
        if candidate_key in visited:
            break
        visited.add(candidate_key)
        chain.append(candidate)
        current = candidate_key
    return chain
