from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_FALLBACK_DEPTH = 3


def normalize_model_name(name: Optional[str]) -> str:
    """Comparison key for a model name: trimmed and case-folded."""
    if not name:
        return ""
    return name.strip().casefold()


class FallbackRule(BaseModel):
    """A single `from -> to` model substitution.

    Serialized with the wire names `from` / `to`.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    from_model: str = Field(alias="from")
    to_model: str = Field(alias="to")

    @property
    def key(self) -> Tuple[str, str]:
        return normalize_model_name(self.from_model), normalize_model_name(self.to_model)

    def matches(self, from_model: str, to_model: Optional[str] = None) -> bool:
        """Case-insensitive match on `from`, and on `to` when given."""
        if normalize_model_name(self.from_model) != normalize_model_name(from_model):
            return False
        if to_model is None:
            return True
        return normalize_model_name(self.to_model) == normalize_model_name(to_model)

    def to_wire(self) -> Dict[str, str]:
        return self.model_dump(by_alias=True)


@dataclass(frozen=True)
class FallbackSnapshot:
    """An immutable view of the rule set and the resolution depth.

    The registry publishes a new snapshot on every mutation; readers keep the
    reference they started with for the whole call.
    """

    rules: Tuple[FallbackRule, ...] = ()
    depth: int = DEFAULT_FALLBACK_DEPTH
    targets: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({}), compare=False, repr=False
    )

    @classmethod
    def build(cls, rules, depth: int) -> "FallbackSnapshot":
        """Creates a snapshot from already-sanitized rules."""
        rules = tuple(rules)
        targets: Dict[str, str] = {}
        for rule in rules:
            # first rule for a given `from` wins
            targets.setdefault(normalize_model_name(rule.from_model), rule.to_model)
        return cls(rules=rules, depth=depth, targets=MappingProxyType(targets))

    def to_wire(self) -> Dict[str, object]:
        return {
            "model-fallbacks": [rule.to_wire() for rule in self.rules],
            "model-fallback-depth": self.depth,
        }


EMPTY_SNAPSHOT = FallbackSnapshot.build((), DEFAULT_FALLBACK_DEPTH)
