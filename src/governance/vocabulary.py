"""
Loads and caches the controlled vocabularies used to validate intents.

The vocabulary file is the single source of truth for:
  - valid measures    (business metrics the assistant can report on)
  - valid grains      (time bucketing granularities)
  - valid dimensions  (fields a filter may constrain)

All three sets compare case-insensitively and are read-only once loaded.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable, Iterator

import yaml

_VOCABULARY_PATH = Path(__file__).resolve().parents[2] / "semantic_layer" / "vocabulary.yml"


# ── Typed domain objects ─────────────────────────────────

@dataclass(frozen=True)
class Vocabulary:
    """An immutable, case-insensitive set of legal values.

    ``values`` keeps the canonical spelling in declaration order (that is
    what prompts and error messages show); membership checks go through a
    casefolded copy and never touch the caller's string.
    """

    name: str
    values: tuple[str, ...]
    _folded: frozenset[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_folded", frozenset(v.casefold() for v in self.values))

    @classmethod
    def of(cls, name: str, values: Iterable[str]) -> Vocabulary:
        return cls(name=name, values=tuple(values))

    def __contains__(self, item: object) -> bool:
        if not isinstance(item, str):
            return False
        return item.casefold() in self._folded

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def joined(self, sep: str = ", ") -> str:
        return sep.join(self.values)


@dataclass(frozen=True)
class ControlledVocabularies:
    measures: Vocabulary
    grains: Vocabulary
    dimensions: Vocabulary
    version: int = 1


# ── Parsing ──────────────────────────────────────────────

def _parse_list(raw: dict[str, Any], key: str) -> Vocabulary:
    values = raw.get(key) or []
    if not values:
        raise ValueError(f"Vocabulary file has no entries for '{key}'.")
    return Vocabulary.of(key, (str(v).strip() for v in values))


def parse_vocabularies(raw_yaml: dict[str, Any]) -> ControlledVocabularies:
    return ControlledVocabularies(
        measures=_parse_list(raw_yaml, "measures"),
        grains=_parse_list(raw_yaml, "grains"),
        dimensions=_parse_list(raw_yaml, "dimensions"),
        version=raw_yaml.get("version", 1),
    )


# ── Public API ───────────────────────────────────────────

@lru_cache
def load_vocabularies() -> ControlledVocabularies:
    """Load and cache the controlled vocabularies from YAML."""
    with open(_VOCABULARY_PATH, encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    return parse_vocabularies(raw)
