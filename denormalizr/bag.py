"""
Call-scoped cycle guard for the non-memoized engine.

The bag maps entity key -> identifier -> the object being (or already)
reconstructed during one top-level call. An entity is stored in the bag
before its relations are walked, so a relation that cycles back receives the
same object instead of recursing again.
"""
from typing import Any, Dict, Iterator, Tuple

from denormalizr.config import DEFAULT_CONFIG, DenormalizerConfig


class DenormalizationBag:
    """Visitation ledger for a single `denormalize` call."""

    def __init__(self, config: DenormalizerConfig = DEFAULT_CONFIG) -> None:
        self.config = config
        self._entries: Dict[str, Dict[str, Any]] = {}

    def has(self, key: str, entity_id: Any) -> bool:
        return str(entity_id) in self._entries.get(key, {})

    def get(self, key: str, entity_id: Any) -> Any:
        return self._entries.get(key, {}).get(str(entity_id))

    def put(self, key: str, entity_id: Any, value: Any) -> None:
        self._entries.setdefault(key, {})[str(entity_id)] = value

    def __contains__(self, item: Tuple[str, Any]) -> bool:
        key, entity_id = item
        return self.has(key, entity_id)

    def __len__(self) -> int:
        return sum(len(table) for table in self._entries.values())

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        for key, table in self._entries.items():
            for entity_id in table:
                yield key, entity_id

    def __repr__(self) -> str:
        return f"DenormalizationBag({len(self)} entities)"
