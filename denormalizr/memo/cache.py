"""
Memoization state for the memoized denormalizer.

The cache maps (entity key, identifier) to a `CacheCell` holding the raw
entity seen last time and the denormalized object returned for it. Cells are
created on first use and updated in place; nothing is evicted unless the
owner calls `evict`, `evict_type` or `clear`.

Cell lifecycle:
    Uninitialized -> Seeded (raw entity stands in for its denormalized form)
    Seeded/Stable -> Stable      raw entity and relations unchanged, same object returned
    Seeded/Stable -> Recomputed  raw entity or a relation changed, new object stored
"""
import logging
from contextlib import contextmanager
from threading import RLock
from typing import Any, Dict, Iterator, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from denormalizr.resolver import IdentityKey, identity_key


class CacheCell(BaseModel):
    """Last raw entity and last denormalized result for one (key, id)."""
    # Any fields keep the exact objects; identity is what the cache compares.
    entity: Any = Field(exclude=True)
    denormalized: Any = Field(exclude=True)

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def reset(self, entity: Any) -> None:
        """Forget every relation built on the previous raw entity."""
        self.entity = entity
        self.denormalized = entity

    def __repr__(self) -> str:
        return f"CacheCell(entity={type(self.entity).__name__}, denormalized={type(self.denormalized).__name__})"


class MemoCache(BaseModel):
    """
    Owned, injectable store of cache cells.

    A memoized call holds the cache lock for its whole walk, so concurrent
    callers sharing one cache are serialized rather than interleaved.
    """
    cells: Dict[str, Dict[str, CacheCell]] = Field(default_factory=dict)
    hits: int = 0
    rebuilds: int = 0
    invalidations: int = 0

    _lock: Any = PrivateAttr(default_factory=RLock)
    _logger: Any = PrivateAttr(default_factory=lambda: logging.getLogger("MemoCache"))

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @contextmanager
    def locked(self) -> Iterator["MemoCache"]:
        with self._lock:
            yield self

    def cell(self, key: str, entity_id: Any, entity: Any) -> CacheCell:
        """Existing cell for (key, id), seeded with `entity` when new."""
        table = self.cells.setdefault(key, {})
        cache_id = str(entity_id)
        cell = table.get(cache_id)
        if cell is None:
            cell = CacheCell(entity=entity, denormalized=entity)
            table[cache_id] = cell
            self._logger.debug(f"Seeded cache cell {key}({cache_id})")
        return cell

    def get(self, key: str, entity_id: Any) -> Optional[CacheCell]:
        return self.cells.get(key, {}).get(str(entity_id))

    def has_type(self, key: str) -> bool:
        """Whether any cell of entity type `key` is cached."""
        return bool(self.cells.get(key))

    def record_hit(self) -> None:
        self.hits += 1

    def record_rebuild(self) -> None:
        self.rebuilds += 1

    def record_invalidation(self, key: str, entity_id: Any) -> None:
        self.invalidations += 1
        self._logger.debug(f"Raw entity {key}({entity_id!r}) changed, dropping its relations")

    def evict(self, key: str, entity_id: Any) -> bool:
        """Drop one cell. Returns whether it existed."""
        with self._lock:
            removed = self.cells.get(key, {}).pop(str(entity_id), None) is not None
        if removed:
            self._logger.info(f"Evicted cache cell {key}({entity_id!r})")
        return removed

    def evict_type(self, key: str) -> int:
        """Drop every cell of an entity type. Returns how many were dropped."""
        with self._lock:
            removed = len(self.cells.pop(key, {}))
        self._logger.info(f"Evicted {removed} cache cells for {key}")
        return removed

    def clear(self) -> None:
        with self._lock:
            count = len(self)
            self.cells.clear()
            self.hits = 0
            self.rebuilds = 0
            self.invalidations = 0
        self._logger.info(f"Cleared memoization cache ({count} cells)")

    def keys(self) -> Set[IdentityKey]:
        return {identity_key(key, entity_id) for key, table in self.cells.items() for entity_id in table}

    def get_cache_status(self) -> Dict[str, Any]:
        return {
            "cells": len(self),
            "types": {key: len(table) for key, table in self.cells.items()},
            "hits": self.hits,
            "rebuilds": self.rebuilds,
            "invalidations": self.invalidations,
        }

    def __len__(self) -> int:
        return sum(len(table) for table in self.cells.values())

    def __contains__(self, item: Tuple[str, Any]) -> bool:
        key, entity_id = item
        return self.get(key, entity_id) is not None

    def __repr__(self) -> str:
        return f"MemoCache({len(self)} cells)"


class VisitationSet:
    """
    Entities currently being walked by one memoized call.

    Entries are added on entry to an entity and removed once its relations
    are done, so the set always mirrors the current recursion path.
    """

    def __init__(self) -> None:
        self._path: Set[IdentityKey] = set()

    def enter(self, key: str, entity_id: Any) -> bool:
        """Mark (key, id) as on the path; False if it already was."""
        marker = identity_key(key, entity_id)
        if marker in self._path:
            return False
        self._path.add(marker)
        return True

    def leave(self, key: str, entity_id: Any) -> None:
        self._path.discard(identity_key(key, entity_id))

    def __contains__(self, item: Tuple[str, Any]) -> bool:
        key, entity_id = item
        return identity_key(key, entity_id) in self._path

    def __len__(self) -> int:
        return len(self._path)
