"""
Public entry points.

`Denormalizer` owns a memoization cache and a config. The module-level
`denormalize` / `denormalize_memoized` functions use a process-wide default
instance, so memoized results persist across calls until
`reset_default_cache()` is called or a caller passes its own cache.

Example Usage:
```python
user = EntitySchema("users")
user.define({"best_friend": user})
entities = {"users": {1: {"id": 1, "best_friend": 2}, 2: {"id": 2, "best_friend": 1}}}

ann = denormalize(1, entities, user)
assert ann["best_friend"]["best_friend"] is ann

first = denormalize(1, entities, user, memoized=True)
assert denormalize(1, entities, user, memoized=True) is first
```
"""
import logging
from typing import Any, Dict, Optional

from denormalizr.bag import DenormalizationBag
from denormalizr.config import DEFAULT_CONFIG, DenormalizerConfig
from denormalizr.engine import denormalize_value
from denormalizr.memo.cache import MemoCache
from denormalizr.memo.engine import denormalize_memoized as run_memoized


class Denormalizer:
    """
    Denormalizer bound to one config and one memoization cache.

    Attributes:
        config: Defaults for mode selection, discriminator and id fallback keys
        cache: Cells reused by memoized calls; share an instance to share results
    """

    def __init__(self, config: Optional[DenormalizerConfig] = None, cache: Optional[MemoCache] = None) -> None:
        self.config = config or DEFAULT_CONFIG
        self.cache = cache if cache is not None else MemoCache()
        self._logger = logging.getLogger("Denormalizer")

    def denormalize(self, obj: Any, entities: Any, schema: Any, memoized: Optional[bool] = None) -> Any:
        """
        Denormalize an object, collection or id against `schema`.

        Args:
            obj: Raw entity, identifier, collection or plain object
            entities: Entity store, entity key -> identifier -> raw entity
            schema: Root schema descriptor
            memoized: Select the engine; None falls back to the config

        Returns:
            The reconstructed value, in the same shape as `obj`
        """
        use_memoized = self.config.memoized if memoized is None else memoized
        if use_memoized:
            return self.denormalize_memoized(obj, entities, schema)
        return denormalize_value(obj, entities, schema, DenormalizationBag(self.config))

    def denormalize_memoized(self, obj: Any, entities: Any, schema: Any) -> Any:
        """Memoized variant: unchanged subtrees come back as the same objects."""
        return run_memoized(obj, entities, schema, self.cache, self.config)

    def reset_cache(self) -> None:
        self._logger.info("Resetting memoization cache")
        self.cache.clear()

    def get_status(self) -> Dict[str, Any]:
        return {"memoized_by_default": self.config.memoized, **self.cache.get_cache_status()}


default_denormalizer = Denormalizer()


def denormalize(
    obj: Any,
    entities: Any,
    schema: Any,
    memoized: bool = False,
    cache: Optional[MemoCache] = None,
) -> Any:
    """
    Take an object, list or id and return its denormalized form.

    With `memoized=True` results are cached in `cache`, or in the default
    process-wide cache when none is given.
    """
    if not memoized:
        return default_denormalizer.denormalize(obj, entities, schema, memoized=False)
    if cache is None:
        return default_denormalizer.denormalize_memoized(obj, entities, schema)
    return run_memoized(obj, entities, schema, cache, default_denormalizer.config)


def denormalize_memoized(obj: Any, entities: Any, schema: Any, cache: Optional[MemoCache] = None) -> Any:
    """Shorthand for `denormalize(..., memoized=True)`."""
    return denormalize(obj, entities, schema, memoized=True, cache=cache)


def reset_default_cache() -> None:
    default_denormalizer.reset_cache()
