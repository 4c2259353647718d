"""
denormalizr: rebuild nested, possibly cyclic object graphs from a normalized
entity store, guided by a declarative schema.
"""
from .api import Denormalizer, default_denormalizer, denormalize, denormalize_memoized, reset_default_cache
from .bag import DenormalizationBag
from .config import DenormalizerConfig, configure_logging
from .containers import PersistentContainer, get_in, set_in
from .memo import MemoCache
from .schema import ArraySchema, EntitySchema, ObjectSchema, SchemaKind, UnionSchema, ValuesSchema, classify

__all__ = [
    # Entry points
    "Denormalizer",
    "default_denormalizer",
    "denormalize",
    "denormalize_memoized",
    "reset_default_cache",
    # Schema descriptors
    "ArraySchema",
    "EntitySchema",
    "ObjectSchema",
    "SchemaKind",
    "UnionSchema",
    "ValuesSchema",
    "classify",
    # State and configuration
    "DenormalizationBag",
    "DenormalizerConfig",
    "MemoCache",
    "configure_logging",
    # Containers
    "PersistentContainer",
    "get_in",
    "set_in",
]

__version__ = "0.1.0"
