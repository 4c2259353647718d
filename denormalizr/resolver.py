"""Entity store lookups shared by both engines."""
import logging
from typing import Any, NamedTuple, Optional, Tuple

from denormalizr.containers import SCALAR_TYPES, get_in, to_plain
from denormalizr.schema import EntitySchema

logger = logging.getLogger("Denormalizer")

IdentityKey = Tuple[str, str]


class ResolvedEntity(NamedTuple):
    entity: Any
    id: Any


def identity_key(key: str, entity_id: Any) -> IdentityKey:
    """Bag/cache key; ids compare by their string form like store keys do."""
    return (key, str(entity_id))


def is_object_like(value: Any) -> bool:
    return value is not None and not isinstance(value, SCALAR_TYPES)


def lookup_entity(entities: Any, key: str, entity_id: Any) -> Any:
    """Raw entity stored at `[key][entity_id]`, or None."""
    if entity_id is None:
        return None
    table = get_in(entities, [key])
    if table is None:
        return None
    entity = get_in(table, [entity_id])
    if entity is not None:
        return entity
    if not isinstance(entity_id, str):
        return get_in(table, [str(entity_id)])
    try:
        numeric_id = int(entity_id)
    except ValueError:
        return None
    return get_in(table, [numeric_id])


def derive_id(value: Any, schema: EntitySchema, id_fallback: str = "id") -> Any:
    """Identifier of an entity-shaped value according to `schema`."""
    entity_id = schema.get_id(to_plain(value))
    if entity_id is None:
        entity_id = get_in(value, [id_fallback])
    return entity_id


def resolve_entity_or_id(
    entity_or_id: Any,
    entities: Any,
    schema: EntitySchema,
    id_fallback: str = "id",
) -> ResolvedEntity:
    """
    Take either an entity or an id and derive the other.

    The returned entity is always the canonical one from the store; an
    entity-shaped input only contributes its identifier.
    """
    if is_object_like(entity_or_id):
        entity_id = derive_id(entity_or_id, schema, id_fallback)
    else:
        entity_id = entity_or_id
    entity: Optional[Any] = lookup_entity(entities, schema.key, entity_id)
    if entity is None:
        logger.debug(f"No {schema.key} entity stored for id {entity_id!r}")
    return ResolvedEntity(entity=entity, id=entity_id)
