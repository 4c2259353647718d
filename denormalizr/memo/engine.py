"""
Memoized denormalization.

`denormalize_memoized` returns the object produced by a previous call
whenever neither an entity nor anything reachable from it changed, so callers
that compare results by identity (shallow equality) only see new objects
where data actually changed.

For each entity the walk:
1. resolves the raw entity from the store and finds or seeds its cache cell
2. resets the cell when the raw entity is a different object than last time
3. re-walks every relation of the cached denormalized object and collects
   only the relations whose result is a different object
4. returns the cached object untouched when nothing changed, otherwise a
   shallow copy with the changed relations, which becomes the new cached value

Entities on the current recursion path are tracked by a `VisitationSet`;
re-entering one returns its bare identifier instead of an object.
"""
import logging
from typing import Any, Dict, Mapping, Optional

from denormalizr.config import DEFAULT_CONFIG, DenormalizerConfig
from denormalizr.containers import SCALAR_TYPES, assign, get_in, is_absent, is_sequence
from denormalizr.memo.cache import MemoCache, VisitationSet
from denormalizr.resolver import derive_id, resolve_entity_or_id
from denormalizr.schema import (EntitySchema, SchemaKind, UnionSchema, classify, element_schema,
                                object_definition)

logger = logging.getLogger("MemoizedDenormalizer")


class MemoizedWalk:
    """State shared by every step of one memoized call."""

    def __init__(self, cache: MemoCache, config: DenormalizerConfig = DEFAULT_CONFIG) -> None:
        self.cache = cache
        self.config = config
        self.visited = VisitationSet()


def is_same(new: Any, old: Any) -> bool:
    """Reference equality, with equal scalars counting as the same value."""
    if new is old:
        return True
    return isinstance(new, SCALAR_TYPES) and type(new) is type(old) and new == old


def denormalize_memoized_value(obj: Any, entities: Any, schema: Any, walk: MemoizedWalk) -> Any:
    kind = classify(schema)
    if obj is None or kind is SchemaKind.NONE:
        return obj

    if kind is SchemaKind.ENTITY:
        return denormalize_entity_memoized(obj, entities, schema, walk)
    if kind in (SchemaKind.ARRAY, SchemaKind.VALUES):
        return denormalize_iterable_memoized(obj, entities, schema, walk)
    if kind is SchemaKind.UNION:
        return denormalize_union_memoized(obj, entities, schema, walk)
    return denormalize_object_memoized(obj, entities, schema, walk)


def denormalize_entity_memoized(entity_or_id: Any, entities: Any, schema: EntitySchema, walk: MemoizedWalk) -> Any:
    """
    Denormalize an entity through its cache cell.

    Returns None when the entity is not in the store and the bare identifier
    when the entity is already on the current path.
    """
    key = schema.key
    entity, entity_id = resolve_entity_or_id(entity_or_id, entities, schema, walk.config.id_fallback)
    if entity is None:
        logger.warning(f"Entity {key}({entity_id!r}) not found in store")
        return None

    cell = walk.cache.cell(key, entity_id, entity)

    if not walk.visited.enter(key, entity_id):
        logger.debug(f"Cycle on {key}({entity_id!r}), returning its id")
        return entity_id

    try:
        if cell.entity is not entity:
            walk.cache.record_invalidation(key, entity_id)
            cell.reset(entity)

        reference = cell.denormalized
        changed: Dict[str, Any] = {}
        for relation, item_schema in schema.definition_for(entity).items():
            if relation.startswith(walk.config.private_prefix):
                continue
            item = get_in(reference, [relation])
            if is_absent(item):
                continue
            denormalized_item = denormalize_memoized_value(item, entities, item_schema, walk)
            if not is_same(denormalized_item, item):
                changed[relation] = denormalized_item

        if changed:
            logger.debug(f"Rebuilding {key}({entity_id!r}), changed relations: {sorted(changed)}")
            walk.cache.record_rebuild()
            cell.denormalized = assign(reference, changed)
        else:
            walk.cache.record_hit()
        return cell.denormalized
    finally:
        walk.visited.leave(key, entity_id)


def denormalize_iterable_memoized(items: Any, entities: Any, schema: Any, walk: MemoizedWalk) -> Any:
    """Return `items` itself unless some member denormalized to a new object."""
    item_schema = element_schema(schema)

    if isinstance(items, Mapping):
        denormalized = {key: denormalize_memoized_value(value, entities, item_schema, walk)
                        for key, value in items.items()}
        if all(is_same(denormalized[key], value) for key, value in items.items()):
            return items
        return denormalized

    if is_sequence(items):
        members = [denormalize_memoized_value(item, entities, item_schema, walk) for item in items]
        if all(is_same(new, old) for new, old in zip(members, items)):
            return items
        return tuple(members) if isinstance(items, tuple) else members

    return items


def cached_member_tag(value: Any, schema: UnionSchema, walk: MemoizedWalk) -> Optional[str]:
    """
    Tag of the union member whose cache cell produced `value`.

    A member returned by an earlier call no longer carries its discriminator,
    so it is recognised by identity against the cache, then by a unique
    cached identifier. Members with no cached cells are never asked for an
    identifier.
    """
    if isinstance(value, SCALAR_TYPES):
        return None
    by_id = []
    for tag, member in schema.schema.items():
        if not walk.cache.has_type(member.key):
            continue
        try:
            member_id = derive_id(value, member, walk.config.id_fallback)
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            # Identifier callables may assume their own member's shape.
            logger.debug(f"Union member {tag!r} cannot identify {type(value).__name__}: {e!r}")
            continue
        cell = walk.cache.get(member.key, member_id)
        if cell is None:
            continue
        if cell.denormalized is value or cell.entity is value:
            return tag
        by_id.append(tag)
    return by_id[0] if len(by_id) == 1 else None


def denormalize_union_memoized(entity: Any, entities: Any, schema: UnionSchema, walk: MemoizedWalk) -> Any:
    """
    Denormalize a union member against this union's own member schemas.

    A value without a derivable discriminant is a caller error and raises;
    an unknown discriminant passes through.
    """
    tag = schema.discriminant(entity, walk.config.union_discriminator)
    if tag is None:
        tag = cached_member_tag(entity, schema, walk)
    if tag is None:
        logger.error(f"Union value {entity!r} has no {walk.config.union_discriminator!r} discriminator")
        raise ValueError(
            f"Expected union value to carry a {walk.config.union_discriminator!r} key "
            "as produced by normalizing a union"
        )

    item_schema = schema.get_schema(tag)
    if item_schema is None:
        logger.debug(f"No union member for tag {tag!r}, passing through")
        return entity

    entity_id = derive_id(entity, item_schema, walk.config.id_fallback)
    result = denormalize_entity_memoized(entity_id, entities, item_schema, walk)
    if result is not None and is_same(result, entity_id):
        # Cycle: keep the tagged value so the next call can still resolve it.
        return entity
    return result


def denormalize_object_memoized(obj: Any, entities: Any, schema: Any, walk: MemoizedWalk) -> Any:
    """Plain-object schemas: copy only when an attribute changed."""
    changed: Dict[str, Any] = {}
    for attribute, item_schema in object_definition(schema, obj).items():
        item = get_in(obj, [attribute])
        if is_absent(item):
            continue
        denormalized_item = denormalize_memoized_value(item, entities, item_schema, walk)
        if not is_same(denormalized_item, item):
            changed[attribute] = denormalized_item
    return assign(obj, changed) if changed else obj


def denormalize_memoized(
    obj: Any,
    entities: Any,
    schema: Any,
    cache: MemoCache,
    config: Optional[DenormalizerConfig] = None,
) -> Any:
    """Run one memoized denormalization against `cache`."""
    with cache.locked():
        walk = MemoizedWalk(cache, config or DEFAULT_CONFIG)
        return denormalize_memoized_value(obj, entities, schema, walk)
