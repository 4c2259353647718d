"""
Non-memoized denormalization.

Every call walks the schema graph from scratch and returns freshly built
containers. Reference cycles between entities are broken by the
`DenormalizationBag`: an entity's working copy is placed in the bag before
its relations are walked, so re-entry hands back that same object.

Note: plain containers are written in place by `denormalize_object`. Callers
pass a working copy, never a value read straight from the entity store.
"""
import logging
from typing import Any, Mapping, Optional

from denormalizr.bag import DenormalizationBag
from denormalizr.containers import get_in, is_absent, is_persistent, is_sequence, set_in, shallow_copy
from denormalizr.resolver import derive_id, resolve_entity_or_id
from denormalizr.schema import (EntitySchema, SchemaKind, UnionSchema, classify, element_schema,
                                object_definition)

logger = logging.getLogger("Denormalizer")


def denormalize_value(obj: Any, entities: Any, schema: Any, bag: DenormalizationBag) -> Any:
    """
    Take an object, list or id and return a denormalized copy of it.

    Objects and lists keep their shape; an id against an entity schema
    becomes the entity. None values and unrecognised schemas pass through.
    """
    kind = classify(schema)
    if obj is None or kind is SchemaKind.NONE:
        return obj

    if kind is SchemaKind.ENTITY:
        return denormalize_entity(obj, entities, schema, bag)
    if kind in (SchemaKind.ARRAY, SchemaKind.VALUES):
        return denormalize_iterable(obj, entities, schema, bag)
    if kind is SchemaKind.UNION:
        return denormalize_union(obj, entities, schema, bag)

    working = obj if is_persistent(obj) else shallow_copy(obj)
    return denormalize_object(working, entities, schema, bag)


def denormalize_object(obj: Any, entities: Any, schema: Any, bag: DenormalizationBag) -> Any:
    """
    Replace every attribute named by the schema with its denormalized form.

    Plain containers are mutated in place and returned; persistent ones are
    rebuilt through their own update operation.
    """
    definition = object_definition(schema, obj)
    denormalized = obj
    for attribute, item_schema in definition.items():
        item = get_in(obj, [attribute])
        if is_absent(item):
            continue
        denormalized = set_in(denormalized, [attribute], denormalize_value(item, entities, item_schema, bag))
    return denormalized


def denormalize_entity(entity_or_id: Any, entities: Any, schema: EntitySchema, bag: DenormalizationBag) -> Any:
    """
    Denormalize an entity, registering it in the bag before its relations.

    An entity missing from the store leaves `entity_or_id` untouched.
    """
    key = schema.key
    entity, entity_id = resolve_entity_or_id(entity_or_id, entities, schema, bag.config.id_fallback)
    if entity is None:
        return entity_or_id

    if not bag.has(key, entity_id):
        logger.debug(f"Denormalizing {key}({entity_id!r})")
        working = entity if is_persistent(entity) else shallow_copy(entity)
        # Must be visible before the walk so cyclic relations resolve to it.
        bag.put(key, entity_id, working)
        bag.put(key, entity_id, denormalize_object(working, entities, schema, bag))
    else:
        logger.debug(f"Reusing {key}({entity_id!r}) from bag")

    return bag.get(key, entity_id)


def denormalize_iterable(items: Any, entities: Any, schema: Any, bag: DenormalizationBag) -> Any:
    """
    Denormalize each member of a list-of or values-of collection.

    Tuples stay tuples; other sequences come back as lists.
    """
    item_schema = element_schema(schema)

    if isinstance(items, Mapping):
        return {key: denormalize_value(value, entities, item_schema, bag) for key, value in items.items()}

    if is_sequence(items):
        denormalized = [denormalize_value(item, entities, item_schema, bag) for item in items]
        return tuple(denormalized) if isinstance(items, tuple) else denormalized

    logger.debug(f"Collection schema applied to {type(items).__name__}, passing through")
    return items


def denormalize_union(entity: Any, entities: Any, schema: UnionSchema, bag: DenormalizationBag) -> Any:
    """Denormalize a union member; unknown or missing tags pass through."""
    tag = schema.discriminant(entity, bag.config.union_discriminator)
    item_schema = schema.get_schema(tag)
    if item_schema is None:
        logger.debug(f"No union member for tag {tag!r}, passing through")
        return entity

    entity_id = derive_id(entity, item_schema, bag.config.id_fallback)
    if entity_id is None:
        return entity
    return denormalize_value(entity_id, entities, item_schema, bag)


def denormalize(obj: Any, entities: Any, schema: Any, bag: Optional[DenormalizationBag] = None) -> Any:
    """Run one non-memoized denormalization with a fresh bag."""
    return denormalize_value(obj, entities, schema, bag if bag is not None else DenormalizationBag())
