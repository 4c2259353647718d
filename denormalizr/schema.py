"""
Schema descriptors consumed by the denormalization engines.

A schema describes how a flat value read from an entity store is turned back
into a nested object graph. Descriptors form a closed set:

1. EntitySchema - a record type stored in the entity store under `key` and
   addressed by an identifier derived from its data.
2. ArraySchema / ValuesSchema - ordered list-of and map-of collections with a
   single element schema.
3. UnionSchema - a tagged choice between entity schemas, selected by a
   discriminant carried next to the entity reference.
4. ObjectSchema - a plain attribute -> schema mapping that is walked but never
   cached. A bare dict is accepted as shorthand, as is `[schema]` for arrays.

`classify()` maps any descriptor (or shorthand) onto a `SchemaKind`, so the
engines dispatch with a single match instead of probing attributes.

Example Usage:
```python
user = EntitySchema("users")
user.define({"best_friend": user, "posts": [post]})
```
"""
import logging
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Union

from denormalizr.containers import get_in, to_plain

logger = logging.getLogger("SchemaDispatch")

IdAttribute = Union[str, Callable[[Any], Any]]
SchemaAttribute = Union[str, Callable[[Any], Any]]

# Key under which a normalized union reference stores its tag.
UNION_DISCRIMINATOR = "schema"


class SchemaKind(Enum):
    """Shape of a schema descriptor."""
    ENTITY = "entity"
    ARRAY = "array"
    VALUES = "values"
    UNION = "union"
    OBJECT = "object"
    NONE = "none"


class Schema:
    """Common base for every descriptor class."""
    kind: SchemaKind = SchemaKind.NONE


class EntitySchema(Schema):
    """
    Descriptor for an entity type stored in the entity store.

    Attributes:
        key: Entity type key, the first level of the entity store
        definition: Attribute name -> child schema for relations
        id_attribute: Attribute name holding the identifier, or a callable
            deriving it from a plain view of the entity
        infer_schema: Optional callable returning the attribute map for a
            given instance, for entities whose relations vary by discriminant
    """
    kind = SchemaKind.ENTITY

    def __init__(
        self,
        key: str,
        definition: Optional[Mapping[str, Any]] = None,
        id_attribute: IdAttribute = "id",
        infer_schema: Optional[Callable[[Any], Mapping[str, Any]]] = None,
    ) -> None:
        if not isinstance(key, str) or not key:
            raise TypeError(f"Entity schema key must be a non-empty string, got {key!r}")
        self.key = key
        self.id_attribute = id_attribute
        self.infer_schema = infer_schema
        self.schema: Dict[str, Any] = {}
        if definition:
            self.define(definition)

    def define(self, definition: Mapping[str, Any]) -> "EntitySchema":
        """Merge relation definitions into this schema and return it."""
        self.schema.update(definition)
        return self

    def get_id(self, value: Any) -> Any:
        """Derive the identifier from a plain view of an entity."""
        if callable(self.id_attribute):
            return self.id_attribute(value)
        return get_in(value, [self.id_attribute])

    def definition_for(self, instance: Any) -> Mapping[str, Any]:
        """Attribute map to walk for `instance`."""
        if self.infer_schema is not None and instance is not None:
            return self.infer_schema(instance) or {}
        return self.schema

    def __repr__(self) -> str:
        # Relations may point back at this schema, so never render them.
        return f"EntitySchema({self.key!r})"


class ArraySchema(Schema):
    """Ordered list-of collection."""
    kind = SchemaKind.ARRAY

    def __init__(self, schema: Any) -> None:
        self.schema = schema

    def __repr__(self) -> str:
        return f"ArraySchema({self.schema!r})"


class ValuesSchema(Schema):
    """Map-of collection: arbitrary keys, one value schema."""
    kind = SchemaKind.VALUES

    def __init__(self, schema: Any) -> None:
        self.schema = schema

    def __repr__(self) -> str:
        return f"ValuesSchema({self.schema!r})"


class UnionSchema(Schema):
    """
    Tagged choice between entity schemas.

    The tag is read from the value's `schema` key, which is how a normalized
    union reference looks (`{"id": 1, "schema": "users"}`). When that key is
    missing, `schema_attribute` derives the tag from an entity-shaped value,
    which lets an already denormalized member be recognised again.
    """
    kind = SchemaKind.UNION

    def __init__(
        self,
        definition: Mapping[str, EntitySchema],
        schema_attribute: Optional[SchemaAttribute] = None,
    ) -> None:
        self.schema: Dict[str, EntitySchema] = {}
        self.schema_attribute = schema_attribute
        self.define(definition)

    def define(self, definition: Mapping[str, EntitySchema]) -> "UnionSchema":
        for tag, member in definition.items():
            if not isinstance(member, EntitySchema):
                raise TypeError(f"Union member {tag!r} must be an EntitySchema, got {type(member).__name__}")
            self.schema[tag] = member
        return self

    def get_schema(self, tag: Any) -> Optional[EntitySchema]:
        if tag is None:
            return None
        return self.schema.get(tag)

    def discriminant(self, value: Any, discriminator: str = UNION_DISCRIMINATOR) -> Any:
        """Tag carried by `value`, or None when it cannot be derived."""
        if value is None or isinstance(value, (str, int, float, bool, bytes)):
            return None
        tag = get_in(value, [discriminator])
        if tag is not None or self.schema_attribute is None:
            return tag
        if callable(self.schema_attribute):
            return self.schema_attribute(to_plain(value))
        return get_in(value, [self.schema_attribute])

    def __repr__(self) -> str:
        return f"UnionSchema({sorted(self.schema)!r})"


class ObjectSchema(Schema):
    """Explicit plain-object schema."""
    kind = SchemaKind.OBJECT

    def __init__(self, definition: Mapping[str, Any]) -> None:
        self.schema: Dict[str, Any] = dict(definition)

    def define(self, definition: Mapping[str, Any]) -> "ObjectSchema":
        self.schema.update(definition)
        return self

    def __repr__(self) -> str:
        return f"ObjectSchema({sorted(self.schema)!r})"


def classify(schema: Any) -> SchemaKind:
    """Map a descriptor or shorthand onto its SchemaKind."""
    if isinstance(schema, Schema):
        return schema.kind
    if isinstance(schema, list):
        return SchemaKind.ARRAY
    if isinstance(schema, Mapping):
        return SchemaKind.OBJECT
    if schema is not None:
        logger.debug(f"Unrecognised schema descriptor {schema!r}, value passes through")
    return SchemaKind.NONE


def element_schema(schema: Any) -> Any:
    """Element schema of an array/values descriptor or `[schema]` shorthand."""
    if isinstance(schema, list):
        return schema[0] if schema else None
    return schema.schema


def object_definition(schema: Any, instance: Any = None) -> Mapping[str, Any]:
    """Attribute map for an entity or plain-object schema."""
    if isinstance(schema, EntitySchema):
        return schema.definition_for(instance)
    if isinstance(schema, ObjectSchema):
        return schema.schema
    return schema
