"""
Uniform path access over the container representations the engines accept.

Two families of containers are supported:

1. PLAIN CONTAINERS:
   - dicts, lists, tuples and other Mapping/Sequence values
   - written in place; callers copy first when the original must survive,
     and copies of read-only containers are plain dicts and lists

2. PERSISTENT CONTAINERS:
   - pydantic models, written with `model_copy(update=...)`
   - any object implementing the `PersistentContainer` protocol
   - every write returns a new container, the receiver is never touched

Each family is served by a `ContainerAccessor`; `accessor_for()` picks the
first accessor that supports a value. Reads never raise: missing keys,
out-of-range indices and walks through None all read as None.
"""
import copy
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

from pydantic import BaseModel

Path = Sequence[Any]

SCALAR_TYPES = (str, bytes, int, float, bool)


@runtime_checkable
class PersistentContainer(Protocol):
    """Protocol for immutable trees that expose their own path accessors."""

    def get_in(self, path: Path) -> Any: ...

    def set_in(self, path: Path, value: Any) -> Any: ...

    def to_plain(self) -> Any: ...


class ContainerAccessor(ABC):
    """Capability interface implemented once per container representation."""
    persistent: bool = False

    @abstractmethod
    def supports(self, obj: Any) -> bool: ...

    @abstractmethod
    def get(self, obj: Any, key: Any) -> Any: ...

    @abstractmethod
    def set_in(self, obj: Any, path: Path, value: Any) -> Any: ...

    def to_plain(self, obj: Any) -> Any:
        return obj

    def copy(self, obj: Any) -> Any:
        return obj


class PlainAccessor(ContainerAccessor):
    """Mappings and non-string sequences, mutated in place."""

    def supports(self, obj: Any) -> bool:
        if isinstance(obj, Mapping):
            return True
        return is_sequence(obj)

    def get(self, obj: Any, key: Any) -> Any:
        if isinstance(obj, Mapping):
            return obj.get(key)
        if isinstance(key, int) and -len(obj) <= key < len(obj):
            return obj[key]
        return None

    def set_in(self, obj: Any, path: Path, value: Any) -> Any:
        *parents, last = path
        location = get_in(obj, parents) if parents else obj
        if location is None:
            raise KeyError(f"Cannot set {list(path)!r}: intermediate path is absent")
        location[last] = value
        return obj

    def copy(self, obj: Any) -> Any:
        # Read-only and immutable containers become their writable builtin.
        if isinstance(obj, Mapping) and not isinstance(obj, dict):
            return dict(obj)
        if is_sequence(obj) and not isinstance(obj, list):
            return list(obj)
        return copy.copy(obj)


class ModelAccessor(ContainerAccessor):
    """Pydantic models, treated as copy-on-write records."""
    persistent = True

    def supports(self, obj: Any) -> bool:
        return isinstance(obj, BaseModel)

    def get(self, obj: Any, key: Any) -> Any:
        # Field values only; BaseModel methods such as `schema` are not data.
        if not isinstance(key, str):
            return None
        if key in obj.__dict__:
            return obj.__dict__[key]
        return (obj.__pydantic_extra__ or {}).get(key)

    def set_in(self, obj: Any, path: Path, value: Any) -> Any:
        head, *rest = path
        if rest:
            current = self.get(obj, head)
            child = accessor_for(current)
            if child is None:
                raise KeyError(f"Cannot set {list(path)!r}: intermediate path is absent")
            value = child.set_in(child.copy(current), rest, value)
        return obj.model_copy(update={head: value})

    def to_plain(self, obj: Any) -> Any:
        return obj.model_dump()


class PathAccessor(ContainerAccessor):
    """Objects that implement `PersistentContainer` themselves."""
    persistent = True

    def supports(self, obj: Any) -> bool:
        return isinstance(obj, PersistentContainer)

    def get(self, obj: Any, key: Any) -> Any:
        return obj.get_in([key])

    def set_in(self, obj: Any, path: Path, value: Any) -> Any:
        return obj.set_in(list(path), value)

    def to_plain(self, obj: Any) -> Any:
        return obj.to_plain()


_ACCESSORS: List[ContainerAccessor] = [ModelAccessor(), PathAccessor(), PlainAccessor()]


def register_accessor(accessor: ContainerAccessor) -> None:
    """Give an additional container representation priority over the built-ins."""
    _ACCESSORS.insert(0, accessor)


def accessor_for(obj: Any) -> Optional[ContainerAccessor]:
    if obj is None or isinstance(obj, SCALAR_TYPES):
        return None
    for accessor in _ACCESSORS:
        if accessor.supports(obj):
            return accessor
    return None


def is_sequence(obj: Any) -> bool:
    """Ordered, non-string sequence such as a list, tuple or UserList."""
    return isinstance(obj, Sequence) and not isinstance(obj, SCALAR_TYPES)


def is_absent(value: Any) -> bool:
    return value is None


def is_persistent(obj: Any) -> bool:
    accessor = accessor_for(obj)
    return accessor is not None and accessor.persistent


def get_in(obj: Any, path: Path) -> Any:
    """Read the value at `path`, or None if any step is missing."""
    for key in path:
        accessor = accessor_for(obj)
        if accessor is None:
            return None
        obj = accessor.get(obj, key)
    return obj


def set_in(obj: Any, path: Path, value: Any) -> Any:
    """
    Write `value` at `path` and return the resulting container.

    Plain containers are written in place and returned; persistent ones
    return a new container.
    """
    if not path:
        raise ValueError("set_in requires a non-empty path")
    accessor = accessor_for(obj)
    if accessor is None:
        raise TypeError(f"Cannot set {list(path)!r} on {type(obj).__name__}")
    return accessor.set_in(obj, path, value)


def shallow_copy(obj: Any) -> Any:
    """Working copy safe to pass to `set_in` without touching `obj`."""
    accessor = accessor_for(obj)
    if accessor is None:
        return obj
    return accessor.copy(obj)


def assign(obj: Any, updates: Dict[Any, Any]) -> Any:
    """New container equal to `obj` with top-level `updates` applied."""
    result = shallow_copy(obj)
    for key, value in updates.items():
        result = set_in(result, [key], value)
    return result


def to_plain(obj: Any) -> Any:
    """Plain (dict/list) view of a persistent container; other values as-is."""
    accessor = accessor_for(obj)
    if accessor is None:
        return obj
    return accessor.to_plain(obj)
