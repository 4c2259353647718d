"""
Common fixtures for denormalizr tests.
Provides schemas, entity stores and a clean default cache per test.
"""
import copy
from typing import Any, Dict, List

import pytest
from pydantic import BaseModel, ConfigDict

from denormalizr import ArraySchema, EntitySchema, UnionSchema, ValuesSchema, reset_default_cache
from denormalizr.memo import MemoCache

# ========================================================================
# Test container types
# ========================================================================

class FrozenUser(BaseModel):
    """Persistent container used as a raw entity."""
    id: int
    name: str
    best_friend: Any = None
    pets: Any = None

    model_config = ConfigDict(frozen=True)


class TreeNode:
    """Minimal persistent tree implementing the PersistentContainer protocol."""

    def __init__(self, data: Dict[str, Any]) -> None:
        self._data = dict(data)

    def get_in(self, path: List[Any]) -> Any:
        value: Any = self
        for key in path:
            if isinstance(value, TreeNode):
                value = value._data.get(key)
            elif isinstance(value, dict):
                value = value.get(key)
            else:
                return None
        return value

    def set_in(self, path: List[Any], value: Any) -> "TreeNode":
        head, *rest = path
        if rest:
            child = self._data.get(head)
            value = child.set_in(rest, value)
        return TreeNode({**self._data, head: value})

    def to_plain(self) -> Dict[str, Any]:
        return {key: value.to_plain() if isinstance(value, TreeNode) else value
                for key, value in self._data.items()}


# ========================================================================
# Schemas
# ========================================================================

@pytest.fixture
def user_schema() -> EntitySchema:
    """Users with a self-referencing best friend."""
    user = EntitySchema("users")
    user.define({"best_friend": user})
    return user


@pytest.fixture
def blog_schemas() -> Dict[str, Any]:
    """Authors, articles and comments with a back reference from comments."""
    author = EntitySchema("authors")
    comment = EntitySchema("comments")
    article = EntitySchema("articles", {"author": author, "comments": [comment]})
    comment.define({"article": article, "commenter": author})
    return {
        "author": author,
        "comment": comment,
        "article": article,
        "articles": ArraySchema(article),
        "by_slug": ValuesSchema(article),
    }


@pytest.fixture
def pet_schemas() -> Dict[str, Any]:
    """A union of cats and dogs owned by people."""
    cat = EntitySchema("cats")
    dog = EntitySchema("dogs")
    pet = UnionSchema({"cats": cat, "dogs": dog}, schema_attribute="kind")
    person = EntitySchema("people", {"pets": [pet], "favourite": pet})
    return {"cat": cat, "dog": dog, "pet": pet, "person": person}


# ========================================================================
# Entity stores
# ========================================================================

@pytest.fixture
def friends_store() -> Dict[str, Any]:
    return {
        "users": {
            1: {"id": 1, "name": "Ann", "best_friend": 2},
            2: {"id": 2, "name": "Bo", "best_friend": 1},
        }
    }


@pytest.fixture
def blog_store() -> Dict[str, Any]:
    return {
        "authors": {
            "a1": {"id": "a1", "name": "Ada"},
            "a2": {"id": "a2", "name": "Grace"},
        },
        "articles": {
            10: {"id": 10, "title": "Graphs", "author": "a1", "comments": [100, 101]},
            11: {"id": 11, "title": "Caches", "author": "a2", "comments": []},
        },
        "comments": {
            100: {"id": 100, "text": "Nice", "article": 10, "commenter": "a2"},
            101: {"id": 101, "text": "Thanks", "article": 10, "commenter": "a1"},
        },
    }


@pytest.fixture
def pet_store() -> Dict[str, Any]:
    return {
        "cats": {1: {"id": 1, "kind": "cats", "name": "Tom"}},
        "dogs": {1: {"id": 1, "kind": "dogs", "name": "Rex"}},
        "people": {
            7: {
                "id": 7,
                "pets": [{"id": 1, "schema": "cats"}, {"id": 1, "schema": "dogs"}],
                "favourite": {"id": 1, "schema": "dogs"},
            }
        },
    }


@pytest.fixture
def snapshot():
    """Deep copy helper to assert stores are never mutated."""
    return copy.deepcopy


@pytest.fixture
def memo_cache() -> MemoCache:
    return MemoCache()


@pytest.fixture(autouse=True)
def clean_default_cache():
    """Every test starts and ends with an empty process-wide cache."""
    reset_default_cache()
    yield
    reset_default_cache()
