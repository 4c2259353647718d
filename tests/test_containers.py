"""
Tests for path access over plain and persistent containers.
"""
from collections import OrderedDict, UserList
from types import MappingProxyType

import pytest

from denormalizr import containers
from denormalizr.containers import (ContainerAccessor, ModelAccessor, PathAccessor, PlainAccessor, accessor_for, assign,
                                    get_in, is_absent, is_persistent, is_sequence, register_accessor, set_in,
                                    shallow_copy, to_plain)
from conftest import FrozenUser, TreeNode


class TestAccessorSelection:
    """Each container representation is served by its own accessor."""

    def test_plain_containers(self):
        assert isinstance(accessor_for({"a": 1}), PlainAccessor)
        assert isinstance(accessor_for([1, 2]), PlainAccessor)
        assert isinstance(accessor_for((1, 2)), PlainAccessor)

    def test_persistent_containers(self):
        assert isinstance(accessor_for(FrozenUser(id=1, name="Ann")), ModelAccessor)
        assert isinstance(accessor_for(TreeNode({"a": 1})), PathAccessor)

    def test_scalars_have_no_accessor(self):
        for value in (None, "text", b"raw", 3, 2.5, True):
            assert accessor_for(value) is None

    def test_registered_accessor_takes_priority(self, monkeypatch):
        class Box:
            def __init__(self, value):
                self.value = value

        class BoxAccessor(ContainerAccessor):
            persistent = True

            def supports(self, obj):
                return isinstance(obj, Box)

            def get(self, obj, key):
                return obj.value if key == "value" else None

            def set_in(self, obj, path, value):
                return Box(value)

        monkeypatch.setattr(containers, "_ACCESSORS", list(containers._ACCESSORS))
        register_accessor(BoxAccessor())

        box = Box(1)
        assert get_in(box, ["value"]) == 1
        assert set_in(box, ["value"], 2).value == 2
        assert box.value == 1
        assert is_persistent(box)

    def test_is_sequence(self):
        assert is_sequence([1])
        assert is_sequence((1,))
        assert is_sequence(UserList([1]))
        assert isinstance(accessor_for(UserList([1])), PlainAccessor)
        for value in ("ab", b"ab", {"a": 1}, None, 3):
            assert not is_sequence(value)

    def test_is_persistent(self):
        assert is_persistent(FrozenUser(id=1, name="Ann"))
        assert is_persistent(TreeNode({}))
        assert not is_persistent({"a": 1})
        assert not is_persistent(5)


class TestGetIn:
    def test_nested_mapping_and_sequence(self):
        data = {"users": {1: {"tags": ["x", "y"]}}}
        assert get_in(data, ["users", 1, "tags", 1]) == "y"

    def test_missing_paths_read_as_none(self):
        data = {"users": {1: {"tags": ["x"]}}}
        assert get_in(data, ["users", 2]) is None
        assert get_in(data, ["users", 1, "tags", 5]) is None
        assert get_in(data, ["users", 1, "name", "first"]) is None
        assert get_in(None, ["anything"]) is None
        assert get_in(42, ["id"]) is None

    def test_only_none_is_absent(self):
        assert is_absent(None)
        for value in (0, "", [], {}, False):
            assert not is_absent(value)

    def test_model_attributes(self):
        user = FrozenUser(id=1, name="Ann")
        assert get_in(user, ["name"]) == "Ann"
        assert get_in(user, ["missing"]) is None

    def test_persistent_tree(self):
        tree = TreeNode({"a": TreeNode({"b": 5})})
        assert get_in(tree, ["a", "b"]) == 5


class TestSetIn:
    def test_plain_write_is_in_place(self):
        data = {"a": {"b": 1}}
        result = set_in(data, ["a", "b"], 2)
        assert result is data
        assert data["a"]["b"] == 2

    def test_plain_write_through_absent_parent_raises(self):
        with pytest.raises(KeyError):
            set_in({}, ["a", "b"], 1)

    def test_model_write_is_copy_on_write(self):
        user = FrozenUser(id=1, name="Ann")
        updated = set_in(user, ["best_friend"], {"id": 2})
        assert updated is not user
        assert updated.best_friend == {"id": 2}
        assert user.best_friend is None

    def test_tree_write_is_copy_on_write(self):
        tree = TreeNode({"a": 1})
        updated = set_in(tree, ["a"], 2)
        assert updated is not tree
        assert get_in(updated, ["a"]) == 2
        assert get_in(tree, ["a"]) == 1

    def test_scalar_target_raises(self):
        with pytest.raises(TypeError):
            set_in(5, ["a"], 1)

    def test_empty_path_raises(self):
        with pytest.raises(ValueError):
            set_in({}, [], 1)


class TestCopies:
    def test_shallow_copy_of_plain_values(self):
        data = {"a": [1]}
        copied = shallow_copy(data)
        assert copied == data and copied is not data
        assert copied["a"] is data["a"]
        assert shallow_copy((1, 2)) == [1, 2]

    def test_read_only_containers_copy_to_writable_builtins(self):
        proxy = MappingProxyType({"a": 1})
        copied = shallow_copy(proxy)
        assert type(copied) is dict
        assert set_in(copied, ["a"], 2) == {"a": 2}
        assert proxy["a"] == 1

        assert shallow_copy(UserList([1, 2])) == [1, 2]
        assert type(shallow_copy(UserList([1]))) is list
        assert assign(MappingProxyType({"a": 1, "b": 2}), {"b": 3}) == {"a": 1, "b": 3}

    def test_dict_subclasses_keep_their_type(self):
        ordered = OrderedDict(a=1)
        assert type(shallow_copy(ordered)) is OrderedDict

    def test_persistent_values_are_not_copied(self):
        user = FrozenUser(id=1, name="Ann")
        assert shallow_copy(user) is user

    def test_assign_leaves_original_untouched(self):
        data = {"a": 1, "b": 2}
        result = assign(data, {"b": 3})
        assert result == {"a": 1, "b": 3}
        assert data == {"a": 1, "b": 2}

    def test_assign_on_model(self):
        user = FrozenUser(id=1, name="Ann")
        result = assign(user, {"name": "Anna"})
        assert result.name == "Anna"
        assert user.name == "Ann"

    def test_to_plain(self):
        assert to_plain(FrozenUser(id=1, name="Ann"))["name"] == "Ann"
        assert to_plain(TreeNode({"a": TreeNode({"b": 1})})) == {"a": {"b": 1}}
        data = {"a": 1}
        assert to_plain(data) is data
