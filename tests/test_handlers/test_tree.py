"""Tests for specroute.handlers.tree."""

from __future__ import annotations

import pytest

from specroute.exceptions import HandlerError
from specroute.handlers.tree import HandlerTree, route_keys
from specroute.models import HTTPMethod


def list_pets() -> str:
    return "list"


def get_pet() -> str:
    return "get"


def load_pet() -> str:
    return "load"


def audit() -> str:
    return "audit"


# ---------------------------------------------------------------------------
# route_keys
# ---------------------------------------------------------------------------


class TestRouteKeys:
    """Splitting route paths into tree keys."""

    def test_segments_and_method(self) -> None:
        assert route_keys("/pets/{id}", HTTPMethod.GET) == ["pets", "{id}", "get"]

    def test_trailing_separator_ignored(self) -> None:
        assert route_keys("/pets/", "POST") == ["pets", "post"]

    def test_root_path(self) -> None:
        assert route_keys("/", HTTPMethod.GET) == ["get"]

    def test_without_method(self) -> None:
        assert route_keys("/a/b") == ["a", "b"]


# ---------------------------------------------------------------------------
# lookup
# ---------------------------------------------------------------------------


class TestLookup:
    """Finding handler bindings and chains in a tree."""

    @pytest.fixture()
    def tree(self) -> HandlerTree:
        return HandlerTree({
            "pets": {
                "get": list_pets,
                "{id}": {"get": get_pet},
            },
            "owners": {
                "id": {"get": get_pet, "delete": [load_pet, audit, get_pet]},
            },
            "anon": {"post": [lambda: 1, lambda: 2, list_pets]},
            "empty": {"get": []},
        })

    def test_single_handler(self, tree: HandlerTree) -> None:
        binding = tree.lookup(["pets", "get"])
        assert binding is not None
        assert binding.handler is list_pets
        assert binding.pre == []

    def test_literal_template_segment(self, tree: HandlerTree) -> None:
        binding = tree.lookup(route_keys("/pets/{id}", "get"))
        assert binding is not None
        assert binding.handler is get_pet

    def test_bare_name_fallback_for_template(self, tree: HandlerTree) -> None:
        binding = tree.lookup(route_keys("/owners/{id}", "get"))
        assert binding is not None
        assert binding.handler is get_pet

    def test_chain_splits_into_pre_and_terminal(self, tree: HandlerTree) -> None:
        binding = tree.lookup(["owners", "{id}", "delete"])
        assert binding is not None
        assert [step.assign for step in binding.pre] == ["load_pet", "audit"]
        assert binding.pre[0].method is load_pet
        assert binding.handler is get_pet

    def test_anonymous_steps_are_numbered(self, tree: HandlerTree) -> None:
        binding = tree.lookup(["anon", "post"])
        assert binding is not None
        assert [step.assign for step in binding.pre] == ["p1", "p2"]

    def test_miss_returns_none(self, tree: HandlerTree) -> None:
        assert tree.lookup(["pets", "delete"]) is None
        assert tree.lookup(["nope", "get"]) is None
        assert tree.lookup(["pets", "get", "deeper"]) is None

    def test_subtree_is_not_a_handler(self, tree: HandlerTree) -> None:
        assert tree.lookup(["pets", "{id}"]) is None

    def test_empty_chain_is_a_miss(self, tree: HandlerTree) -> None:
        assert tree.lookup(["empty", "get"]) is None

    def test_non_callable_leaf_raises(self) -> None:
        tree = HandlerTree({"a": {"get": "not a function"}})
        with pytest.raises(HandlerError, match="not callable"):
            tree.lookup(["a", "get"])

    def test_non_callable_in_chain_raises(self) -> None:
        tree = HandlerTree({"a": {"get": [load_pet, 42]}})
        with pytest.raises(HandlerError, match="non-callable"):
            tree.lookup(["a", "get"])


# ---------------------------------------------------------------------------
# insert
# ---------------------------------------------------------------------------


class TestInsert:
    """Grafting handlers and subtrees into a tree."""

    def test_mapping_merges_into_existing_subtree(self) -> None:
        tree = HandlerTree({"pets": {"get": list_pets}})
        tree.insert(["pets"], {"post": get_pet})
        assert tree.lookup(["pets", "get"]).handler is list_pets  # type: ignore[union-attr]
        assert tree.lookup(["pets", "post"]).handler is get_pet  # type: ignore[union-attr]

    def test_creates_intermediate_levels(self) -> None:
        tree = HandlerTree()
        assert not tree
        tree.insert(["a", "b", "get"], list_pets)
        assert tree
        assert tree.lookup(["a", "b", "get"]).handler is list_pets  # type: ignore[union-attr]

    def test_source_mapping_not_mutated(self) -> None:
        source = {"pets": {"get": list_pets}}
        tree = HandlerTree(source)
        tree.insert(["pets", "post"], get_pet)
        assert source == {"pets": {"get": list_pets}}

    def test_empty_keys_rejected(self) -> None:
        with pytest.raises(ValueError):
            HandlerTree().insert([], list_pets)
