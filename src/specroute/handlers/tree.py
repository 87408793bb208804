"""Handler tree -- a nested registry of handlers keyed by path segment and method.

A handler tree mirrors the URL space: each level maps one path segment to a
subtree, and the last level maps a lower-case HTTP method to a leaf. A leaf is
either a callable (the handler) or a sequence of callables (a pre-handler
chain whose last element is the terminal handler).

::

    HandlerTree({
        "pets": {
            "get": list_pets,
            "{id}": {"get": get_pet, "delete": [load_pet, delete_pet]},
        },
    })

Lookups take an explicit key sequence built by :func:`route_keys`; a miss at
any depth returns ``None`` rather than raising.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Optional, Union

from specroute.exceptions import HandlerError
from specroute.models import HandlerBinding, HTTPMethod, PreStep


def route_keys(path: str, method: Union[HTTPMethod, str, None] = None) -> list[str]:
    """Return the lookup keys for *path* (and *method*, when given).

    The leading separator and a trailing one are ignored::

        route_keys("/pets/{id}/", "get")  # ["pets", "{id}", "get"]
        route_keys("/", "get")            # ["get"]
    """
    keys = path.rstrip("/").split("/")[1:]
    if method is not None:
        keys.append(method.value if isinstance(method, HTTPMethod) else method.lower())
    return keys


class HandlerTree:
    """Nested mapping from path segments and methods to handler leaves.

    The tree copies the structure it is built from; the caller's mappings are
    never mutated.

    Args:
        entries: Optional nested mapping to seed the tree with.
    """

    def __init__(self, entries: Optional[Mapping[str, Any]] = None) -> None:
        self._root: dict[str, Any] = {}
        if entries:
            for key, value in entries.items():
                self.insert([key], value)

    def __bool__(self) -> bool:
        return bool(self._root)

    def insert(self, keys: Sequence[str], value: Any) -> None:
        """Place *value* at *keys*, creating intermediate levels as needed.

        A mapping value is merged into any subtree already at that position.

        Raises:
            ValueError: If *keys* is empty.
        """
        if not keys:
            raise ValueError("insert() needs at least one key")

        node = self._root
        for key in keys[:-1]:
            child = node.get(key)
            if not isinstance(child, dict):
                child = node[key] = {}
            node = child

        last = keys[-1]
        if isinstance(value, Mapping):
            subtree = node.get(last)
            if not isinstance(subtree, dict):
                subtree = node[last] = {}
            for key, child_value in value.items():
                self.insert([*keys, key], child_value)
        else:
            node[last] = value

    def lookup(self, keys: Sequence[str]) -> Optional[HandlerBinding]:
        """Resolve *keys* to a :class:`~specroute.models.HandlerBinding`.

        A templated segment such as ``{id}`` matches the literal key first and
        the bare parameter name (``id``) second.

        Returns:
            The binding, or ``None`` when nothing is registered at *keys*.

        Raises:
            HandlerError: If the leaf is neither a callable nor a sequence of
                callables.
        """
        node: Any = self._root
        for key in keys:
            if not isinstance(node, dict):
                return None
            node = _child(node, key)
            if node is None:
                return None
        if isinstance(node, dict):
            return None
        return _bind(node, keys)


def _child(node: dict[str, Any], key: str) -> Any:
    child = node.get(key)
    if child is None and key.startswith("{") and key.endswith("}"):
        child = node.get(key[1:-1])
    return child


def _bind(leaf: Any, keys: Sequence[str]) -> Optional[HandlerBinding]:
    if callable(leaf):
        return HandlerBinding(handler=leaf)

    if isinstance(leaf, (list, tuple)):
        if not leaf:
            return None
        for step in leaf:
            if not callable(step):
                raise HandlerError(f"Handler chain at '{'.'.join(keys)}' holds a non-callable: {step!r}")
        pre = [PreStep(assign=_step_name(step, index), method=step) for index, step in enumerate(leaf[:-1])]
        return HandlerBinding(handler=leaf[-1], pre=pre)

    raise HandlerError(f"Handler at '{'.'.join(keys)}' is not callable: {leaf!r}")


def _step_name(step: Any, index: int) -> str:
    """Name a pre step after its callable, or ``p1``, ``p2`` ... when anonymous."""
    name = getattr(step, "__name__", "")
    if not name or name == "<lambda>":
        return f"p{index + 1}"
    return name
