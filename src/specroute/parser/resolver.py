"""Dereference internal ``$ref`` pointers in OpenAPI documents.

Compilation works on a reference-free document: every
``{"$ref": "#/definitions/Pet"}`` (Swagger 2.0) or
``{"$ref": "#/components/schemas/Pet"}`` (OpenAPI 3) is replaced by a copy of
its target. Only document-internal pointers are supported; anything else
raises :class:`~specroute.exceptions.SpecParseError`.

A reference that is already being expanded further up the current branch is a
cycle. It is left in place as the original ``$ref`` dict, which keeps
recursive schemas (trees, linked lists) finite.
"""

from __future__ import annotations

import copy
from typing import Any

from specroute.exceptions import SpecParseError


def resolve_refs(document: dict[str, Any]) -> dict[str, Any]:
    """Return a deep copy of *document* with every internal ``$ref`` expanded.

    The input is never mutated.

    Raises:
        SpecParseError: If a pointer is external or does not resolve.
    """
    root = copy.deepcopy(document)
    return _expand(root, root, frozenset())


def _expand(node: Any, root: dict[str, Any], active: frozenset[str]) -> Any:
    if isinstance(node, list):
        return [_expand(item, root, active) for item in node]
    if not isinstance(node, dict):
        return node

    ref = node.get("$ref")
    if isinstance(ref, str):
        if ref in active:
            return node
        return _expand(_follow(ref, root), root, active | {ref})

    return {key: _expand(value, root, active) for key, value in node.items()}


def _follow(ref: str, root: dict[str, Any]) -> Any:
    """Walk a JSON Pointer (RFC 6901) from the document root."""
    if not ref.startswith("#/"):
        raise SpecParseError(
            f"External $ref not supported: {ref}. Only internal references (#/...) are handled."
        )

    target: Any = root
    for token in ref[2:].split("/"):
        token = token.replace("~1", "/").replace("~0", "~")
        if isinstance(target, dict) and token in target:
            target = target[token]
        elif isinstance(target, list) and token.isdigit() and int(token) < len(target):
            target = target[int(token)]
        else:
            raise SpecParseError(f"Cannot resolve $ref '{ref}': '{token}' not found")
    return target
