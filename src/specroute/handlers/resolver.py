"""Resolve which handler serves each operation of a document.

Handlers come from one of three sources, in order of precedence:

1. A :class:`~specroute.handlers.tree.HandlerTree` or nested mapping passed
   in directly.
2. A directory of handler modules (see :func:`load_handler_directory`).
3. ``x-specroute-handler`` vendor extensions in the document itself, used
   only when no handlers were supplied.

:func:`bind_handlers` then maps every ``(path, method)`` pair of the document
to its :class:`~specroute.models.HandlerBinding`. Pairs without a handler are
absent from the result; the compiler skips them.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from pathlib import Path
from types import ModuleType
from typing import Any, Optional, Union

from specroute.exceptions import HandlerError
from specroute.handlers.registry import CapabilityRegistry
from specroute.handlers.tree import HandlerTree, route_keys
from specroute.models import HANDLER_EXTENSION, ApiDocument, HandlerBinding, HTTPMethod

logger = logging.getLogger(__name__)

HandlerSource = Union[HandlerTree, Mapping[str, Any], str, Path, None]


async def resolve_handler_tree(
    handlers: HandlerSource,
    document: ApiDocument,
    *,
    basedir: Union[str, Path],
    extensions: Optional[list[str]] = None,
    registry: Optional[CapabilityRegistry] = None,
) -> HandlerTree:
    """Build the handler tree to compile *document* against.

    Args:
        handlers: A tree, a nested mapping, a handler directory, or ``None``
            to fall back to the document's ``x-specroute-handler`` extensions.
        document: The document being compiled.
        basedir: Directory relative extension references resolve against.
        extensions: File suffixes loaded from a handler directory.
        registry: Registry used for every code load; a fresh one by default.

    Returns:
        The handler tree.

    Raises:
        HandlerError: If a directory or referenced module cannot be loaded.
    """
    registry = registry or CapabilityRegistry()
    if isinstance(handlers, HandlerTree):
        return handlers
    if isinstance(handlers, Mapping):
        return HandlerTree(handlers)
    if isinstance(handlers, (str, Path)):
        return await load_handler_directory(handlers, extensions or ["py"], registry)
    return handlers_from_extensions(document, basedir, registry)


async def load_handler_directory(
    root: Union[str, Path],
    extensions: list[str],
    registry: Optional[CapabilityRegistry] = None,
) -> HandlerTree:
    """Build a handler tree from a directory of handler modules.

    Every file whose suffix is listed in *extensions* becomes one entry, keyed
    by its path relative to *root* with the suffix dropped. The module's
    attributes named after HTTP methods (``get``, ``post`` ...) are its
    handlers. ``__init__`` files stand for their directory; other files
    starting with ``_`` are skipped.

    ::

        routes/pets.py          -> pets.get, pets.post
        routes/pets/{id}.py     -> pets.{id}.get
        routes/__init__.py      -> get   (the "/" path)

    Raises:
        HandlerError: If *root* is not a directory or a module fails to load.
    """
    root = Path(root)
    if not root.is_dir():
        raise HandlerError(f"Handler directory not found: {root}")

    registry = registry or CapabilityRegistry()
    files = await asyncio.to_thread(_collect_files, root, extensions)

    tree = HandlerTree()
    for file in files:
        keys = list(file.relative_to(root).with_suffix("").parts)
        if keys[-1] == "__init__":
            keys.pop()
        _insert_methods(tree, keys, registry.load_module(file), str(file))

    logger.debug("Loaded %d handler module(s) from %s", len(files), root)
    return tree


def _collect_files(root: Path, extensions: list[str]) -> list[Path]:
    suffixes = {"." + ext.lstrip(".") for ext in extensions}
    return sorted(
        path
        for path in root.rglob("*")
        if path.is_file()
        and path.suffix in suffixes
        and (path.stem == "__init__" or not path.stem.startswith("_"))
        and "__pycache__" not in path.parts
    )


def handlers_from_extensions(
    document: ApiDocument,
    basedir: Union[str, Path],
    registry: Optional[CapabilityRegistry] = None,
) -> HandlerTree:
    """Build a handler tree from ``x-specroute-handler`` references.

    On a path item the reference names a module (or mapping) whose
    method-named attributes serve that path. On an operation it names the
    handler itself; a reference to a whole module picks the attribute named
    after the method, then ``handler``.

    Raises:
        HandlerError: If a reference cannot be loaded or names no handler.
    """
    registry = registry or CapabilityRegistry()
    tree = HandlerTree()

    for path, operations in document.paths.items():
        reference = document.path_extensions.get(path, {}).get(HANDLER_EXTENSION)
        if reference:
            _insert_methods(tree, route_keys(path), registry.load(basedir, reference), reference)

        for method, operation in operations.items():
            reference = operation.extensions.get(HANDLER_EXTENSION)
            if not reference:
                continue
            capability = registry.load(basedir, reference)
            if isinstance(capability, ModuleType):
                capability = getattr(capability, method.value, None) or getattr(
                    capability, "handler", None
                )
                if capability is None:
                    raise HandlerError(
                        f"'{reference}' defines neither '{method.value}' nor 'handler'"
                    )
            tree.insert(route_keys(path, method), capability)

    return tree


def _insert_methods(tree: HandlerTree, keys: list[str], source: Any, origin: str) -> None:
    if isinstance(source, Mapping):
        if keys:
            tree.insert(keys, source)
        else:
            for key, value in source.items():
                tree.insert([key], value)
        return
    if not isinstance(source, ModuleType):
        raise HandlerError(f"'{origin}' must name a module or a mapping of method handlers")

    for method in HTTPMethod:
        handler = getattr(source, method.value, None)
        if handler is not None:
            tree.insert([*keys, method.value], handler)


def bind_handlers(
    document: ApiDocument, tree: HandlerTree
) -> dict[tuple[str, HTTPMethod], HandlerBinding]:
    """Map each ``(path, method)`` of *document* to its handler binding.

    Operations without a handler are left out and logged at debug level.
    """
    bindings: dict[tuple[str, HTTPMethod], HandlerBinding] = {}
    for path, operations in document.paths.items():
        for method in operations:
            binding = tree.lookup(route_keys(path, method))
            if binding is None:
                logger.debug("No handler for %s %s, skipping", method.value.upper(), path)
                continue
            bindings[(path, method)] = binding
    return bindings
