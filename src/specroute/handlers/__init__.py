"""Handler resolution -- bind operations to the callables that serve them.

* :mod:`~specroute.handlers.tree` -- :class:`HandlerTree`, the nested
  registry keyed by path segment and method.
* :mod:`~specroute.handlers.registry` -- :class:`CapabilityRegistry`, which
  turns ``file.py:attr`` / ``package.module:attr`` references into objects.
* :mod:`~specroute.handlers.resolver` -- builds a tree from a mapping, a
  directory or vendor extensions, and binds every operation against it.
"""

from specroute.handlers.registry import CapabilityRegistry
from specroute.handlers.resolver import (
    bind_handlers,
    handlers_from_extensions,
    load_handler_directory,
    resolve_handler_tree,
)
from specroute.handlers.tree import HandlerTree, route_keys

__all__ = [
    "CapabilityRegistry",
    "HandlerTree",
    "bind_handlers",
    "handlers_from_extensions",
    "load_handler_directory",
    "resolve_handler_tree",
    "route_keys",
]
