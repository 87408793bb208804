"""Strip OpenAPI vendor extensions from a raw document.

The documentation route serves the original document, which usually carries
deployment-only keys (``x-specroute-handler`` pointing at local modules, auth
plugin references, route options). :func:`strip_vendor_extensions` removes
every key starting with ``x-`` at every nesting level, leaving all other keys,
values and list ordering untouched.
"""

from __future__ import annotations

from typing import Any

from specroute.models import VENDOR_PREFIX


def strip_vendor_extensions(node: Any) -> Any:
    """Return a copy of *node* without ``x-*`` keys at any depth.

    Example::

        strip_vendor_extensions({"x-a": 1, "b": [{"x-c": 2, "d": 3}]})
        # {"b": [{"d": 3}]}
    """
    if isinstance(node, list):
        return [strip_vendor_extensions(item) for item in node]
    if isinstance(node, dict):
        return {
            key: strip_vendor_extensions(value)
            for key, value in node.items()
            if not (isinstance(key, str) and key.startswith(VENDOR_PREFIX))
        }
    return node
