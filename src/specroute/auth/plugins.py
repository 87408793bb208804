"""Load and register the auth plugins a document names.

Registration happens before any route is compiled, in document order:
first every entry of the document-level ``x-specroute-auth-schemes``
mapping, then every security scheme carrying ``x-specroute-auth-strategy``.
Each plugin is awaited before the next one is loaded.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Union

from specroute.auth.base import as_plugin
from specroute.exceptions import HandlerError, PluginError
from specroute.handlers.registry import CapabilityRegistry
from specroute.models import AUTH_SCHEMES_EXTENSION, ApiDocument

if TYPE_CHECKING:
    from specroute.routes.table import Router

logger = logging.getLogger(__name__)


async def register_auth_plugins(
    router: Router,
    document: ApiDocument,
    basedir: Union[str, Path],
    registry: Optional[CapabilityRegistry] = None,
) -> list[str]:
    """Register every auth scheme and strategy plugin named by *document*.

    Args:
        router: Receives each plugin through ``await router.register(...)``.
        document: The compiled document.
        basedir: Directory relative plugin references resolve against.
        registry: Registry used to load plugin references.

    Returns:
        The names registered, schemes first.

    Raises:
        PluginError: If a reference cannot be loaded, is not a plugin, or
            fails while registering.
    """
    registry = registry or CapabilityRegistry()
    registered: list[str] = []

    schemes = document.extensions.get(AUTH_SCHEMES_EXTENSION) or {}
    if not isinstance(schemes, dict):
        raise PluginError(f"'{AUTH_SCHEMES_EXTENSION}' must map scheme names to plugin references")
    for name, reference in schemes.items():
        await _register(router, registry, basedir, str(reference), {"name": name})
        registered.append(name)

    for name, scheme in document.security_schemes.items():
        if not scheme.strategy:
            continue
        options = {
            "name": name,
            "scheme": scheme.type,
            "lookup": scheme.param_name,
            "where": scheme.location,
        }
        await _register(router, registry, basedir, scheme.strategy, options)
        registered.append(name)

    return registered


async def _register(
    router: Router,
    registry: CapabilityRegistry,
    basedir: Union[str, Path],
    reference: str,
    options: dict[str, Any],
) -> None:
    try:
        capability = registry.load(basedir, reference)
    except HandlerError as exc:
        raise PluginError(f"Cannot load auth plugin '{reference}': {exc}") from exc

    plugin = as_plugin(capability, reference)
    try:
        await router.register(plugin, options)
    except PluginError:
        raise
    except Exception as exc:
        raise PluginError(f"Auth plugin '{options['name']}' failed to register: {exc}") from exc

    logger.info("Registered auth plugin '%s' from %s", options["name"], reference)
