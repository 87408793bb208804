"""Capability registry -- resolve handler and plugin references named by data.

Vendor extensions in an OpenAPI document name code by reference:
``x-specroute-handler: handlers/pets.py:get_pet`` or
``x-specroute-auth-strategy: myapp.auth:ApiKeyStrategy``. The
:class:`CapabilityRegistry` turns such a reference into the object it names.

Resolution order for a reference:

1. An object registered under exactly that name with :meth:`register`
   (pre-linked capabilities, useful in tests and frozen deployments).
2. A source file, when the target part ends in ``.py`` or contains a path
   separator. Relative paths are resolved against the document's directory.
3. An importable module path (``package.module``).

The optional ``:attr`` suffix selects an attribute of the loaded module.
Loads are idempotent: a file is executed at most once per registry and the
same reference always returns the same object.
"""

from __future__ import annotations

import hashlib
import importlib
import importlib.util
import logging
import sys
from importlib.machinery import SourceFileLoader
from pathlib import Path
from types import ModuleType
from typing import Any, Union

from specroute.exceptions import HandlerError

logger = logging.getLogger(__name__)

_MODULE_PREFIX = "_specroute_loaded_"


class CapabilityRegistry:
    """Late-bound lookup of handlers and plugins by reference string.

    Example::

        registry = CapabilityRegistry()
        registry.register("auth:static", StaticKeyStrategy)
        registry.load(Path("/srv/api"), "auth:static")          # pre-linked
        registry.load(Path("/srv/api"), "handlers/pets.py:get")  # from file
    """

    def __init__(self) -> None:
        self._named: dict[str, Any] = {}
        self._modules: dict[Path, ModuleType] = {}
        self._loaded: dict[tuple[str, str], Any] = {}

    def register(self, name: str, capability: Any) -> None:
        """Pre-link *capability* under *name*, replacing any earlier entry."""
        self._named[name] = capability

    def load(self, basedir: Union[str, Path], reference: str) -> Any:
        """Resolve *reference* to the object it names.

        Args:
            basedir: Directory that relative file references are resolved
                against.
            reference: ``target`` or ``target:attr`` where *target* is a file
                path or a dotted module path.

        Returns:
            The named module or attribute.

        Raises:
            HandlerError: If the module cannot be found or raises while
                loading, or the attribute does not exist.
        """
        if reference in self._named:
            return self._named[reference]

        target, attr = _split_reference(reference)
        if _is_file_reference(target):
            path = (Path(basedir) / target).resolve()
            key = (str(path), attr)
        else:
            path = None
            key = (target, attr)

        if key in self._loaded:
            return self._loaded[key]

        module = self.load_module(path) if path is not None else _import(target)
        capability: Any = module
        if attr:
            try:
                capability = getattr(module, attr)
            except AttributeError:
                raise HandlerError(
                    f"'{reference}' does not resolve: module has no attribute '{attr}'"
                ) from None

        self._loaded[key] = capability
        return capability

    def load_module(self, path: Path) -> ModuleType:
        """Execute the Python source file at *path* once and return the module.

        The module is registered in :data:`sys.modules` under a private name
        derived from its absolute path.

        Raises:
            HandlerError: If the file does not exist or raises during import.
        """
        path = path.resolve()
        if path in self._modules:
            return self._modules[path]
        if not path.is_file():
            raise HandlerError(f"Handler module not found: {path}")

        digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:12]
        name = f"{_MODULE_PREFIX}{path.stem.replace('-', '_')}_{digest}"
        loader = SourceFileLoader(name, str(path))
        spec = importlib.util.spec_from_loader(name, loader)
        assert spec is not None
        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        try:
            loader.exec_module(module)
        except Exception as exc:
            sys.modules.pop(name, None)
            raise HandlerError(f"Failed to load {path}: {exc}") from exc

        logger.debug("Loaded module %s from %s", name, path)
        self._modules[path] = module
        return module


def _split_reference(reference: str) -> tuple[str, str]:
    target, sep, attr = reference.rpartition(":")
    if sep and attr.isidentifier() and target:
        return target, attr
    return reference, ""


def _is_file_reference(target: str) -> bool:
    return target.endswith(".py") or "/" in target or "\\" in target


def _import(target: str) -> ModuleType:
    try:
        return importlib.import_module(target)
    except Exception as exc:
        raise HandlerError(f"Failed to import '{target}': {exc}") from exc
