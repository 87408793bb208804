"""Route compiler -- turn a document and a handler tree into route descriptors.

:func:`compile_routes` walks the document's paths in document order, then
each path's methods in document order, and emits one
:class:`~specroute.models.RouteDescriptor` per operation that has a handler.
For every such operation it:

1. builds the default options (CORS policy, id, description, tags) and
   shallow-merges the operation's ``x-specroute-options`` over them;
2. sets the payload media-type allow-list on body-carrying methods;
3. attaches the validation spec and pre-auth hook, unless the payload
   options disable parsing;
4. attaches the response validation spec when output validation is on;
5. resolves the auth requirement.

Any error aborts the pass; a partial table is never returned.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from pydantic import ValidationError

from specroute.auth.resolver import resolve_security
from specroute.exceptions import ConfigError
from specroute.handlers.resolver import bind_handlers
from specroute.handlers.tree import HandlerTree
from specroute.models import (
    OPTIONS_EXTENSION,
    ApiDocument,
    DocumentV2,
    HandlerBinding,
    Operation,
    RouteDescriptor,
    RouteOptions,
)
from specroute.validation.binder import bind, bind_responses

logger = logging.getLogger(__name__)

# Option keys that the compiler owns; overrides may not replace them.
_RESERVED_OPTIONS = ("handler", "pre")


def compile_routes(
    document: ApiDocument,
    handlers: HandlerTree,
    *,
    cors: Union[bool, dict[str, Any]] = True,
    vhost: Optional[str] = None,
    output_validation: bool = False,
) -> list[RouteDescriptor]:
    """Compile every handled operation of *document* into a route descriptor.

    Args:
        document: The parsed document.
        handlers: Tree the operations are looked up in.
        cors: CORS policy applied to every route unless overridden.
        vhost: Virtual host attached to every route.
        output_validation: Attach response schemas.

    Returns:
        Descriptors in document order. Operations without a handler are
        absent.

    Raises:
        SecuritySchemeError: If an operation references an undefined scheme.
        HandlerError: If a handler leaf is not callable.
        ConfigError: If an operation's x-specroute-options are malformed.
    """
    bindings = bind_handlers(document, handlers)
    routes: list[RouteDescriptor] = []
    for path, operations in document.paths.items():
        for method, operation in operations.items():
            binding = bindings.get((path, method))
            if binding is None:
                continue
            routes.append(
                compile_operation(
                    document,
                    operation,
                    binding,
                    cors=cors,
                    vhost=vhost,
                    output_validation=output_validation,
                )
            )

    logger.info("Compiled %d route(s) from %s", len(routes), document.title)
    return routes


def compile_operation(
    document: ApiDocument,
    operation: Operation,
    binding: HandlerBinding,
    *,
    cors: Union[bool, dict[str, Any]] = True,
    vhost: Optional[str] = None,
    output_validation: bool = False,
) -> RouteDescriptor:
    """Compile a single operation bound to *binding*."""
    overrides = dict(_expect_mapping(operation, "", operation.extensions.get(OPTIONS_EXTENSION)))
    for key in _RESERVED_OPTIONS:
        overrides.pop(key, None)
    validate = _expect_mapping(operation, "validate", overrides.pop("validate", None))
    validate_options = _expect_mapping(operation, "validate.options", validate.get("options"))
    allow_unknown = validate_options.get("allowUnknown") is True

    options: dict[str, Any] = {
        "cors": cors,
        "id": operation.operation_id,
        "description": operation.description or None,
        "tags": ["api", *operation.tags],
    }
    options.update(overrides)

    consumes = operation.consumes
    if consumes is None and isinstance(document, DocumentV2):
        consumes = document.consumes

    if operation.method.carries_body:
        payload = _expect_mapping(operation, "payload", options.get("payload"))
        options["payload"] = {"allow": consumes, **payload}

    payload = _expect_mapping(operation, "payload", options.get("payload"))
    skip_validation = payload.get("parse") is False
    if (operation.parameters or operation.request_body) and not skip_validation:
        options["validation"] = bind(operation, consumes, document.version, allow_unknown)

    if output_validation and operation.responses:
        options["response"] = bind_responses(operation.responses, document.version)

    auth = resolve_security(operation, document)
    if auth is not None:
        options["auth"] = auth

    try:
        route_options = RouteOptions(**options)
    except ValidationError as exc:
        raise ConfigError(
            f"Invalid {OPTIONS_EXTENSION} on {operation.method.value.upper()} {operation.path}: {exc}"
        ) from exc

    return RouteDescriptor(
        method=operation.method,
        path=document.base_path + operation.path,
        handler=binding.handler,
        pre=binding.pre,
        vhost=vhost,
        options=route_options,
    )


def _expect_mapping(operation: Operation, key: str, value: Any) -> dict[str, Any]:
    """Return *value* (``None`` meaning empty) if it is a mapping, else raise."""
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    where = f"{OPTIONS_EXTENSION}.{key}" if key else OPTIONS_EXTENSION
    raise ConfigError(
        f"Invalid {OPTIONS_EXTENSION} on {operation.method.value.upper()} {operation.path}: "
        f"{where} must be an object, got {type(value).__name__}"
    )
