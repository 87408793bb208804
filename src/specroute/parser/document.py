"""Build an :data:`~specroute.models.ApiDocument` from a raw OpenAPI dict.

This module walks a fully ``$ref``-resolved document and extracts every
operation, parameter, request body, response definition and security scheme
into the models of :mod:`specroute.models`. Version differences are settled
here, once:

* the base path comes from ``basePath`` (2.0) or from the first entry of
  ``servers`` (3.x), with server variables replaced by their defaults;
* security schemes come from ``securityDefinitions`` (2.0) or
  ``components.securitySchemes`` (3.x);
* an operation's consumed media types are its ``consumes`` list (2.0) or the
  keys of its ``requestBody.content`` (3.x).

Paths and methods keep their document order, which later becomes the order of
the compiled route table.
"""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import urlparse

from jsonschema.exceptions import ValidationError as SchemaValidationError
from openapi_spec_validator import validate
from openapi_spec_validator.validation.exceptions import ValidatorDetectError
from pydantic import TypeAdapter, ValidationError

from specroute.exceptions import SpecParseError
from specroute.models import (
    AUTH_STRATEGY_EXTENSION,
    VENDOR_PREFIX,
    ApiDocument,
    HTTPMethod,
    Operation,
    Parameter,
    SecurityScheme,
)
from specroute.parser.loader import Source, detect_version, load_source
from specroute.parser.resolver import resolve_refs

_HTTP_METHODS = frozenset(m.value for m in HTTPMethod)
_SERVER_VARIABLE = re.compile(r"\{([^}]+)\}")
_DOCUMENT_ADAPTER: TypeAdapter[ApiDocument] = TypeAdapter(ApiDocument)


def load_document(source: Source) -> ApiDocument:
    """Load, dereference and extract a document in one step.

    Args:
        source: A mapping, file path, or URL accepted by
            :func:`~specroute.parser.loader.load_source`.

    Returns:
        A :class:`~specroute.models.DocumentV2` or
        :class:`~specroute.models.DocumentV3`.

    Raises:
        SpecParseError: If the source cannot be loaded or is not a valid
            OpenAPI 2.0 / 3.x document.
    """
    return build_document(load_source(source))


def build_document(raw: dict[str, Any]) -> ApiDocument:
    """Extract an :data:`~specroute.models.ApiDocument` from a raw document.

    The raw dict is not modified; references are resolved on a copy. The
    document is then checked against the OpenAPI 2.0 / 3.x schema (and the
    semantic checks of ``openapi-spec-validator``, such as undeclared path
    template parameters or duplicate ``operationId`` values) before anything
    is extracted.

    Raises:
        SpecParseError: On an unsupported version, a broken ``$ref``, a
            schema violation, or a structurally invalid operation, parameter
            or security scheme.
    """
    major, version = detect_version(raw)
    spec = resolve_refs(raw)
    _validate_raw(raw, major, version)

    data: dict[str, Any] = {
        "spec_version": major,
        "version": version,
        "title": (spec.get("info") or {}).get("title", "Untitled API"),
        "security": spec.get("security"),
        "security_schemes": _extract_security_schemes(spec, major),
        "extensions": _vendor_keys(spec),
    }
    paths, path_extensions = _extract_paths(spec, major)
    data["paths"] = paths
    data["path_extensions"] = path_extensions

    if major == "2":
        data["base_path"] = normalize_base_path(spec.get("basePath") or "/")
        data["host"] = spec.get("host")
        data["consumes"] = spec.get("consumes")
    else:
        servers = [_server_url(server) for server in spec.get("servers") or []]
        data["servers"] = servers
        # Conflicting server pathnames cannot all be mounted; the first wins.
        first = urlparse(servers[0]) if servers else None
        data["base_path"] = normalize_base_path(first.path if first else "/")
        data["host"] = (first.netloc or None) if first else None

    try:
        return _DOCUMENT_ADAPTER.validate_python(data)
    except ValidationError as exc:
        raise SpecParseError(f"Invalid OpenAPI document: {exc}") from exc


def _validate_raw(raw: dict[str, Any], major: str, version: str) -> None:
    """Check *raw* against the OpenAPI schema for its declared version."""
    # YAML reads "openapi: 3.0" as a float.
    key = "swagger" if major == "2" else "openapi"
    try:
        validate({**raw, key: version})
    except (SchemaValidationError, ValidatorDetectError) as exc:
        location = "/".join(str(part) for part in getattr(exc, "path", ()))
        where = f" at '{location}'" if location else ""
        message = getattr(exc, "message", None) or str(exc)
        raise SpecParseError(f"Invalid OpenAPI document{where}: {message}") from exc


def normalize_base_path(path: str) -> str:
    """Give *path* a leading slash and drop the trailing one (``"/"`` becomes ``""``)."""
    if not path.startswith("/"):
        path = "/" + path
    return path.rstrip("/")


def _server_url(server: dict[str, Any]) -> str:
    """Return a server URL with ``{variables}`` replaced by their defaults."""
    url = str(server.get("url", "/"))
    variables = server.get("variables") or {}

    def _default(match: re.Match[str]) -> str:
        variable = variables.get(match.group(1)) or {}
        return str(variable.get("default", match.group(0)))

    return _SERVER_VARIABLE.sub(_default, url)


def _vendor_keys(node: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in node.items() if key.startswith(VENDOR_PREFIX)}


def _extract_paths(
    spec: dict[str, Any], major: str
) -> tuple[dict[str, dict[str, Operation]], dict[str, dict[str, Any]]]:
    """Extract operations per path, preserving path and method order."""
    paths: dict[str, dict[str, Operation]] = {}
    path_extensions: dict[str, dict[str, Any]] = {}

    for path, path_item in spec.get("paths", {}).items():
        if not isinstance(path_item, dict):
            raise SpecParseError(f"Path item '{path}' must be an object")

        path_params = path_item.get("parameters", [])
        operations: dict[str, Operation] = {}
        for method, operation in path_item.items():
            if method not in _HTTP_METHODS:
                continue
            if not isinstance(operation, dict):
                raise SpecParseError(f"Operation {method.upper()} {path} must be an object")
            operations[method] = _extract_operation(path, method, operation, path_params, major)

        paths[path] = operations
        extensions = _vendor_keys(path_item)
        if extensions:
            path_extensions[path] = extensions

    return paths, path_extensions


def _extract_operation(
    path: str,
    method: str,
    operation: dict[str, Any],
    path_params: list[dict[str, Any]],
    major: str,
) -> Operation:
    merged = _merge_parameters(path_params, operation.get("parameters", []))
    try:
        parameters = [Parameter.model_validate(param) for param in merged]
    except ValidationError as exc:
        raise SpecParseError(f"Invalid parameter in {method.upper()} {path}: {exc}") from exc

    request_body = operation.get("requestBody") if major == "3" else None
    if major == "3":
        consumes = list((request_body or {}).get("content", {})) or None
    else:
        consumes = operation.get("consumes")

    responses = {
        str(code): response
        for code, response in (operation.get("responses") or {}).items()
        if isinstance(response, dict)
    }

    try:
        return Operation(
            path=path,
            method=HTTPMethod(method),
            operation_id=operation.get("operationId"),
            summary=operation.get("summary"),
            description=operation.get("description"),
            tags=operation.get("tags", []),
            parameters=parameters,
            request_body=request_body,
            consumes=consumes,
            responses=responses,
            security=operation.get("security"),
            extensions=_vendor_keys(operation),
        )
    except ValidationError as exc:
        raise SpecParseError(f"Invalid operation {method.upper()} {path}: {exc}") from exc


def _merge_parameters(
    path_params: list[dict[str, Any]],
    op_params: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Merge path-level and operation-level parameters.

    Operation-level parameters override path-level ones with the same
    ``name`` and ``in``; the surviving path-level parameters come first.
    """
    overridden = {(p.get("name"), p.get("in")) for p in op_params}
    merged = [p for p in path_params if (p.get("name"), p.get("in")) not in overridden]
    merged.extend(op_params)
    return merged


def _extract_security_schemes(spec: dict[str, Any], major: str) -> dict[str, SecurityScheme]:
    if major == "2":
        raw_schemes = spec.get("securityDefinitions") or {}
    else:
        raw_schemes = (spec.get("components") or {}).get("securitySchemes") or {}

    schemes: dict[str, SecurityScheme] = {}
    for name, scheme in raw_schemes.items():
        if not isinstance(scheme, dict) or "type" not in scheme:
            raise SpecParseError(f"Security scheme '{name}' must be an object with a 'type'")
        try:
            schemes[name] = SecurityScheme(
                name=name,
                type=scheme["type"],
                description=scheme.get("description"),
                param_name=scheme.get("name"),
                location=scheme.get("in"),
                scheme=scheme.get("scheme"),
                strategy=scheme.get(AUTH_STRATEGY_EXTENSION),
                extensions=_vendor_keys(scheme),
            )
        except ValidationError as exc:
            raise SpecParseError(f"Invalid security scheme '{name}': {exc}") from exc
    return schemes
