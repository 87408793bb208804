"""Validation binder -- attach request and response schemas to a route.

:func:`bind` produces the :class:`~specroute.models.ValidationSpec` of one
operation: an object schema per parameter location, the payload schema, and
the :class:`~specroute.validation.hooks.PreAuthHook` that coerces and checks
the string-valued locations before authentication.

:func:`bind_responses` produces the :class:`~specroute.models.ResponseValidationSpec`
used when output validation is enabled.

Neither function validates anything itself; the schemas are handed to the
router, which runs them per request.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Optional

from specroute.models import (
    Operation,
    Parameter,
    ParameterLocation,
    ResponseValidationSpec,
    ValidationSpec,
)
from specroute.validation.hooks import PreAuthHook
from specroute.validation.schemas import (
    media_type_schema,
    object_schema,
    parameter_schema,
    set_additional_properties,
)

logger = logging.getLogger(__name__)


def bind(
    operation: Operation,
    consumes: Optional[list[str]],
    spec_version: str,
    allow_unknown: bool = False,
) -> ValidationSpec:
    """Build the validation spec for *operation*.

    Args:
        operation: The operation to bind.
        consumes: Effective consumed media types (the operation's, else the
            document's). Used to pick among several v3 request body schemas.
        spec_version: Raw document version (``"2.0"``, ``"3.0.3"`` ...).
        allow_unknown: Accept properties the schemas do not declare in the
            path, query and payload locations.

    Returns:
        The :class:`ValidationSpec`. Locations without parameters stay ``None``; cookie
        parameters are not validated.
    """
    by_location: dict[ParameterLocation, list[Parameter]] = {}
    for parameter in operation.parameters:
        by_location.setdefault(parameter.location, []).append(parameter)

    def _location(location: ParameterLocation, **kwargs: Any) -> Optional[dict[str, Any]]:
        parameters = by_location.get(location)
        return object_schema(parameters, **kwargs) if parameters else None

    params = _location(ParameterLocation.PATH, additional=allow_unknown)
    query = _location(ParameterLocation.QUERY, additional=allow_unknown)
    headers = _location(ParameterLocation.HEADER, additional=True, lowercase=True)

    payload, payload_required = _payload(operation, by_location, consumes, spec_version)
    if payload is not None:
        set_additional_properties(payload, allow_unknown)

    schemas = {"params": params, "query": query, "headers": headers}
    pre_auth = None
    if any(schema is not None for schema in schemas.values()):
        pre_auth = PreAuthHook(operation.parameters, schemas, spec_version)

    return ValidationSpec(
        params=params,
        query=query,
        headers=headers,
        payload=payload,
        payload_required=payload_required,
        allow_unknown=allow_unknown,
        pre_auth=pre_auth,
    )


def _payload(
    operation: Operation,
    by_location: dict[ParameterLocation, list[Parameter]],
    consumes: Optional[list[str]],
    spec_version: str,
) -> tuple[Optional[dict[str, Any]], bool]:
    """Return the payload schema and whether a payload is required."""
    if spec_version.startswith("3"):
        body = operation.request_body
        if not body:
            return None, False
        schema = media_type_schema(body.get("content") or {}, consumes)
        return (schema if schema is not None else {}), bool(body.get("required", False))

    body_params = by_location.get(ParameterLocation.BODY)
    if body_params:
        body = body_params[0]
        if len(body_params) > 1:
            logger.warning(
                "%s %s declares %d body parameters, using '%s'",
                operation.method.value.upper(),
                operation.path,
                len(body_params),
                body.name,
            )
        return copy.deepcopy(body.schema_ or {}), body.required

    form = by_location.get(ParameterLocation.FORM_DATA)
    if form:
        return object_schema(form, additional=False), any(p.required for p in form)
    return None, False


def bind_responses(
    responses: dict[str, dict[str, Any]], spec_version: str
) -> Optional[ResponseValidationSpec]:
    """Build the response validation spec from an operation's responses.

    Only numeric status codes are keyed; ``default`` and range keys such as
    ``2XX`` are left out. A response without a schema validates against
    ``{}``, which accepts any body.

    Returns:
        The :class:`ResponseValidationSpec`, or ``None`` when no numeric status
        code is declared.
    """
    status: dict[int, dict[str, Any]] = {}
    for code, response in responses.items():
        if not code.isdigit():
            continue
        if spec_version.startswith("3"):
            schema = media_type_schema(response.get("content") or {})
        else:
            schema = copy.deepcopy(response.get("schema"))
        status[int(code)] = schema if schema is not None else {}

    if not status:
        return None
    return ResponseValidationSpec(status=status)
