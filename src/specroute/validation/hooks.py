"""Pre-authentication hook -- coerce and check request parts before auth runs.

Path, query and header values arrive as strings. :class:`PreAuthHook`
converts each one to the type its parameter schema declares (numbers,
booleans, arrays split by their collection format) and then checks every
location against the schema the binder attached, so a malformed request is
rejected before any authentication strategy sees it.

The schema checks are performed by the ``jsonschema`` library.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Optional

import jsonschema
from jsonschema.exceptions import best_match

from specroute.exceptions import RequestValidationError
from specroute.models import Parameter, ParameterLocation
from specroute.validation.schemas import parameter_schema

_INTEGER = re.compile(r"^[-+]?\d+$")

_DELIMITERS = {
    "csv": ",",
    "ssv": " ",
    "tsv": "\t",
    "pipes": "|",
}

# Request attribute and key normalization per validated location.
_LOCATIONS: dict[ParameterLocation, tuple[str, bool]] = {
    ParameterLocation.PATH: ("params", False),
    ParameterLocation.QUERY: ("query", False),
    ParameterLocation.HEADER: ("headers", True),
}


@dataclass
class RequestContext:
    """Mutable view of an incoming request, as the router hands it to the hook.

    Attributes:
        method: HTTP method (e.g. ``"GET"``).
        path: The request path.
        params: Path parameters by name.
        query: Query parameters by name; repeated keys as lists.
        headers: Request headers (names are matched case-insensitively).
        payload: The parsed request body.
    """

    method: str = ""
    path: str = ""
    params: dict[str, Any] = field(default_factory=dict)
    query: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, Any] = field(default_factory=dict)
    payload: Any = None


def validator_class(spec_version: str) -> type:
    """Return the ``jsonschema`` validator class for a document version.

    OpenAPI 3.1 schemas are JSON Schema 2020-12; version 2.0 and 3.0 schemas
    follow draft 4 semantics.
    """
    if spec_version.startswith("3.1"):
        return jsonschema.Draft202012Validator
    return jsonschema.Draft4Validator


class PreAuthHook:
    """Callable attached to a route's validation spec.

    Args:
        parameters: The operation's parameters.
        schemas: Object schema per location name (``params``, ``query``,
            ``headers``), as built by the binder.
        spec_version: Raw document version, selects the schema dialect.

    Example::

        hook = PreAuthHook(operation.parameters, {"params": schema}, "2.0")
        request = hook(RequestContext(params={"id": "42"}))
        assert request.params["id"] == 42
    """

    def __init__(
        self,
        parameters: list[Parameter],
        schemas: dict[str, Optional[dict[str, Any]]],
        spec_version: str,
    ) -> None:
        cls = validator_class(spec_version)
        self._validators = {
            location: cls(schema) for location, schema in schemas.items() if schema is not None
        }
        self._parameters: dict[str, list[tuple[str, Parameter, dict[str, Any]]]] = {}
        for parameter in parameters:
            if parameter.location not in _LOCATIONS:
                continue
            location, lowercase = _LOCATIONS[parameter.location]
            key = parameter.name.lower() if lowercase else parameter.name
            self._parameters.setdefault(location, []).append(
                (key, parameter, parameter_schema(parameter))
            )

    @property
    def locations(self) -> list[str]:
        """Locations this hook checks."""
        return list(self._validators)

    def __call__(self, request: RequestContext) -> RequestContext:
        """Coerce and check *request* in place.

        Raises:
            RequestValidationError: On the first location that fails its
                schema.
        """
        request.headers = {str(key).lower(): value for key, value in request.headers.items()}

        for location, validator in self._validators.items():
            values = getattr(request, location)
            for key, parameter, schema in self._parameters.get(location, []):
                if key in values:
                    values[key] = coerce(values[key], schema, parameter.collection_format)

            error = best_match(validator.iter_errors(values))
            if error is not None:
                raise RequestValidationError(location, error.message)
        return request


def coerce(value: Any, schema: dict[str, Any], collection_format: Optional[str] = None) -> Any:
    """Convert a raw string *value* to the type *schema* declares.

    Values that do not convert are returned unchanged so the schema check
    can report them.
    """
    schema_type = schema.get("type")
    if schema_type == "array":
        if isinstance(value, str):
            if collection_format == "multi":
                value = [value]
            else:
                value = value.split(_DELIMITERS.get(collection_format or "csv", ","))
        if isinstance(value, list):
            items = schema.get("items") if isinstance(schema.get("items"), dict) else {}
            return [coerce(item, items) for item in value]
        return value

    if isinstance(value, list):
        # A repeated scalar query key: keep the last occurrence.
        value = value[-1] if value else value
    if not isinstance(value, str):
        return value

    if schema_type == "integer" and _INTEGER.match(value):
        return int(value)
    if schema_type == "number":
        try:
            return float(value) if not _INTEGER.match(value) else int(value)
        except ValueError:
            return value
    if schema_type == "boolean" and value.lower() in ("true", "false"):
        return value.lower() == "true"
    return value
