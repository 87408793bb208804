"""Build JSON schemas from OpenAPI parameters and request bodies.

Version 3 parameters already carry a JSON schema under ``schema``. Version 2
non-body parameters spread the same keywords over the parameter object
itself; :func:`parameter_schema` folds them back into a schema so both
versions produce the same shape.
"""

from __future__ import annotations

import copy
from typing import Any, Optional

from specroute.models import Parameter

_SCHEMA_KEYWORDS = frozenset(
    {
        "type",
        "format",
        "items",
        "enum",
        "default",
        "minimum",
        "maximum",
        "exclusiveMinimum",
        "exclusiveMaximum",
        "multipleOf",
        "minLength",
        "maxLength",
        "pattern",
        "minItems",
        "maxItems",
        "uniqueItems",
    }
)

_COMPOSITE_KEYWORDS = ("allOf", "anyOf", "oneOf")


def parameter_schema(parameter: Parameter) -> dict[str, Any]:
    """Return the JSON schema constraining *parameter*'s value.

    A v2 ``type: file`` parameter has no JSON representation and yields the
    permissive schema ``{}``.
    """
    if parameter.schema_ is not None:
        return copy.deepcopy(parameter.schema_)

    extra = parameter.model_extra or {}
    schema = {key: copy.deepcopy(value) for key, value in extra.items() if key in _SCHEMA_KEYWORDS}
    if schema.get("type") == "file":
        return {}
    return schema


def object_schema(
    parameters: list[Parameter],
    *,
    additional: bool,
    lowercase: bool = False,
) -> dict[str, Any]:
    """Combine *parameters* into one object schema keyed by parameter name.

    Args:
        parameters: Parameters of a single location.
        additional: Value of ``additionalProperties``.
        lowercase: Lower-case the property names (HTTP header names are
            case-insensitive).
    """
    properties: dict[str, Any] = {}
    required: list[str] = []
    for parameter in parameters:
        name = parameter.name.lower() if lowercase else parameter.name
        properties[name] = parameter_schema(parameter)
        if parameter.required and name not in required:
            required.append(name)

    schema: dict[str, Any] = {
        "type": "object",
        "properties": properties,
        "additionalProperties": additional,
    }
    if required:
        schema["required"] = required
    return schema


def media_type_schema(
    content: dict[str, Any], preferred: Optional[list[str]] = None
) -> Optional[dict[str, Any]]:
    """Pick the schema of a v3 ``content`` map.

    The first media type in *preferred* that has a schema wins, then the
    first JSON media type, then the first media type with a schema at all.
    """
    candidates = [
        (media_type, entry["schema"])
        for media_type, entry in content.items()
        if isinstance(entry, dict) and isinstance(entry.get("schema"), dict)
    ]
    if not candidates:
        return None

    for media_type in preferred or []:
        for candidate, schema in candidates:
            if candidate == media_type:
                return copy.deepcopy(schema)
    for candidate, schema in candidates:
        if _is_json(candidate):
            return copy.deepcopy(schema)
    return copy.deepcopy(candidates[0][1])


def _is_json(media_type: str) -> bool:
    essence = media_type.split(";", 1)[0].strip().lower()
    return essence == "application/json" or essence.endswith("+json")


def set_additional_properties(schema: Any, value: bool) -> Any:
    """Set ``additionalProperties`` on every schema that declares ``properties``
    but leaves ``additionalProperties`` undeclared.

    A bare ``{"type": "object"}`` declares no properties and stays free-form.

    Walks ``properties`` and ``items``, and the composition keywords when
    opening schemas up. *schema* is modified in place and returned.
    """
    if not isinstance(schema, dict):
        return schema

    if "properties" in schema and "additionalProperties" not in schema:
        schema["additionalProperties"] = value

    for child in (schema.get("properties") or {}).values():
        set_additional_properties(child, value)
    if isinstance(schema.get("additionalProperties"), dict):
        set_additional_properties(schema["additionalProperties"], value)

    items = schema.get("items")
    if isinstance(items, list):
        for child in items:
            set_additional_properties(child, value)
    else:
        set_additional_properties(items, value)

    if not value:
        # Closed allOf members would reject each other's properties.
        return schema
    for keyword in _COMPOSITE_KEYWORDS:
        for child in schema.get(keyword) or []:
            set_additional_properties(child, value)
    return schema
