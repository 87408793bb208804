"""Canonical Pydantic models shared across all specroute modules.

This is the single source of truth for data shapes in the project. The models
fall into three groups:

**Option models** -- the validated registration surface:
    :class:`DocsOptions` and :class:`PluginOptions`.

**Document models** -- produced by :mod:`specroute.parser` from a resolved
OpenAPI document and consumed by the route compiler:
    :class:`HTTPMethod`, :class:`ParameterLocation`, :class:`Parameter`,
    :class:`Operation`, :class:`SecurityScheme`, :class:`DocumentV2`,
    :class:`DocumentV3` and the :data:`ApiDocument` tagged union.

**Route models** -- the compiled output handed to a router:
    :class:`PreStep`, :class:`HandlerBinding`, :class:`AuthRequirement`,
    :class:`ValidationSpec`, :class:`ResponseValidationSpec`,
    :class:`RouteOptions` and :class:`RouteDescriptor`.

Route models are frozen: a descriptor is created once per eligible operation
and never mutated afterwards.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Annotated, Any, Callable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# --- Vendor extensions ---

VENDOR_PREFIX = "x-"
"""Reserved prefix of OpenAPI vendor-extension keys."""

HANDLER_EXTENSION = "x-specroute-handler"
"""Path-item or operation key naming a handler module (or ``module:attr``)."""

OPTIONS_EXTENSION = "x-specroute-options"
"""Operation key holding route options merged over the compiled defaults."""

AUTH_SCHEMES_EXTENSION = "x-specroute-auth-schemes"
"""Document key mapping auth scheme names to plugin references."""

AUTH_STRATEGY_EXTENSION = "x-specroute-auth-strategy"
"""Security-scheme key naming the plugin that implements the strategy."""


# --- Options ---


class DocsOptions(BaseModel):
    """Settings for the documentation route that serves the original document.

    Both the snake_case field names and the camelCase spellings used in
    existing deployments (``stripExtensions``, ``prefixBasePath``) are
    accepted.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    path: str = Field(default="/api-docs", description="Relative docs route path")
    auth: Union[bool, dict[str, Any], None] = Field(
        default=None, description="Auth policy of the docs route"
    )
    strip_extensions: bool = Field(
        default=True,
        alias="stripExtensions",
        description="Remove x-* keys from the served document",
    )
    prefix_base_path: bool = Field(
        default=True,
        alias="prefixBasePath",
        description="Mount the docs route under the document's base path",
    )


class PluginOptions(BaseModel):
    """Validated options accepted by :func:`specroute.plugin.register`.

    Unknown keys are rejected. ``docspath`` is deprecated; see
    :func:`specroute.config.validate_options` for its migration into
    ``docs.path``.

    Example::

        PluginOptions(
            api="openapi.yaml",
            handlers="routes",
            cors={"origin": ["https://example.com"]},
            outputvalidation=True,
        )
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    api: Union[str, Path, dict[str, Any]] = Field(
        description="OpenAPI document, or a file path / URL pointing at one"
    )
    docspath: str = Field(default="/api-docs", description="Deprecated, use docs.path")
    docs: DocsOptions = Field(default_factory=DocsOptions)
    cors: Union[bool, dict[str, Any]] = True
    vhost: Optional[str] = None
    handlers: Any = Field(
        default=None,
        description="Handler directory, nested handler mapping, or HandlerTree",
    )
    extensions: list[str] = Field(
        default_factory=lambda: ["py"],
        description="File suffixes loaded from a handler directory",
    )
    outputvalidation: bool = False

    @field_validator("handlers")
    @classmethod
    def _check_handlers(cls, value: Any) -> Any:
        if value is None or isinstance(value, (str, Path, dict)):
            return value
        if callable(getattr(value, "lookup", None)):
            return value
        raise ValueError("handlers must be a directory path, a mapping, or a HandlerTree")


# --- Document models ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised in OpenAPI path-item objects."""

    GET = "get"
    PUT = "put"
    POST = "post"
    DELETE = "delete"
    OPTIONS = "options"
    HEAD = "head"
    PATCH = "patch"
    TRACE = "trace"

    @property
    def carries_body(self) -> bool:
        """Whether requests with this method conventionally carry a payload."""
        return self in _BODY_METHODS


_BODY_METHODS = frozenset({HTTPMethod.POST, HTTPMethod.PUT, HTTPMethod.PATCH, HTTPMethod.DELETE})


class ParameterLocation(str, enum.Enum):
    """Locations where a parameter can appear, per the OpenAPI ``in`` field."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"
    BODY = "body"
    FORM_DATA = "formData"


class Parameter(BaseModel):
    """A single OpenAPI *Parameter Object*.

    Version 3 parameters carry their constraints under ``schema``. Version 2
    parameters (other than ``body``) carry them inline (``type``, ``format``,
    ``items``, ``enum``, ``minimum`` ...); those keys are preserved in
    ``model_extra`` and folded into a schema by
    :func:`specroute.validation.schemas.parameter_schema`.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str
    location: ParameterLocation = Field(alias="in")
    required: bool = False
    description: Optional[str] = None
    schema_: Optional[dict[str, Any]] = Field(default=None, alias="schema")
    collection_format: Optional[str] = Field(default=None, alias="collectionFormat")


class Operation(BaseModel):
    """One HTTP method under one path template.

    ``security`` keeps the distinction the OpenAPI document makes: ``None``
    when the operation does not declare the field (the global requirement
    applies) and ``[]`` when it explicitly opts out of authentication.
    """

    path: str
    method: HTTPMethod
    operation_id: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    parameters: list[Parameter] = Field(default_factory=list)
    request_body: Optional[dict[str, Any]] = None
    consumes: Optional[list[str]] = None
    responses: dict[str, dict[str, Any]] = Field(default_factory=dict)
    security: Optional[list[dict[str, list[str]]]] = None
    extensions: dict[str, Any] = Field(default_factory=dict)


class SecurityScheme(BaseModel):
    """A *Security Scheme Object* from ``securityDefinitions`` (v2) or
    ``components.securitySchemes`` (v3)."""

    name: str
    type: str
    description: Optional[str] = None
    param_name: Optional[str] = None  # apiKey "name"
    location: Optional[str] = None  # apiKey "in": header, query, cookie
    scheme: Optional[str] = None  # http: bearer, basic
    strategy: Optional[str] = Field(
        default=None, description="Plugin reference from x-specroute-auth-strategy"
    )
    extensions: dict[str, Any] = Field(default_factory=dict)


class _Document(BaseModel):
    """Fields shared by both document versions."""

    version: str = Field(description="Raw 'swagger' or 'openapi' version string")
    title: str = "Untitled API"
    base_path: str = ""
    host: Optional[str] = None
    security: Optional[list[dict[str, list[str]]]] = None
    security_schemes: dict[str, SecurityScheme] = Field(default_factory=dict)
    paths: dict[str, dict[HTTPMethod, Operation]] = Field(default_factory=dict)
    path_extensions: dict[str, dict[str, Any]] = Field(
        default_factory=dict, description="x-* keys declared on each path item"
    )
    extensions: dict[str, Any] = Field(default_factory=dict)

    def operations(self) -> list[Operation]:
        """Return every operation in document order (path, then method)."""
        return [op for methods in self.paths.values() for op in methods.values()]


class DocumentV2(_Document):
    """A Swagger 2.0 document."""

    spec_version: Literal["2"] = "2"
    consumes: Optional[list[str]] = None


class DocumentV3(_Document):
    """An OpenAPI 3.x document.

    ``servers`` keeps every declared URL, but only the first one contributes
    the base path.
    """

    spec_version: Literal["3"] = "3"
    servers: list[str] = Field(default_factory=list)


ApiDocument = Annotated[Union[DocumentV2, DocumentV3], Field(discriminator="spec_version")]
"""A fully dereferenced OpenAPI document, discriminated by ``spec_version``."""


# --- Route models ---


class PreStep(BaseModel):
    """One pre-handler in a chain; its result is assigned under ``assign``."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    assign: str
    method: Callable[..., Any]


class HandlerBinding(BaseModel):
    """The handler resolved for one operation: a terminal handler and its pre steps."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    handler: Callable[..., Any]
    pre: list[PreStep] = Field(default_factory=list)


class AuthRequirement(BaseModel):
    """Route-level authentication requirement resolved from security requirements.

    ``scope`` is ``False`` when no scheme required any scope: the route still
    needs an authenticated request but places no scope restriction on it.
    An empty list would forbid every request in the router's access model.
    """

    model_config = ConfigDict(frozen=True)

    strategies: list[str]
    scope: Union[list[str], Literal[False]] = False
    mode: Literal["required"] = "required"


class ValidationSpec(BaseModel):
    """JSON schemas to check per request location, plus the pre-auth hook.

    ``params`` validates path parameters, ``headers`` request headers. A
    location without parameters stays ``None``.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    params: Optional[dict[str, Any]] = None
    query: Optional[dict[str, Any]] = None
    headers: Optional[dict[str, Any]] = None
    payload: Optional[dict[str, Any]] = None
    payload_required: bool = False
    allow_unknown: bool = False
    pre_auth: Optional[Callable[..., Any]] = None


class ResponseValidationSpec(BaseModel):
    """Response schemas keyed by numeric status code."""

    model_config = ConfigDict(frozen=True)

    status: dict[int, dict[str, Any]] = Field(default_factory=dict)


class RouteOptions(BaseModel):
    """Merged route options.

    Keys supplied through ``x-specroute-options`` that have no field here are
    carried through untouched in ``model_extra`` for the router to interpret.
    """

    model_config = ConfigDict(extra="allow", frozen=True, arbitrary_types_allowed=True)

    id: Optional[str] = None
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=lambda: ["api"])
    cors: Union[bool, dict[str, Any]] = True
    payload: Optional[dict[str, Any]] = None
    validation: Optional[ValidationSpec] = None
    response: Optional[ResponseValidationSpec] = None
    auth: Union[AuthRequirement, bool, dict[str, Any], None] = None


class RouteDescriptor(BaseModel):
    """The compiled unit handed to a router: method + path bound to a handler."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    method: HTTPMethod
    path: str
    handler: Callable[..., Any]
    pre: list[PreStep] = Field(default_factory=list)
    vhost: Optional[str] = None
    options: RouteOptions = Field(default_factory=RouteOptions)
