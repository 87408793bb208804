"""Validation binding -- schemas per request location and per response status.

* :func:`bind` / :func:`bind_responses` -- attach schemas to a route.
* :class:`PreAuthHook` / :class:`RequestContext` -- request-time coercion
  and schema check run before authentication.
"""

from specroute.validation.binder import bind, bind_responses
from specroute.validation.hooks import PreAuthHook, RequestContext, coerce
from specroute.validation.schemas import object_schema, parameter_schema

__all__ = [
    "PreAuthHook",
    "RequestContext",
    "bind",
    "bind_responses",
    "coerce",
    "object_schema",
    "parameter_schema",
]
