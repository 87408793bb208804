"""Exception hierarchy for specroute.

All exceptions inherit from :class:`SpecrouteError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`specroute.exit_codes`.
Startup errors (configuration, document, security references, handler and
plugin loading) abort :func:`specroute.plugin.register` before anything is
handed to the router. :class:`RequestValidationError` is the only request-time
error and is raised by the pre-authentication hook.

Subclass hierarchy::

    SpecrouteError (exit 1)
    +-- ConfigError             (exit 2)
    +-- SecuritySchemeError     (exit 3)
    +-- HandlerError            (exit 4)
    +-- RequestValidationError  (exit 5)
    +-- SpecParseError          (exit 7)
    +-- PluginError             (exit 10)
"""

from __future__ import annotations

from specroute.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_GENERIC_FAILURE,
    EXIT_HANDLER_ERROR,
    EXIT_INVALID_USAGE,
    EXIT_PLUGIN_ERROR,
    EXIT_SPEC_PARSE_ERROR,
    EXIT_VALIDATION_ERROR,
)


class SpecrouteError(Exception):
    """Base exception for all specroute errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`specroute.exit_codes`. The CLI entry point catches
    this exception type and exits with ``exc.exit_code``.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(SpecrouteError):
    """Raised when the registration options fail validation."""

    exit_code = EXIT_INVALID_USAGE


class SpecParseError(SpecrouteError):
    """Raised when the OpenAPI document cannot be loaded, parsed, or validated."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class SecuritySchemeError(SpecrouteError):
    """Raised when a security requirement names a scheme the document does not define."""

    exit_code = EXIT_AUTH_FAILURE


class HandlerError(SpecrouteError):
    """Raised when a handler reference cannot be loaded or does not resolve to a callable."""

    exit_code = EXIT_HANDLER_ERROR


class PluginError(SpecrouteError):
    """Raised when an auth scheme or strategy plugin fails to load or register."""

    exit_code = EXIT_PLUGIN_ERROR


class RequestValidationError(SpecrouteError):
    """Raised by the pre-authentication hook when a request part fails its schema.

    Args:
        location: The request location that failed (``params``, ``query``
            or ``headers``).
        message: The validation message reported by the schema engine.
    """

    exit_code = EXIT_VALIDATION_ERROR

    def __init__(self, location: str, message: str):
        super().__init__(f"Invalid request {location}: {message}")
        self.location = location
        self.detail = message
