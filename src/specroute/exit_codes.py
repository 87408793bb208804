"""Numeric process exit codes for the ``specroute`` command line.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~specroute.exceptions.SpecrouteError` subclass, so
deployment scripts can tell a broken document from a broken handler module
without parsing stderr.

Example::

    $ specroute check openapi.yaml
    $ echo $?
    7   # EXIT_SPEC_PARSE_ERROR -- the document could not be loaded
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or options."""

EXIT_AUTH_FAILURE = 3
"""A security requirement could not be resolved against the document."""

EXIT_HANDLER_ERROR = 4
"""A handler reference could not be loaded or is not callable."""

EXIT_VALIDATION_ERROR = 5
"""A request failed structural validation."""

EXIT_SPEC_PARSE_ERROR = 7
"""The OpenAPI document could not be parsed or validated."""

EXIT_PLUGIN_ERROR = 10
"""An auth scheme or strategy plugin failed to load or register."""
