"""specroute -- Compile OpenAPI 2.0/3.x documents into route tables.

This package reads an OpenAPI document and produces an ordered table of
route descriptors: one per operation that has a handler, each carrying the
handler (or a pre-handler chain), per-location request validation schemas,
optional response schemas and the resolved authentication requirement. The
table is handed to a host router; specroute itself serves nothing.

Typical usage::

    from specroute.plugin import register
    from specroute.routes import RouteTable

    table = RouteTable()
    accessor = await register(table, {"api": "openapi.yaml", "handlers": "routes"})

or, from a shell::

    specroute routes openapi.yaml --handlers routes/

Modules:
    plugin: Registration entry point and the document accessor.
    models: Pydantic models shared across the entire package.
    config: Option validation, migration and options files.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes.
    app: Typer application and CLI entry point.
    output: stdout/stderr formatting for the CLI.
"""

__version__ = "0.1.0"
