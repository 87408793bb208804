"""Route commands -- compile a document and show what a router would receive.

Implements the ``specroute routes``, ``specroute docs`` and
``specroute check`` top-level commands. All three run the same startup pass
as :func:`specroute.plugin.register` without a router, so auth plugins are
not loaded and nothing is served.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Optional

import typer

from specroute.exceptions import SpecrouteError
from specroute.models import AuthRequirement, RouteDescriptor
from specroute.output import error, get_output, info, success


def _build_options(
    api: str,
    config: Optional[Path],
    overrides: dict[str, Any],
) -> dict[str, Any]:
    from specroute.config import load_options_file

    raw: dict[str, Any] = load_options_file(config) if config else {}
    raw["api"] = api
    raw.update({key: value for key, value in overrides.items() if value is not None})
    return raw


def _compile(raw: dict[str, Any]):  # noqa: ANN202
    """Validate *raw* options and compile them; exit with the error's code on failure."""
    from specroute.config import validate_options
    from specroute.plugin import compile_api

    cwd = Path.cwd()
    try:
        options = validate_options(raw, caller_dir=cwd)
        return asyncio.run(compile_api(options, caller_dir=cwd))
    except SpecrouteError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _handler_name(handler: Any) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)


def _validated(route: RouteDescriptor) -> str:
    validation = route.options.validation
    if validation is None:
        return "-"
    parts = [
        name
        for name in ("params", "query", "headers", "payload")
        if getattr(validation, name) is not None
    ]
    return ",".join(parts) or "-"


def _auth(route: RouteDescriptor) -> str:
    auth = route.options.auth
    if isinstance(auth, AuthRequirement):
        scope = ",".join(auth.scope) if auth.scope else "any"
        return f"{'|'.join(auth.strategies)} ({scope})"
    if auth is None:
        return "-"
    return str(auth)


def routes_command(
    api: str = typer.Argument(..., help="OpenAPI document: file path or URL."),
    handlers: Optional[Path] = typer.Option(
        None, "--handlers", "-H", help="Handler directory."
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", envvar="SPECROUTE_CONFIG", help="Options file (JSON or YAML)."
    ),
    vhost: Optional[str] = typer.Option(None, "--vhost", help="Virtual host for every route."),
    output_validation: bool = typer.Option(
        False, "--output-validation", help="Attach response schemas."
    ),
) -> None:
    """Compile a document and print its route table.

    Example::

        specroute routes openapi.yaml --handlers routes/
        specroute --json routes openapi.yaml
    """
    raw = _build_options(
        api,
        config,
        {
            "handlers": str(handlers) if handlers else None,
            "vhost": vhost,
            "outputvalidation": output_validation or None,
        },
    )
    compiled = _compile(raw)

    headers = ["Method", "Path", "Handler", "Pre", "Validates", "Auth", "Id"]
    rows: list[list[str]] = []
    for route in [compiled.docs_route, *compiled.routes]:
        rows.append([
            route.method.value.upper(),
            route.path,
            _handler_name(route.handler),
            ",".join(step.assign for step in route.pre) or "-",
            _validated(route),
            _auth(route),
            route.options.id or "-",
        ])

    get_output().print_table(
        headers, rows, title=f"{compiled.document.title} -- Routes ({len(rows)})"
    )


def docs_command(
    api: str = typer.Argument(..., help="OpenAPI document: file path or URL."),
    keep_extensions: bool = typer.Option(
        False, "--keep-extensions", help="Serve x-* vendor extensions too."
    ),
) -> None:
    """Print the document as the documentation route would serve it."""
    raw = {"api": api, "handlers": {}, "docs": {"strip_extensions": not keep_extensions}}
    compiled = _compile(raw)
    info(f"GET {compiled.docs_route.path}")
    get_output().print_document(compiled.docs_route.handler())


def check_command(
    api: str = typer.Argument(..., help="OpenAPI document: file path or URL."),
) -> None:
    """Validate a document and its security references.

    Every operation is compiled against a catch-all handler, so undefined
    security schemes and invalid route options are reported even when no
    handlers exist yet.
    """
    from specroute.handlers.tree import HandlerTree, route_keys
    from specroute.parser.document import load_document
    from specroute.routes.compiler import compile_routes

    try:
        document = load_document(api)
        tree = HandlerTree()
        for operation in document.operations():
            tree.insert(route_keys(operation.path, operation.method), _placeholder)
        routes = compile_routes(document, tree)
    except SpecrouteError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    success(
        f"{document.title} (OpenAPI {document.version}): "
        f"{len(routes)} operation(s), {len(document.security_schemes)} security scheme(s)"
    )


def _placeholder(*args: Any, **kwargs: Any) -> None:
    """Stand-in handler used by ``check``."""
