"""Typer application and CLI entry point for specroute.

The root application registers the built-in commands (``routes``, ``docs``,
``check``) and initialises output and logging from the global flags in
:func:`main_callback`.

:func:`main` is the console-script entry point declared in
``pyproject.toml``. :class:`~specroute.exceptions.SpecrouteError` exits
with the error's ``exit_code``; any other exception exits with the generic
failure code.
"""

from __future__ import annotations

import logging
import signal
import sys
from typing import Any

import typer

from specroute import __version__
from specroute.commands.routes import check_command, docs_command, routes_command
from specroute.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="specroute",
    help="Compile OpenAPI 2.0/3.x documents into route tables.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("routes")(routes_command)
app.command("docs")(docs_command)
app.command("check")(check_command)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"specroute {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Root callback executed before every command.

    Installs the global :class:`~specroute.output.OutputManager` and
    configures :mod:`logging` on stderr (``DEBUG`` with ``--verbose``,
    ``WARNING`` otherwise).
    """
    from specroute.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet))

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``specroute`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except Exception as exc:
        from specroute.exceptions import SpecrouteError
        from specroute.output import error

        error(str(exc))
        if isinstance(exc, SpecrouteError):
            sys.exit(exc.exit_code)
        sys.exit(EXIT_GENERIC_FAILURE)
