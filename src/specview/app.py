"""Typer application and CLI entry point for specview.

This module wires together the top-level Typer application and registers the
built-in sub-command groups (``inspect`` and ``config``).  The root callback
turns the global flags into an :class:`~specview.output.OutputManager`, routes
library logging through it, and stores the document location in the Typer
context for the sub-commands.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.  :class:`~specview.exceptions.SpecviewError` escaping a
command exits with that error's code; anything else writes a crash log under
the data directory.

See Also:
    :mod:`specview.config`: Configuration resolution for ``--spec``.
    :mod:`specview.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import sys
import traceback
from datetime import datetime
from typing import Optional

import typer

from specview import __version__
from specview.commands.config import config_app
from specview.commands.inspect import inspect_app
from specview.exceptions import SpecviewError
from specview.exit_codes import EXIT_GENERIC_FAILURE
from specview.output import error


app = typer.Typer(
    name="specview",
    help="Inspect normalized OpenAPI 2.0/3.x documents.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.add_typer(inspect_app, name="inspect", help="Inspect the normalized document.")
app.add_typer(config_app, name="config", help="View and change stored settings.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"specview {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    spec: Optional[str] = typer.Option(
        None, "--spec", "-s", help="URL or file path of the OpenAPI document."
    ),
    spec_format: Optional[str] = typer.Option(
        None, "--format", help="Force 'json' or 'yaml' decoding."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~specview.output.OutputManager`, configures
    logging, and stores ``spec`` and ``format`` in ``ctx.obj`` for the
    sub-commands to resolve against the stored configuration.
    """
    from specview.output import (
        OutputFormat,
        OutputManager,
        configure_logging,
        set_output,
    )

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    configure_logging(output)

    ctx.ensure_object(dict)
    ctx.obj["spec"] = spec
    ctx.obj["format"] = spec_format
    ctx.obj["verbose"] = verbose


def _write_crash_log() -> str:
    """Write the current traceback to the data directory and return its path."""
    from specview.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc(), encoding="utf-8")
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``specview`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except SpecviewError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception:
        error(f"Unexpected error. Crash log written to {_write_crash_log()}")
        sys.exit(EXIT_GENERIC_FAILURE)
