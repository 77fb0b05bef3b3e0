"""The ``lwcli`` command line.

:data:`app` is the root Typer application. Its callback turns the global
flags into the process-wide :class:`~lwcli.output.OutputManager` and the
``ctx.obj`` settings every subcommand reads. :func:`main` is the console
script: it maps :class:`~lwcli.exceptions.LwcliError` to its exit code and
writes a crash log for anything else.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from lwcli import __version__
from lwcli.exit_codes import EXIT_CANCELLED, EXIT_GENERIC_FAILURE

# GitHub project whose releases `lwcli version` compares against.
PROJECT_NAME = "go-sdk"
ISSUES_URL = f"https://github.com/lacework/{PROJECT_NAME}/issues"

app = typer.Typer(
    name="lwcli",
    help="Lacework command-line tool and Terraform generator.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(f"lwcli {__version__}")
        raise typer.Exit()


def _pick_format(json_output: bool, plain_output: bool, csv_output: bool, saved: Optional[str]):
    from lwcli.output import OutputFormat

    for requested, fmt in (
        (json_output, OutputFormat.JSON),
        (plain_output, OutputFormat.PLAIN),
        (csv_output, OutputFormat.CSV),
    ):
        if requested:
            return fmt
    try:
        return OutputFormat(saved or "auto")
    except ValueError:
        return OutputFormat.AUTO


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", callback=_print_version, is_eager=True, help="Show version and exit."
    ),
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="Profile name to use."),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    csv_output: bool = typer.Option(False, "--csv", help="CSV output for tables."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
    noninteractive: bool = typer.Option(
        False, "--noninteractive", help="Never prompt; use flags and defaults only."
    ),
) -> None:
    """Lacework command-line tool and Terraform generator.

    Prompting is off when any of ``--noninteractive``, ``LW_NONINTERACTIVE``
    or the global ``noninteractive`` setting says so.
    """
    from lwcli.config import env_flag, load_global_config
    from lwcli.exceptions import ConfigError
    from lwcli.output import OutputManager, set_output, warning

    try:
        global_cfg = load_global_config()
        config_error = None
    except ConfigError as exc:
        # Keep going so `lwcli config reset` can repair a broken file.
        global_cfg = None
        config_error = exc

    saved_format = global_cfg.output.format if global_cfg else None
    fmt = _pick_format(json_output, plain_output, csv_output, saved_format)
    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    if config_error is not None:
        warning(str(config_error))

    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="[debug] %(name)s: %(message)s")

    ctx.ensure_object(dict)
    ctx.obj.update(
        profile=profile,
        verbose=verbose,
        noninteractive=(
            noninteractive
            or env_flag("LW_NONINTERACTIVE")
            or bool(global_cfg and global_cfg.noninteractive)
        ),
        check_updates=global_cfg.check_updates if global_cfg else True,
    )


@app.command("version")
def version_command(ctx: typer.Context) -> None:
    """Show the version and check GitHub for a newer release."""
    from lwcli import updater
    from lwcli.exceptions import LwcliError
    from lwcli.output import debug, info, print_data, suggest

    print_data(f"lwcli v{__version__}")
    if not ctx.obj.get("check_updates", True):
        debug("update check disabled in the global config")
        return

    try:
        version_info = updater.check(PROJECT_NAME, f"v{__version__}")
    except LwcliError as exc:
        debug(f"update check failed: {exc}")
        return

    if version_info.outdated:
        info(f"A newer version is available: {version_info.latest}")
        suggest(f"Download it from https://github.com/lacework/{PROJECT_NAME}/releases")


def _register_commands() -> None:
    from lwcli.commands.config import config_app
    from lwcli.commands.configure import configure_command
    from lwcli.commands.generate import generate_app
    from lwcli.commands.integration import integration_app
    from lwcli.commands.lql import lql_app

    app.command("configure")(configure_command)
    app.add_typer(config_app, name="config", help="Configuration management.")
    app.add_typer(generate_app, name="generate", help="Create IaC code.")
    for alias in ("iac-generate", "iac"):
        app.add_typer(generate_app, name=alias, help="Alias of 'generate'.", hidden=True)
    app.add_typer(integration_app, name="integration", help="Manage integrations.")
    app.add_typer(lql_app, name="lql", help="Lacework Query Language.")


_register_commands()


def _cancel(signum: int, frame: Any) -> None:
    sys.stderr.write("\nCancelled.\n")
    sys.exit(EXIT_CANCELLED)


def _write_crash_log() -> str:
    """Save the traceback being handled and return where it went."""
    from lwcli.config import get_data_dir

    log_path = get_data_dir() / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    log_path.write_text(traceback.format_exc(), encoding="utf-8")
    return str(log_path)


def main() -> None:
    """Console-script entry point. Always ends in :class:`SystemExit`."""
    signal.signal(signal.SIGINT, _cancel)
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        _cancel(signal.SIGINT, None)
    except Exception as exc:
        from lwcli.exceptions import LwcliError
        from lwcli.output import error

        if isinstance(exc, LwcliError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error. Debug log: {_write_crash_log()}")
        error(f"Please report: {ISSUES_URL}")
        sys.exit(EXIT_GENERIC_FAILURE)
