"""``lwcli config``: inspect and edit the global settings file.

Profiles are managed by ``lwcli configure``; this group only touches
``config.json`` (default profile, output format, prompting, update checks).
"""

from __future__ import annotations

from typing import Any

import typer
from pydantic import ValidationError

from lwcli.exit_codes import EXIT_INVALID_USAGE
from lwcli.output import error, format_response, info, success

config_app = typer.Typer(no_args_is_help=True)


def _fail(message: str) -> typer.Exit:
    error(message)
    return typer.Exit(code=EXIT_INVALID_USAGE)


def _parent_of(data: dict[str, Any], key: str) -> tuple[dict[str, Any], str]:
    """Walk dotted *key* through *data*; return the innermost dict and the leaf name."""
    *parents, leaf = key.split(".")
    node = data
    for part in parents:
        node = node.get(part)
        if not isinstance(node, dict):
            raise _fail(f"Invalid config key: {key}")
    if leaf not in node or isinstance(node[leaf], dict):
        raise _fail(f"Unknown config key: {key}")
    return node, leaf


def _coerce(key: str, current: Any, value: str) -> Any:
    # bool before int: bool is an int subclass.
    if isinstance(current, bool):
        return value.lower() in ("true", "1", "yes")
    if isinstance(current, int):
        try:
            return int(value)
        except ValueError:
            raise _fail(f"Expected integer for {key}, got: {value}") from None
    return value


@config_app.command("show")
def config_show() -> None:
    """Print the global settings (``--json`` for machine-readable output)."""
    from lwcli.config import get_config_dir, list_profiles, load_global_config

    config = load_global_config()
    info(f"Config directory: {get_config_dir()}")
    profiles = list_profiles()
    if profiles:
        info(f"Profiles: {', '.join(profiles)}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Setting to change, dotted for nested ones (output.format)."),
    value: str = typer.Argument(help="New value."),
) -> None:
    """Change one setting.

    The value is converted to the setting's current type, and the whole file
    is validated before it is written, e.g.::

        lwcli config set default_profile prod
        lwcli config set output.format csv
        lwcli config set noninteractive true
    """
    from lwcli.config import load_global_config, save_global_config
    from lwcli.models import GlobalConfig

    data = load_global_config().model_dump(mode="json")
    parent, leaf = _parent_of(data, key)
    parent[leaf] = _coerce(key, parent[leaf], value)

    try:
        config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise _fail(f"Validation error: {exc}") from None

    save_global_config(config)
    success(f"Set {key} = {parent[leaf]}")


@config_app.command("reset")
def config_reset(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Restore the default settings. Saved profiles are kept."""
    from lwcli.config import save_global_config
    from lwcli.models import GlobalConfig

    noninteractive = bool(ctx.obj and ctx.obj.get("noninteractive"))
    if not (yes or noninteractive or typer.confirm("Reset all config to defaults?")):
        info("Cancelled.")
        raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
