"""Integration commands -- list and inspect external integrations.

Thin wrappers around :class:`~lwcli.client.LaceworkClient`; all rendering
goes through :func:`~lwcli.output.print_table`, so ``--json``, ``--plain``
and ``--csv`` apply.
"""

from __future__ import annotations

import json

import typer

from lwcli.models import Integration
from lwcli.output import print_table, progress

integration_app = typer.Typer(no_args_is_help=True)

LIST_HEADERS = ["INTEGRATION GUID", "NAME", "TYPE", "STATUS", "STATE"]


def integration_rows(integrations: list[Integration]) -> list[list[str]]:
    """One table row per integration, sorted by name then GUID."""
    ordered = sorted(integrations, key=lambda i: (i.name, i.intg_guid))
    return [[i.intg_guid, i.name, i.type, i.status, i.state_string] for i in ordered]


def integration_details(integration: Integration) -> list[list[str]]:
    """Key/value rows describing a single integration, settings included."""
    rows = [
        ["INTEGRATION GUID", integration.intg_guid],
        ["NAME", integration.name],
        ["TYPE", integration.type],
        ["STATUS", integration.status],
        ["STATE", integration.state_string],
    ]
    if integration.type_name:
        rows.append(["TYPE NAME", integration.type_name])
    if integration.created_or_updated_by:
        rows.append(["UPDATED BY", integration.created_or_updated_by])
    if integration.created_or_updated_time:
        rows.append(["UPDATED AT", integration.created_or_updated_time])
    for key in sorted(integration.data):
        value = integration.data[key]
        if not isinstance(value, str):
            value = json.dumps(value, sort_keys=True)
        rows.append([key.upper(), value])
    return rows


def _client(ctx: typer.Context):
    from lwcli.client import LaceworkClient
    from lwcli.config import resolve_config

    _, profile = resolve_config(cli_profile=(ctx.obj or {}).get("profile"))
    return LaceworkClient(profile)


@integration_app.command("list")
def integration_list(ctx: typer.Context) -> None:
    """List all integrations of the account.

    Example::

        lwcli integration list
        lwcli --csv integration list
    """
    with _client(ctx) as client:
        progress("Fetching integrations...")
        integrations = client.list_integrations()
    print_table(LIST_HEADERS, integration_rows(integrations), title="Integrations")


@integration_app.command("show")
def integration_show(
    ctx: typer.Context,
    guid: str = typer.Argument(help="Integration GUID."),
    raw: bool = typer.Option(False, "--raw", help="Print the API response as returned."),
) -> None:
    """Show the details of one integration.

    Example::

        lwcli integration show TECHALLY_0123456789ABCDEF
        lwcli integration show TECHALLY_0123456789ABCDEF --raw
    """
    from lwcli.client.response import format_api_response
    from lwcli.client.sync_client import INTEGRATIONS_PATH

    with _client(ctx) as client:
        if raw:
            format_api_response(client.request("GET", f"{INTEGRATIONS_PATH}/{guid}"))
            return
        progress(f"Fetching integration {guid}...")
        integration = client.get_integration(guid)
    print_table(["FIELD", "VALUE"], integration_details(integration), title=integration.name)
