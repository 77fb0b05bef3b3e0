"""LQL commands -- explore the Lacework Query Language."""

from __future__ import annotations

import typer

from lwcli.output import OutputFormat, format_response, get_output, info, print_table, progress

lql_app = typer.Typer(no_args_is_help=True)

SOURCES_HEADERS = ["Data Source"]


def _client(ctx: typer.Context):
    from lwcli.client import LaceworkClient
    from lwcli.config import resolve_config

    _, profile = resolve_config(cli_profile=(ctx.obj or {}).get("profile"))
    return LaceworkClient(profile)


def lql_list_sources(ctx: typer.Context) -> None:
    """List the data sources LQL queries can read from.

    Example::

        lwcli lql list-sources
        lwcli --json lql sources
    """
    with _client(ctx) as client:
        progress("Fetching LQL data sources...")
        sources = client.data_sources()

    if get_output().format == OutputFormat.JSON:
        format_response(sources)
    elif not sources:
        info("There were no data sources found.")
    else:
        print_table(SOURCES_HEADERS, [[source] for source in sources], title="LQL Data Sources")


lql_app.command("list-sources")(lql_list_sources)
lql_app.command("sources", hidden=True)(lql_list_sources)
