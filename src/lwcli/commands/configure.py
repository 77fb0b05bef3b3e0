"""Configure command -- create or overwrite a Lacework profile.

Implements the ``lwcli configure`` top-level command, the entry point for
first-time setup. Values can come from flags; anything missing is prompted
for unless the CLI runs non-interactively. The secret is stored as given,
so prefer a credential source such as ``env:LW_API_SECRET`` or
``file:~/.lacework/secret`` over the literal key.
"""

from __future__ import annotations

from typing import Optional

import typer

from lwcli.output import error, info, success, suggest


def configure_command(
    ctx: typer.Context,
    name: Optional[str] = typer.Option(
        None, "--name", "-n", help="Profile name (defaults to the active profile)."
    ),
    account: Optional[str] = typer.Option(
        None, "--account", "-a", help="Account name, e.g. 'mycompany'."
    ),
    subaccount: Optional[str] = typer.Option(
        None, "--subaccount", help="Sub-account name inside an organization."
    ),
    api_key: Optional[str] = typer.Option(None, "--api-key", "-k", help="Access key ID."),
    api_secret: Optional[str] = typer.Option(
        None,
        "--api-secret",
        "-s",
        help="Secret key or source (env:VAR, file:/path, prompt).",
    ),
) -> None:
    """Create or overwrite a profile.

    Raises:
        typer.Exit: With code 2 when a required value is missing in
            non-interactive mode.

    Example::

        lwcli configure --account mycompany --api-key KEY --api-secret env:LW_API_SECRET
        lwcli configure --name prod
    """
    from lwcli.config import load_global_config, profile_exists, save_profile
    from lwcli.models import Profile

    obj = ctx.obj or {}
    noninteractive = obj.get("noninteractive", False)
    profile_name = name or obj.get("profile") or load_global_config().default_profile

    values = {"account": account, "api_key": api_key, "api_secret": api_secret}
    prompts = {
        "account": "Account",
        "api_key": "Access Key ID",
        "api_secret": "Secret Access Key (or env:VAR / file:/path)",
    }
    for field, label in prompts.items():
        if values[field]:
            continue
        if noninteractive:
            error(f"Missing --{field.replace('_', '-')} in non-interactive mode")
            raise typer.Exit(code=2)
        values[field] = typer.prompt(label, hide_input=(field == "api_secret"))

    if profile_exists(profile_name):
        info(f'Profile "{profile_name}" already exists and will be overwritten.')

    profile = Profile(
        name=profile_name,
        account=values["account"],
        subaccount=subaccount,
        api_key=values["api_key"],
        api_secret=values["api_secret"],
    )
    save_profile(profile)

    success(f'Profile "{profile_name}" saved.')
    suggest(f"List integrations: lwcli --profile {profile_name} integration list")
