"""Built-in CLI sub-commands for lwcli.

This package groups all Typer sub-command modules that form the CLI's
top-level command tree:

* :mod:`~lwcli.commands.configure` -- create or overwrite a profile.
* :mod:`~lwcli.commands.config` -- view and modify global settings.
* :mod:`~lwcli.commands.generate` -- collect answers and write Terraform
  for an AWS integration.
* :mod:`~lwcli.commands.integration` -- list and inspect integrations.

Each module either exports a :class:`typer.Typer` sub-application (for
multi-command groups like ``config`` and ``generate``) or a plain callback
function registered directly on the root app (for single commands like
``configure``).
"""
