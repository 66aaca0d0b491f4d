"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from modelmux.cli_commands.cache import cache
    from modelmux.cli_commands.chat import chat
    from modelmux.cli_commands.models import models
    from modelmux.cli_commands.validate import validate

    cli.add_command(chat)
    cli.add_command(models)
    cli.add_command(validate)
    cli.add_command(cache)
