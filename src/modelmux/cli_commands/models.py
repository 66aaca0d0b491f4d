"""``modelmux models`` - list configured models."""

from __future__ import annotations

import sys

import click

from modelmux.cli_commands._output import console, print_models_table


@click.command()
@click.argument("config", type=click.Path(exists=True))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def models(config: str, as_json: bool) -> None:
    """List the models defined in CONFIG."""
    from modelmux.sdk.errors import GatewayConfigError
    from modelmux.sdk.loader import GatewayLoader

    try:
        settings = GatewayLoader(config).load()
    except GatewayConfigError as exc:
        console.print(f"[red]Validation error:[/red] {exc}")
        sys.exit(1)

    if not settings.models:
        console.print("[yellow]No models configured.[/yellow]")
        return

    print_models_table(settings, as_json=as_json)
