"""``modelmux validate`` - check a gateway YAML file."""

from __future__ import annotations

import sys

import click

from modelmux.cli_commands._output import console


@click.command()
@click.argument("config", type=click.Path(exists=True))
def validate(config: str) -> None:
    """Validate the gateway configuration in CONFIG."""
    from modelmux.core.backends.registry import strategy_class
    from modelmux.core.errors import ConfigurationError
    from modelmux.sdk.loader import GatewayLoader

    try:
        settings = GatewayLoader(config).load()
        for provider in settings.providers:
            strategy_class(provider.kind)
    except ConfigurationError as exc:
        console.print(f"[red]Validation error:[/red] {exc}")
        sys.exit(1)

    console.print("[green]Configuration validated successfully.[/green]")
    console.print(f"  Providers: {', '.join(p.key for p in settings.providers) or '-'}")
    console.print(f"  Models: {len(settings.models)}")
    if settings.cache.path:
        state = "persisted" if settings.cache.persist else "memory-only"
        console.print(f"  Cache: {settings.cache.path} ({state})")
