"""``modelmux cache`` - inspect or clear a persisted metadata cache file."""

from __future__ import annotations

import asyncio
import json

import click

from modelmux.cli_commands._output import console, print_cache_table
from modelmux.core.cache.metadata import CacheRegistry
from modelmux.core.cache.storage import JsonFileStorage


async def _open(path: str) -> CacheRegistry:
    registry = CacheRegistry()
    await registry.initialize(JsonFileStorage(path))
    return registry


@click.group()
def cache() -> None:
    """Inspect persisted metadata caches."""


@cache.command("show")
@click.argument("path", type=click.Path(exists=True))
@click.option("--keys", "show_keys", is_flag=True, help="List the keys in each namespace.")
@click.option("--json", "as_json", is_flag=True, help="Output the raw entries as JSON.")
def show(path: str, show_keys: bool, as_json: bool) -> None:
    """Show the namespaces stored in the cache file at PATH."""
    registry = asyncio.run(_open(path))
    snapshot = registry.snapshot()

    if as_json:
        console.print_json(json.dumps(snapshot, default=str))
        return
    if not snapshot:
        console.print("[yellow]No cached metadata.[/yellow]")
        return
    print_cache_table(snapshot, show_keys=show_keys)


@cache.command("clear")
@click.argument("path", type=click.Path(exists=True))
@click.option("--namespace", "-n", default=None, help="Clear only this namespace.")
def clear(path: str, namespace: str | None) -> None:
    """Clear cached metadata in the file at PATH."""

    async def _clear() -> None:
        registry = await _open(path)
        if namespace is None:
            registry.clear_all()
        else:
            registry.clear_cache(namespace)
        await registry.persist_all()

    asyncio.run(_clear())
    console.print(f"[green]Cleared {namespace or 'all namespaces'}.[/green]")
