"""Shared CLI output formatters."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.table import Table

from modelmux.core.audit.models import LoggedResponse  # noqa: TC001
from modelmux.sdk.models import GatewaySettings  # noqa: TC001

console = Console()


def print_models_table(settings: GatewaySettings, *, as_json: bool = False) -> None:
    """Pretty-print configured models with their provider kind."""
    kinds = {p.key: p.kind for p in settings.providers}
    if as_json:
        rows = [
            {
                "id": m.host_id,
                "provider": m.provider,
                "kind": kinds.get(m.provider),
                "slug": m.backend_slug,
                "context_length": m.context_length,
            }
            for m in settings.models
        ]
        console.print_json(json.dumps(rows))
        return

    table = Table(title="Configured Models")
    table.add_column("Model", style="cyan")
    table.add_column("Provider")
    table.add_column("Kind")
    table.add_column("Backend slug")
    table.add_column("Context", justify="right")

    for model in settings.models:
        table.add_row(
            model.host_id,
            model.provider,
            kinds.get(model.provider, "?"),
            model.backend_slug,
            str(model.context_length),
        )

    console.print(table)


def print_cache_table(snapshot: dict[str, list[list[Any]]], *, show_keys: bool = False) -> None:
    """Pretty-print cache namespaces and their entry counts."""
    table = Table(title="Metadata Caches")
    table.add_column("Namespace", style="cyan")
    table.add_column("Entries", justify="right")
    if show_keys:
        table.add_column("Keys")

    for name, entries in sorted(snapshot.items()):
        row = [name, str(len(entries))]
        if show_keys:
            row.append(_truncate(", ".join(str(e[0]) for e in entries)))
        table.add_row(*row)

    console.print(table)


def print_usage(response: LoggedResponse) -> None:
    """Print the token usage line after a streamed response."""
    usage = response.usage
    if usage is None:
        return
    line = f"tokens: {usage.input_tokens} in / {usage.output_tokens} out"
    if usage.cached_input_tokens:
        line += f" ({usage.cached_input_tokens} cached)"
    if response.duration_ms is not None:
        line += f" in {response.duration_ms / 1000:.1f}s"
    if response.tokens_per_second:
        line += f", {response.tokens_per_second:.1f} tok/s"
    console.print(f"[dim]{line}[/dim]")


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
