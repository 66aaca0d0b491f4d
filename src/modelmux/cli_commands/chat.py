"""``modelmux chat`` - send one prompt and stream the reply."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any

import click
import yaml
from pydantic import ValidationError
from rich.markup import escape

from modelmux.cli_commands._output import console, print_usage
from modelmux.core.errors import ModelMuxError
from modelmux.core.interface.models import (
    HostMessage,
    HostPart,
    TextPart,
    ThinkingPart,
    ToolCallPart,
    ToolDefinition,
)


class ConsoleProgress:
    """Progress sink that streams parts to the rich console."""

    def __init__(self, *, show_thinking: bool = False) -> None:
        self.show_thinking = show_thinking

    def report(self, part: HostPart) -> None:
        if isinstance(part, TextPart):
            console.print(part.value, end="", markup=False, highlight=False)
        elif isinstance(part, ThinkingPart):
            if part.is_error_marker:
                console.print(f"\n[yellow]{escape(part.text)}[/yellow]")
            elif self.show_thinking:
                console.print(part.text, end="", style="dim", markup=False, highlight=False)
        elif isinstance(part, ToolCallPart):
            console.print(f"\n[magenta]tool call[/magenta] {escape(part.name)} {escape(str(part.input))}", highlight=False)


def _load_tools(path: str | None) -> list[ToolDefinition]:
    if path is None:
        return []
    try:
        data: Any = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, list):
            raise click.BadParameter("tool file must contain a list of tool definitions", param_hint="--tools")
        return [ToolDefinition.model_validate(item) for item in data]
    except (yaml.YAMLError, ValidationError) as exc:
        raise click.BadParameter(str(exc), param_hint="--tools") from exc


@click.command()
@click.argument("config", type=click.Path(exists=True))
@click.argument("model")
@click.argument("prompt")
@click.option("--system", "-s", default=None, help="System prompt.")
@click.option("--tools", "tools_file", type=click.Path(exists=True), default=None, help="YAML/JSON list of tools.")
@click.option("--show-thinking", is_flag=True, help="Stream reasoning as well as text.")
def chat(
    config: str,
    model: str,
    prompt: str,
    system: str | None,
    tools_file: str | None,
    show_thinking: bool,
) -> None:
    """Send PROMPT to MODEL using the gateway defined in CONFIG."""
    from modelmux.sdk.gateway import Gateway

    try:
        gateway = Gateway.from_yaml(config)
        tools = _load_tools(tools_file)
    except ModelMuxError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(1)

    messages: list[HostMessage] = []
    if system:
        messages.append(HostMessage.system(system))
    messages.append(HostMessage.user(prompt))
    sink = ConsoleProgress(show_thinking=show_thinking)

    async def _chat() -> Any:
        async with gateway:
            return await gateway.provide_chat_response(model, messages, tools or None, progress=sink)

    try:
        response = asyncio.run(_chat())
    except ModelMuxError as exc:
        console.print(f"\n[red]Error:[/red] {exc}")
        sys.exit(1)

    console.print()
    print_usage(response)
