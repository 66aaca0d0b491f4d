"""Anthropic access through an OAuth bearer token.

The OAuth endpoint only accepts requests that identify as the official
CLI, so an identity system message goes first whenever the request has
a system prompt. litellm still sends ``x-api-key`` alongside the bearer
header; the endpoint tolerates it.
"""

from __future__ import annotations

from typing import ClassVar

from modelmux.core.backends.strategy import BackendStrategy
from modelmux.core.interface.provider_models import ProviderMessage, ProviderTool
from modelmux.core.streaming.context import RequestContext, WireDialect  # noqa: TC001
from modelmux.core.translation.transforms import add_cache_control_to_last_tool

IDENTITY_SYSTEM_PROMPT = "You are Claude Code, Anthropic's official CLI for Claude."
OAUTH_BETA = "oauth-2025-04-20"
ANTHROPIC_VERSION = "2023-06-01"


class CCV2Strategy(BackendStrategy):
    kind: ClassVar[str] = "ccv2"
    model_prefix: ClassVar[str] = "anthropic"
    dialect: ClassVar[WireDialect] = "anthropic"
    options_family: ClassVar[str | None] = "anthropic"

    def extra_headers(self, ctx: RequestContext) -> dict[str, str]:
        return {
            "anthropic-beta": OAUTH_BETA,
            "anthropic-version": ANTHROPIC_VERSION,
            "Authorization": f"Bearer {ctx.api_key}",
        }

    def convert_messages(self, ctx: RequestContext) -> list[ProviderMessage]:
        messages = super().convert_messages(ctx)
        system = [m for m in messages if m.role == "system"]
        if not system:
            return messages
        rest = [m for m in messages if m.role != "system"]
        return [ProviderMessage(role="system", content=IDENTITY_SYSTEM_PROMPT), *system, *rest]

    def convert_tools(self, ctx: RequestContext) -> dict[str, ProviderTool] | None:
        return add_cache_control_to_last_tool(super().convert_tools(ctx))
