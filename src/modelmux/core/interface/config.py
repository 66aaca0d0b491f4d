"""Model, provider and retry configuration.

These are the only shapes the core consumes from the configuration
collaborator. Sampling parameters left as ``None`` are omitted from the
backend request so the backend applies its own default.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal
from urllib.parse import urlparse
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

ProviderKind = Literal[
    "openai",
    "openai-compatible",
    "openrouter",
    "anthropic",
    "google",
    "deepseek",
    "zai",
    "ccv2",
    "litellm",
]

DEFAULT_CONTEXT_LENGTH = 128_000
DEFAULT_MAX_OUTPUT_TOKENS = 8_000


class ModelConfig(BaseModel):
    """Per-model identity and sampling parameters.

    ``id`` is the host-facing model id; ``slug`` is the name the backend
    knows the model by and defaults to ``id``.
    """

    id: str
    provider: str
    slug: str | None = None
    config_id: str | None = None
    display_name: str | None = None
    temperature: float | None = None
    top_p: float | None = None
    max_tokens: int | None = None
    retries: int | None = None
    context_length: int = DEFAULT_CONTEXT_LENGTH
    max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS
    properties: dict[str, Any] = Field(default_factory=lambda: dict[str, Any]())
    extra: dict[str, Any] = Field(default_factory=lambda: dict[str, Any]())

    @field_validator("provider")
    @classmethod
    def _lowercase_provider(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def backend_slug(self) -> str:
        return self.slug or self.id

    @property
    def host_id(self) -> str:
        """Canonical host-facing id: ``provider/id[::configId]``."""
        base = f"{self.provider}/{self.id}"
        return f"{base}::{self.config_id}" if self.config_id else base

    @property
    def max_input_tokens(self) -> int:
        return max(1, self.context_length - self.max_output_tokens)


class ProviderConfig(BaseModel):
    """Per-provider identity: endpoint, headers, credentials and options."""

    key: str
    kind: ProviderKind = "openai-compatible"
    display_name: str | None = None
    base_url: str | None = None
    headers: dict[str, str] = Field(default_factory=lambda: dict[str, str]())
    api_key: str | None = None
    options: dict[str, Any] = Field(default_factory=lambda: dict[str, Any]())

    @field_validator("key")
    @classmethod
    def _lowercase_key(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: str | None) -> str | None:
        if value is None or value == "":
            return None
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            msg = f"invalid base URL: {value!r}"
            raise ValueError(msg)
        return value.rstrip("/")

    def resolved_headers(self) -> dict[str, str]:
        """Headers with every ``"RANDOM"`` value replaced by a fresh UUID."""
        return {k: (str(uuid4()) if v == "RANDOM" else v) for k, v in self.headers.items()}


class RetryConfig(BaseModel):
    """Retry envelope policy. ``interval_ms`` of 0 retries immediately."""

    enabled: bool = True
    max_attempts: int = Field(default=3, ge=1)
    interval_ms: int = Field(default=0, ge=0)

    def for_model(self, model: ModelConfig) -> RetryConfig:
        """Apply a model-level ``retries`` override."""
        if model.retries is None:
            return self
        return self.model_copy(update={"max_attempts": max(1, model.retries)})


@dataclass(frozen=True)
class ParsedModelId:
    base_id: str
    provider_hint: str | None = None
    config_id: str | None = None


def parse_model_id(model_id: str) -> ParsedModelId:
    """Split ``provider/base::configId`` into its parts.

    Both the provider prefix and the config suffix are optional, and the
    config id may itself contain ``::``.
    """
    base, _, config_id = model_id.partition("::")
    provider_hint: str | None = None
    if "/" in base:
        provider_hint, base = base.split("/", 1)
        provider_hint = provider_hint.lower()
    return ParsedModelId(base_id=base, provider_hint=provider_hint, config_id=config_id or None)
