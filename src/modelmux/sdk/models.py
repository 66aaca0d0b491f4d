"""Pydantic models for the gateway YAML consumed by ``modelmux`` commands."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from modelmux.core.audit.log import DEFAULT_MAX_ENTRIES
from modelmux.core.interface.config import ModelConfig, ProviderConfig, RetryConfig


class TelemetrySettings(BaseModel):
    """Optional telemetry configuration."""

    enabled: bool = False
    otlp_endpoint: str | None = None


class CacheSettings(BaseModel):
    """Metadata cache persistence. Without ``path`` the caches are memory-only."""

    path: str | None = None
    persist: bool = True


class AuditSettings(BaseModel):
    max_entries: int = Field(default=DEFAULT_MAX_ENTRIES, ge=1)


class GatewaySettings(BaseModel):
    """Top-level gateway configuration parsed from YAML."""

    version: str = "1"
    providers: list[ProviderConfig] = Field(default_factory=lambda: list[ProviderConfig]())
    models: list[ModelConfig] = Field(default_factory=lambda: list[ModelConfig]())
    retry: RetryConfig = Field(default_factory=RetryConfig)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    audit: AuditSettings = Field(default_factory=AuditSettings)
    telemetry: TelemetrySettings | None = None

    @model_validator(mode="after")
    def _validate_references(self) -> GatewaySettings:
        keys: set[str] = set()
        for provider in self.providers:
            if provider.key in keys:
                msg = f"duplicate provider key '{provider.key}'"
                raise ValueError(msg)
            keys.add(provider.key)

        host_ids: set[str] = set()
        for model in self.models:
            if model.provider not in keys:
                msg = f"model '{model.id}' references unknown provider '{model.provider}'"
                raise ValueError(msg)
            if model.host_id in host_ids:
                msg = f"duplicate model '{model.host_id}'"
                raise ValueError(msg)
            host_ids.add(model.host_id)

        return self

    def provider(self, key: str) -> ProviderConfig | None:
        key = key.lower()
        return next((p for p in self.providers if p.key == key), None)
