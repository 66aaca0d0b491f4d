"""modelmux SDK - programmatic interface for configuring and running the gateway."""

from modelmux.sdk.errors import GatewayConfigError
from modelmux.sdk.gateway import Gateway
from modelmux.sdk.loader import GatewayLoader
from modelmux.sdk.models import AuditSettings, CacheSettings, GatewaySettings, TelemetrySettings

__all__ = [
    "AuditSettings",
    "CacheSettings",
    "Gateway",
    "GatewayConfigError",
    "GatewayLoader",
    "GatewaySettings",
    "TelemetrySettings",
]
