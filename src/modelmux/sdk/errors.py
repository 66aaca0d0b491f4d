"""SDK error types."""

from __future__ import annotations

from modelmux.core.errors import ConfigurationError


class GatewayConfigError(ConfigurationError):
    """Raised when a gateway YAML fails parsing or validation."""
