"""Gateway configuration loading."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from modelmux.sdk.errors import GatewayConfigError
from modelmux.sdk.models import GatewaySettings


class GatewayLoader:
    """Load and validate a gateway YAML file into :class:`GatewaySettings`."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def load(self) -> GatewaySettings:
        """Read YAML, interpolate env vars, and validate.

        Environment variables in the form ``${VAR}`` or ``$VAR`` are expanded
        using :func:`os.path.expandvars` before YAML parsing, so API keys can
        stay out of the file.

        Raises:
            GatewayConfigError: On read errors, YAML parse errors or schema
                validation failures.
        """
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise GatewayConfigError(f"Cannot read {self._path}: {exc}") from exc

        expanded = os.path.expandvars(raw)

        try:
            data: Any = yaml.safe_load(expanded)
        except yaml.YAMLError as exc:
            raise GatewayConfigError(f"YAML parse error: {exc}") from exc

        if not isinstance(data, dict):
            raise GatewayConfigError("Gateway YAML must be a mapping")

        try:
            return GatewaySettings.model_validate(data)
        except ValidationError as exc:
            raise GatewayConfigError(str(exc)) from exc
