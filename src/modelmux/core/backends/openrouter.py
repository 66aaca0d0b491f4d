from __future__ import annotations

from typing import ClassVar

from modelmux.core.backends.strategy import BackendStrategy


class OpenRouterStrategy(BackendStrategy):
    kind: ClassVar[str] = "openrouter"
    model_prefix: ClassVar[str] = "openrouter"
    options_family: ClassVar[str | None] = "openrouter"
