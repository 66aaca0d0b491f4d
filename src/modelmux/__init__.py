"""modelmux - make many model-serving backends look like one chat host."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from modelmux.sdk.gateway import Gateway as Gateway
    from modelmux.sdk.loader import GatewayLoader as GatewayLoader

_SDK_EXPORTS = {
    "Gateway": "modelmux.sdk.gateway",
    "GatewayLoader": "modelmux.sdk.loader",
}


def __getattr__(name: str) -> object:
    module_path = _SDK_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'modelmux' has no attribute {name!r}")
