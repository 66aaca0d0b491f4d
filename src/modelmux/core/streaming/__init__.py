"""Streaming orchestration: litellm adapter, exchange lifecycle and retries."""

from modelmux.core.streaming.context import ExchangeState, ModelHandle, RequestContext, WireDialect
from modelmux.core.streaming.orchestrator import StreamingOrchestrator
from modelmux.core.streaming.retry import NON_RETRYABLE, RetryEnvelope
from modelmux.core.streaming.wire import (
    StreamAdapter,
    build_completion_kwargs,
    open_stream,
    render_messages,
    render_tools,
)

__all__ = [
    "NON_RETRYABLE",
    "ExchangeState",
    "ModelHandle",
    "RequestContext",
    "RetryEnvelope",
    "StreamAdapter",
    "StreamingOrchestrator",
    "WireDialect",
    "build_completion_kwargs",
    "open_stream",
    "render_messages",
    "render_tools",
]
