"""OpenTelemetry tracing helpers for modelmux.

Thin wrapper around the OpenTelemetry API. Without a configured SDK the
API hands back no-op tracers, so instrumentation costs nothing unless
explicitly enabled.

Usage::

    from modelmux.utils.telemetry import get_tracer

    _tracer = get_tracer(__name__)

    with _tracer.start_as_current_span("exchange.execute") as span:
        span.set_attribute(ATTR_MODEL, "gpt-4o")

To export spans, call :func:`configure_telemetry` once at startup
(requires the ``otel`` extra: ``pip install modelmux[otel]``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from opentelemetry import trace

if TYPE_CHECKING:
    from modelmux.core.interface.models import TokenUsage

# ---------------------------------------------------------------------------
# Semantic attribute keys used throughout modelmux instrumentation
# ---------------------------------------------------------------------------

ATTR_MODEL = "modelmux.model"
ATTR_PROVIDER = "modelmux.provider"
ATTR_PROVIDER_KIND = "modelmux.provider.kind"
ATTR_INTERACTION_ID = "modelmux.interaction.id"
ATTR_MESSAGE_COUNT = "modelmux.messages"
ATTR_TOOL_COUNT = "modelmux.tools"
ATTR_PART_COUNT = "modelmux.parts"
ATTR_TOKENS_PROMPT = "modelmux.tokens.prompt"
ATTR_TOKENS_COMPLETION = "modelmux.tokens.completion"
ATTR_TOKENS_CACHED = "modelmux.tokens.cached"
ATTR_TOKENS_TOTAL = "modelmux.tokens.total"
ATTR_DURATION_MS = "modelmux.duration_ms"
ATTR_RETRY_ATTEMPT = "modelmux.retry.attempt"
ATTR_RETRY_MAX_ATTEMPTS = "modelmux.retry.max_attempts"

_INSTRUMENTATION_NAME = "modelmux"


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Return a :class:`~opentelemetry.trace.Tracer` for *name*.

    If the OpenTelemetry SDK has not been configured the returned tracer
    is a no-op.
    """
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def configure_telemetry(
    *,
    service_name: str = "modelmux",
    export_to_console: bool = True,
    otlp_endpoint: str | None = None,
) -> None:
    """Configure OpenTelemetry tracing (requires ``modelmux[otel]``).

    Parameters
    ----------
    service_name:
        The ``service.name`` resource attribute.
    export_to_console:
        If ``True``, export spans as JSON to stdout.
    otlp_endpoint:
        If set, export spans via OTLP/gRPC to this endpoint.

    Raises
    ------
    ImportError
        If the ``opentelemetry-sdk`` package is not installed.
    """
    try:
        from opentelemetry.sdk.resources import Resource  # pyright: ignore[reportMissingImports,reportUnknownVariableType]
        from opentelemetry.sdk.trace import TracerProvider  # pyright: ignore[reportMissingImports,reportUnknownVariableType]
        from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor  # pyright: ignore[reportMissingImports,reportUnknownVariableType]
    except ImportError as exc:
        msg = (
            "opentelemetry-sdk is required for configure_telemetry(). "
            "Install it with: pip install modelmux[otel]"
        )
        raise ImportError(msg) from exc

    resource = Resource.create({"service.name": service_name})  # pyright: ignore[reportUnknownVariableType,reportUnknownMemberType]
    provider = TracerProvider(resource=resource)  # pyright: ignore[reportUnknownVariableType]

    if export_to_console:
        _add_console_exporter(provider, SimpleSpanProcessor)

    if otlp_endpoint:
        _add_otlp_exporter(provider, BatchSpanProcessor, otlp_endpoint)

    trace.set_tracer_provider(provider)  # pyright: ignore[reportUnknownArgumentType]


def _add_console_exporter(provider: Any, processor_cls: Any) -> None:
    from opentelemetry.sdk.trace.export import ConsoleSpanExporter  # pyright: ignore[reportMissingImports,reportUnknownVariableType]

    provider.add_span_processor(processor_cls(ConsoleSpanExporter()))


def _add_otlp_exporter(provider: Any, processor_cls: Any, endpoint: str) -> None:
    try:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter  # pyright: ignore[reportMissingImports,reportUnknownVariableType]
    except ImportError as exc:
        msg = (
            "opentelemetry-exporter-otlp is required for OTLP export. "
            "Install it with: pip install modelmux[otel]"
        )
        raise ImportError(msg) from exc

    provider.add_span_processor(processor_cls(OTLPSpanExporter(endpoint=endpoint)))


def set_usage_attributes(span: trace.Span, usage: TokenUsage) -> None:
    """Record normalized token usage on *span*."""
    span.set_attribute(ATTR_TOKENS_PROMPT, usage.input_tokens)
    span.set_attribute(ATTR_TOKENS_COMPLETION, usage.output_tokens)
    span.set_attribute(ATTR_TOKENS_CACHED, usage.cached_input_tokens)
    span.set_attribute(ATTR_TOKENS_TOTAL, usage.total_tokens)
