"""Streaming orchestrator: drives one exchange through setup, execute and finalize.

The orchestrator owns the exchange lifecycle; everything backend-specific
is delegated to the strategy's hooks. Streaming parts are forwarded to the
host progress sink in the order they arrive, then recorded in the response
accumulator.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable
from typing import TYPE_CHECKING, Any, TypeVar

from modelmux.core.audit.models import LoggedRequest, LoggedResponse
from modelmux.core.errors import BackendError, ExchangeCancelled
from modelmux.core.interface.models import (
    ReasoningDelta,
    TextPart,
    ThinkingPart,
    ToolCallEvent,
    ToolCallPart,
)
from modelmux.core.streaming.context import ExchangeState, RequestContext
from modelmux.core.streaming.wire import (
    StreamAdapter,
    build_completion_kwargs,
    open_stream,
    render_messages,
    render_tools,
)
from modelmux.core.translation.translator import to_host
from modelmux.utils.telemetry import (
    ATTR_DURATION_MS,
    ATTR_INTERACTION_ID,
    ATTR_MESSAGE_COUNT,
    ATTR_MODEL,
    ATTR_PART_COUNT,
    ATTR_PROVIDER,
    ATTR_PROVIDER_KIND,
    ATTR_TOOL_COUNT,
    get_tracer,
    set_usage_attributes,
)

if TYPE_CHECKING:
    from modelmux.core.audit.log import AuditLog
    from modelmux.core.backends.strategy import BackendStrategy
    from modelmux.core.interface.config import ModelConfig, ProviderConfig
    from modelmux.core.interface.host import CancellationToken, ProgressSink, StatusDisplay
    from modelmux.core.interface.models import HostMessage, StreamingPart, ToolDefinition

logger = logging.getLogger(__name__)

_tracer = get_tracer(__name__)

T = TypeVar("T")


async def _until_cancelled(awaitable: Awaitable[T], token: CancellationToken | None) -> T:
    """Await *awaitable*, giving up as soon as the host cancels.

    Raises:
        ExchangeCancelled: The token fired first. A result or error the
            awaitable produced at the same time is discarded.
    """
    if token is None:
        return await awaitable
    task = asyncio.ensure_future(awaitable)
    if not token.is_cancellation_requested:
        waiter = asyncio.ensure_future(token.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
    if not token.is_cancellation_requested:
        return task.result()

    if task.done():
        if not task.cancelled():
            task.exception()
    else:
        task.cancel()
        await asyncio.wait({task})
    raise ExchangeCancelled("Cancelled while waiting for the backend")


async def _close_stream(stream: AsyncIterator[Any] | None) -> None:
    aclose = getattr(stream, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except Exception as exc:
        logger.warning("Failed to close backend stream: %s", exc)


class StreamingOrchestrator:
    """Runs exchanges against one backend strategy.

    Usage::

        orchestrator = StreamingOrchestrator(strategy, audit=audit)
        response = await orchestrator.run(model, provider, messages, tools,
                                           api_key=key, progress=sink)
    """

    def __init__(
        self,
        strategy: BackendStrategy,
        *,
        audit: AuditLog,
        status: StatusDisplay | None = None,
    ) -> None:
        self.strategy = strategy
        self.audit = audit
        self.status = status

    async def run(
        self,
        model: ModelConfig,
        provider: ProviderConfig,
        messages: list[HostMessage],
        tools: list[ToolDefinition] | None = None,
        *,
        api_key: str | None = None,
        progress: ProgressSink,
        token: CancellationToken | None = None,
    ) -> LoggedResponse:
        """Run one full exchange and return the accumulated response."""
        ctx = self.setup(model, provider, messages, tools, api_key=api_key)
        await self.execute(ctx, progress, token)
        return self.finalize(ctx)

    # -- setup -----------------------------------------------------------------

    def setup(
        self,
        model: ModelConfig,
        provider: ProviderConfig,
        messages: list[HostMessage],
        tools: list[ToolDefinition] | None = None,
        *,
        api_key: str | None = None,
    ) -> RequestContext:
        """Translate the request and open an audit interaction.

        Raises :class:`~modelmux.core.errors.ConfigurationError` or
        :class:`~modelmux.core.errors.ToolValidationError` before anything
        is sent to the backend.
        """
        ctx = RequestContext(
            model=model,
            provider=provider,
            host_messages=list(messages),
            host_tools=list(tools or []),
            api_key=api_key,
        )
        ctx.state = ExchangeState.SETTING_UP

        with _tracer.start_as_current_span("exchange.setup") as span:
            span.set_attribute(ATTR_MODEL, model.host_id)
            span.set_attribute(ATTR_PROVIDER, provider.key)
            span.set_attribute(ATTR_PROVIDER_KIND, provider.kind)

            ctx.handle = self.strategy.resolve_handle(ctx)
            ctx.messages = self.strategy.convert_messages(ctx)
            ctx.tools = self.strategy.convert_tools(ctx)
            ctx.provider_options = self.strategy.get_provider_options(ctx)

            ctx.interaction_id = self.audit.record_request(
                LoggedRequest(
                    messages=ctx.host_messages,
                    tools=ctx.host_tools,
                    model=model,
                    provider_messages=ctx.messages,
                    provider_tools=ctx.tools,
                )
            )
            span.set_attribute(ATTR_INTERACTION_ID, ctx.interaction_id)
            span.set_attribute(ATTR_MESSAGE_COUNT, len(ctx.messages))
            span.set_attribute(ATTR_TOOL_COUNT, len(ctx.tools or {}))

        logger.debug(
            "Exchange %s set up: model=%s messages=%d tools=%d",
            ctx.interaction_id,
            ctx.handle.model,
            len(ctx.messages),
            len(ctx.tools or {}),
        )
        return ctx

    # -- execute ---------------------------------------------------------------

    def _completion_kwargs(self, ctx: RequestContext) -> dict[str, Any]:
        assert ctx.handle is not None
        return build_completion_kwargs(
            ctx.handle,
            render_messages(ctx.messages, ctx.handle.dialect),
            render_tools(ctx.tools),
            temperature=ctx.model.temperature,
            top_p=ctx.model.top_p,
            max_tokens=ctx.model.max_tokens,
            provider_options=ctx.provider_options,
        )

    async def execute(
        self,
        ctx: RequestContext,
        progress: ProgressSink,
        token: CancellationToken | None = None,
    ) -> None:
        """Stream the backend response, dispatching each part as it arrives.

        Opening the stream and every chunk wait race the cancellation token.
        A backend error stops the loop and is re-raised as
        :class:`~modelmux.core.errors.BackendError`, unless the host had
        already cancelled. Errors raised by the progress sink or strategy
        hooks propagate unchanged.
        """
        ctx.state = ExchangeState.STREAMING
        adapter = StreamAdapter()
        error: Exception | None = None
        cancelled = False
        dispatched = 0
        stream: AsyncIterator[Any] | None = None

        with _tracer.start_as_current_span("exchange.execute") as span:
            span.set_attribute(ATTR_INTERACTION_ID, ctx.interaction_id)
            try:
                while True:
                    try:
                        if stream is None:
                            stream = aiter(await _until_cancelled(open_stream(**self._completion_kwargs(ctx)), token))
                            continue
                        chunk = await _until_cancelled(anext(stream), token)
                        parts = list(adapter.feed(chunk))
                    except StopAsyncIteration:
                        break
                    except ExchangeCancelled:
                        cancelled = True
                        break
                    except Exception as exc:
                        error = exc
                        break
                    for part in parts:
                        dispatched += self._dispatch(ctx, part, progress)
            except BaseException:
                ctx.state = ExchangeState.FAILED
                await _close_stream(stream)
                raise

            if error is not None and token is not None and token.is_cancellation_requested:
                logger.debug("Exchange %s: ignoring backend error after cancel: %s", ctx.interaction_id, error)
                cancelled = True

            if error is None and not cancelled:
                for part in adapter.flush():
                    dispatched += self._dispatch(ctx, part, progress)
                ctx.response_id = adapter.response_id
                ctx.raw_usage = adapter.usage
            span.set_attribute(ATTR_PART_COUNT, dispatched)

        if cancelled:
            ctx.state = ExchangeState.CANCELLED
            await _close_stream(stream)
            logger.info("Exchange %s cancelled after %d part(s)", ctx.interaction_id, dispatched)
            raise ExchangeCancelled(f"Exchange {ctx.interaction_id} cancelled")

        if error is not None:
            ctx.state = ExchangeState.FAILED
            await _close_stream(stream)
            logger.warning("Exchange %s failed while streaming: %s", ctx.interaction_id, error)
            raise BackendError(ctx.provider.key, str(error)) from error

    def _dispatch(self, ctx: RequestContext, part: StreamingPart, progress: ProgressSink) -> int:
        host_part = to_host(part)
        if host_part is None:
            return 0

        if isinstance(part, ToolCallEvent):
            self.strategy.process_tool_call_metadata(ctx, part)
        elif isinstance(part, ReasoningDelta):
            self.strategy.process_reasoning_delta(ctx, part)

        progress.report(host_part)

        if isinstance(host_part, TextPart):
            ctx.response.text_parts.append(host_part)
        elif isinstance(host_part, ThinkingPart):
            ctx.response.thinking_parts.append(host_part)
        elif isinstance(host_part, ToolCallPart):
            ctx.response.tool_call_parts.append(host_part)
        return 1

    # -- finalize --------------------------------------------------------------

    def finalize(self, ctx: RequestContext) -> LoggedResponse:
        """Collect usage and metrics, update status and commit the audit entry."""
        ctx.state = ExchangeState.FINALIZING

        with _tracer.start_as_current_span("exchange.finalize") as span:
            span.set_attribute(ATTR_INTERACTION_ID, ctx.interaction_id)

            self.strategy.process_response_metadata(ctx)
            usage = self.strategy.process_result_data(ctx)
            ctx.usage = usage

            duration_ms = ctx.elapsed_ms
            seconds = duration_ms / 1000
            response = ctx.response
            response.usage = usage
            response.duration_ms = duration_ms
            response.tokens_per_second = usage.output_tokens / seconds if seconds > 0 else None
            response.response_id = ctx.response_id

            set_usage_attributes(span, usage)
            span.set_attribute(ATTR_DURATION_MS, duration_ms)

            if self.status is not None:
                self.status.update(usage.input_tokens + usage.output_tokens, ctx.model.context_length)

            self.audit.record_response(response, ctx.interaction_id)

        ctx.state = ExchangeState.DONE
        logger.info(
            "Exchange %s done: %d in / %d out tokens in %.0f ms",
            ctx.interaction_id,
            usage.input_tokens,
            usage.output_tokens,
            duration_ms,
        )
        return response
