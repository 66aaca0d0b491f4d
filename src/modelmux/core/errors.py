"""Shared error types for the bridge core.

Only :class:`ExchangeFailedError` and :class:`ConfigurationError` are meant
to reach the host; everything else is raised inside an exchange and decided
on by the retry envelope.
"""


class ModelMuxError(Exception):
    """Base error for all bridge failures."""


class ConfigurationError(ModelMuxError):
    """Credentials, provider or model identity could not be resolved.

    Raised before any network call and never retried.
    """


class ToolValidationError(ModelMuxError):
    """A tool definition failed name or schema validation."""

    def __init__(self, tool_name: str, detail: str = "") -> None:
        self.tool_name = tool_name
        self.detail = detail
        msg = f"Invalid tool definition: {tool_name!r}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


class PairingError(ModelMuxError):
    """A tool result does not answer exactly one earlier tool call."""

    def __init__(self, call_id: str, detail: str = "") -> None:
        self.call_id = call_id
        self.detail = detail
        super().__init__(f"Tool call/result pairing violated for {call_id!r}" + (f": {detail}" if detail else ""))


class BackendError(ModelMuxError):
    """The backend SDK failed while streaming a response."""

    def __init__(self, provider: str, detail: str = "") -> None:
        self.provider = provider
        self.detail = detail
        super().__init__(f"Backend {provider} failed" + (f": {detail}" if detail else ""))


class ExchangeCancelled(ModelMuxError):
    """The host cancelled the exchange; never retried."""


class ExchangeFailedError(ModelMuxError):
    """Every attempt of an exchange failed."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Request failed after {attempts} attempt(s): {last_error}")
