"""Host vocabulary, provider-format messages and configuration."""

from modelmux.core.interface.config import (
    ModelConfig,
    ParsedModelId,
    ProviderConfig,
    ProviderKind,
    RetryConfig,
    parse_model_id,
)
from modelmux.core.interface.host import (
    CancellationToken,
    CollectingProgress,
    InMemorySecretStore,
    LoggingNotifier,
    Notifier,
    NullStatusDisplay,
    ProgressSink,
    SecretStore,
    StatusDisplay,
    api_key_secret_name,
)
from modelmux.core.interface.models import (
    ERROR_MARKER_PREFIX,
    DataPart,
    HostMessage,
    HostPart,
    ReasoningDelta,
    StreamingPart,
    TextDelta,
    TextPart,
    ThinkingPart,
    TokenUsage,
    ToolCallEvent,
    ToolCallPart,
    ToolDefinition,
    ToolResultPart,
    UnknownPart,
)
from modelmux.core.interface.provider_models import (
    ProviderImagePart,
    ProviderMessage,
    ProviderOptions,
    ProviderPart,
    ProviderReasoningPart,
    ProviderTextPart,
    ProviderTool,
    ProviderToolCallPart,
)

__all__ = [
    "ERROR_MARKER_PREFIX",
    "CancellationToken",
    "CollectingProgress",
    "DataPart",
    "HostMessage",
    "HostPart",
    "InMemorySecretStore",
    "LoggingNotifier",
    "ModelConfig",
    "Notifier",
    "NullStatusDisplay",
    "ParsedModelId",
    "ProgressSink",
    "ProviderConfig",
    "ProviderImagePart",
    "ProviderKind",
    "ProviderMessage",
    "ProviderOptions",
    "ProviderPart",
    "ProviderReasoningPart",
    "ProviderTextPart",
    "ProviderTool",
    "ProviderToolCallPart",
    "ReasoningDelta",
    "RetryConfig",
    "SecretStore",
    "StatusDisplay",
    "StreamingPart",
    "TextDelta",
    "TextPart",
    "ThinkingPart",
    "TokenUsage",
    "ToolCallEvent",
    "ToolCallPart",
    "ToolDefinition",
    "ToolResultPart",
    "UnknownPart",
    "api_key_secret_name",
]
