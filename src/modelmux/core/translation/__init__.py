"""Content translation between host and provider formats."""

from modelmux.core.translation.normalizer import (
    DEFAULT_STRING_FIELDS,
    normalize_input,
    parse_arguments,
    stringify_result,
)
from modelmux.core.translation.transforms import (
    SystemMode,
    add_cache_control_to_last_system_message,
    add_cache_control_to_last_tool,
    add_cache_control_to_recent_user_messages,
    apply_system_mode,
    drop_system_messages,
    fold_system_messages,
    merge_consecutive_user_messages,
    with_options,
)
from modelmux.core.translation.translator import (
    TOOL_CALL_METADATA,
    TOOL_NAME_PATTERN,
    messages_to_host,
    to_host,
    to_provider,
    tools_to_provider,
    validate_tool,
)

__all__ = [
    "DEFAULT_STRING_FIELDS",
    "TOOL_CALL_METADATA",
    "TOOL_NAME_PATTERN",
    "SystemMode",
    "add_cache_control_to_last_system_message",
    "add_cache_control_to_last_tool",
    "add_cache_control_to_recent_user_messages",
    "apply_system_mode",
    "drop_system_messages",
    "fold_system_messages",
    "merge_consecutive_user_messages",
    "messages_to_host",
    "normalize_input",
    "parse_arguments",
    "stringify_result",
    "to_host",
    "to_provider",
    "tools_to_provider",
    "validate_tool",
    "with_options",
]
