"""Expose the provider-agnostic message and streaming update model."""

from .models import (
    Role,
    BaseMessage,
    TextMessage,
    ImageMessage,
    MultiModalMessage,
    ToolCall,
    ToolCallMessage,
    ToolCallResultMessage,
    AggregateMessage,
    LegacyMessage,
    Envelope,
    Message,
    MESSAGE_VARIANTS,
    parse_message,
    variant_of,
    variant_dispatch,
)
from .streaming import (
    StreamingUpdate,
    TextUpdate,
    ToolCallFragment,
    ToolCallUpdate,
    ToolCallMessageUpdate,
    StreamingFragment,
)
from .utils import get_content, get_tool_calls, format_message

__all__ = [
    "Role",
    "BaseMessage",
    "TextMessage",
    "ImageMessage",
    "MultiModalMessage",
    "ToolCall",
    "ToolCallMessage",
    "ToolCallResultMessage",
    "AggregateMessage",
    "LegacyMessage",
    "Envelope",
    "Message",
    "MESSAGE_VARIANTS",
    "parse_message",
    "variant_of",
    "variant_dispatch",
    "StreamingUpdate",
    "TextUpdate",
    "ToolCallFragment",
    "ToolCallUpdate",
    "ToolCallMessageUpdate",
    "StreamingFragment",
    "get_content",
    "get_tool_calls",
    "format_message",
]
