"""Read-only helpers that render messages for callers, logs and termination checks."""

from typing import Any, List, Optional

from .models import (
    AggregateMessage,
    BaseMessage,
    Envelope,
    ImageMessage,
    LegacyMessage,
    MultiModalMessage,
    ToolCall,
    ToolCallMessage,
    ToolCallResultMessage,
    TextMessage,
    variant_dispatch,
)


def _results_content(message: ToolCallResultMessage) -> Optional[str]:
    if not message.calls:
        return None
    return "\n".join(call.result or "" for call in message.calls)


def _envelope_content(message: Envelope) -> Optional[str]:
    return message.content if isinstance(message.content, str) else None


get_content = variant_dispatch(
    {
        TextMessage: lambda m: m.content,
        ImageMessage: lambda m: None,
        MultiModalMessage: lambda m: None,
        ToolCallMessage: lambda m: m.content,
        ToolCallResultMessage: _results_content,
        AggregateMessage: lambda m: _results_content(m.second),
        LegacyMessage: lambda m: m.content,
        Envelope: _envelope_content,
    }
)
get_content.__doc__ = "Return the rendered text content of a message, or None when it has none."


get_tool_calls = variant_dispatch(
    {
        TextMessage: lambda m: None,
        ImageMessage: lambda m: None,
        MultiModalMessage: lambda m: None,
        ToolCallMessage: lambda m: list(m.calls),
        ToolCallResultMessage: lambda m: list(m.calls),
        AggregateMessage: lambda m: list(m.second.calls),
        LegacyMessage: lambda m: (
            [ToolCall(function_name=m.function_name, arguments=m.function_arguments or "")]
            if m.function_name
            else None
        ),
        Envelope: lambda m: None,
    }
)
get_tool_calls.__doc__ = "Return the tool calls carried by a message, or None."


def _format_calls(calls: List[ToolCall]) -> List[str]:
    lines = []
    for call in calls:
        lines.append(f"- {call.function_name}: {call.arguments}")
        if call.result is not None:
            lines.append(f"  result: {call.result}")
    return lines


def _format_body(message: Any) -> List[str]:
    if isinstance(message, MultiModalMessage):
        lines = []
        for part in message.parts:
            lines.extend(_format_body(part))
        return lines
    if isinstance(message, ImageMessage):
        return [f"[image: {message.url}]"]
    if isinstance(message, ToolCallMessage):
        lines = [message.content] if message.content else []
        return lines + ["ToolCall:"] + _format_calls(message.calls)
    if isinstance(message, ToolCallResultMessage):
        return ["ToolCallResult:"] + _format_calls(message.calls)
    if isinstance(message, AggregateMessage):
        return _format_body(message.first) + _format_body(message.second)
    if isinstance(message, Envelope):
        return [f"[{type(message.content).__name__}] {message.content!r}"]
    return [get_content(message) or ""]


def format_message(message: BaseMessage) -> str:
    """Render a message as a human-readable block for logs and consoles.

    Args:
        message: Any message of the closed variant set.

    Returns:
        A multi-line string headed by the message kind and author.
    """
    role = message.role.value if message.role is not None else "-"
    header = f"{type(message).__name__} from {message.author} ({role})"
    separator = "-" * len(header)
    return "\n".join([header, separator, *_format_body(message), separator])
