import pytest
from pydantic import ValidationError

from generic_agent_lib.agent_core.exceptions import UnknownMessageVariant
from generic_agent_lib.agent_core.messages import (
    AggregateMessage,
    Envelope,
    ImageMessage,
    LegacyMessage,
    MESSAGE_VARIANTS,
    MultiModalMessage,
    Role,
    TextMessage,
    ToolCall,
    ToolCallMessage,
    ToolCallResultMessage,
    format_message,
    get_content,
    get_tool_calls,
    parse_message,
    variant_dispatch,
    variant_of,
)


def test_parse_message_uses_kind_discriminator() -> None:
    message = parse_message({"kind": "text", "content": "hello", "author": "user"})

    assert isinstance(message, TextMessage)
    assert message.role == Role.USER

    multi = parse_message(
        {
            "kind": "multi_modal",
            "author": "user",
            "parts": [
                {"kind": "text", "content": "look", "author": "user"},
                {"kind": "image", "url": "http://x/y.png", "author": "user"},
            ],
        }
    )
    assert isinstance(multi, MultiModalMessage)
    assert [type(p) for p in multi.parts] == [TextMessage, ImageMessage]


def test_messages_are_immutable() -> None:
    message = TextMessage(content="hello", author="user")
    with pytest.raises(ValidationError):
        message.content = "changed"  # type: ignore[misc]


def test_multi_modal_requires_parts() -> None:
    with pytest.raises(ValidationError):
        MultiModalMessage(parts=[], author="user")


def test_multi_modal_rejects_nested_multi_modal() -> None:
    inner = MultiModalMessage(parts=[TextMessage(content="a", author="user")], author="user")
    with pytest.raises(ValidationError):
        MultiModalMessage(parts=[inner], author="user")  # type: ignore[list-item]


def test_tool_call_requires_calls() -> None:
    with pytest.raises(ValidationError, match="at least one call"):
        ToolCallMessage(calls=[], author="bot")


def test_tool_call_result_requires_results() -> None:
    with pytest.raises(ValidationError):
        ToolCallResultMessage(calls=[ToolCall(function_name="echo", arguments="{}")], author="user")


def test_aggregate_requires_aligned_calls() -> None:
    request = ToolCallMessage(calls=[ToolCall(function_name="a"), ToolCall(function_name="b")], author="bot")
    result = ToolCallResultMessage(calls=[ToolCall(function_name="a", result="1")], author="bot")
    with pytest.raises(ValidationError, match="not aligned"):
        AggregateMessage(first=request, second=result, author="bot")


def test_get_content_per_variant() -> None:
    request = ToolCallMessage(calls=[ToolCall(function_name="a")], author="bot")
    result = ToolCallResultMessage(
        calls=[ToolCall(function_name="a", result="first"), ToolCall(function_name="b", result="second")],
        author="bot",
    )
    aligned = ToolCallResultMessage(calls=[ToolCall(function_name="a", result="only")], author="bot")

    assert get_content(TextMessage(content="hi", author="user")) == "hi"
    assert get_content(ImageMessage(url="http://x/y.png", author="user")) is None
    assert get_content(request) is None
    assert get_content(result) == "first\nsecond"
    assert get_content(AggregateMessage(first=request, second=aligned, author="bot")) == "only"
    assert get_content(LegacyMessage(content="legacy", author="user")) == "legacy"
    assert get_content(Envelope(content="raw", author="bot")) == "raw"
    assert get_content(Envelope(content={"role": "user"}, author="bot")) is None


def test_get_tool_calls() -> None:
    request = ToolCallMessage(calls=[ToolCall(function_name="a", arguments='{"x": 1}')], author="bot")

    assert get_tool_calls(request) == request.calls
    assert get_tool_calls(TextMessage(content="hi", author="user")) is None

    legacy_calls = get_tool_calls(LegacyMessage(function_name="f", function_arguments="{}", author="user"))
    assert legacy_calls == [ToolCall(function_name="f", arguments="{}")]


def test_variant_dispatch_must_be_exhaustive() -> None:
    handlers = {variant: (lambda m: variant.__name__) for variant in MESSAGE_VARIANTS}
    handlers.pop(LegacyMessage)

    with pytest.raises(TypeError, match="LegacyMessage"):
        variant_dispatch(handlers)


def test_variant_of_rejects_unknown_values() -> None:
    assert variant_of(TextMessage(content="hi", author="user")) is TextMessage

    with pytest.raises(UnknownMessageVariant):
        variant_of("just a string")


def test_format_message_renders_header_and_calls() -> None:
    message = ToolCallMessage(
        calls=[ToolCall(function_name="get_weather", arguments='{"city": "Berlin"}')],
        content="Let me check.",
        author="assistant",
    )

    rendered = format_message(message)
    lines = rendered.splitlines()

    assert lines[0] == "ToolCallMessage from assistant (assistant)"
    assert "Let me check." in lines
    assert '- get_weather: {"city": "Berlin"}' in lines
    assert lines[-1] == lines[1]
