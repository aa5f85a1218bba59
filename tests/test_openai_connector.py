from typing import Any, Dict, List

import pytest
from openai.types.chat import ChatCompletionChunk, ChatCompletionMessage

from generic_agent_lib.agent_core import Agent, BaseMessage, aggregate
from generic_agent_lib.agent_core.exceptions import (
    AmbiguousContentReference,
    InvalidStreamingChoice,
    SelfAuthoredFunctionCallRejected,
    SelfAuthoredMultiModalRejected,
    UnsupportedContentKind,
    UnknownMessageVariant,
)
from generic_agent_lib.agent_core.messages import (
    AggregateMessage,
    Envelope,
    ImageMessage,
    LegacyMessage,
    MultiModalMessage,
    Role,
    TextMessage,
    TextUpdate,
    ToolCall,
    ToolCallMessage,
    ToolCallResultMessage,
    ToolCallUpdate,
)
from generic_agent_lib.agent_impl.openai_api import OpenAIMessageConnector

AGENT = "assistant"


@pytest.fixture
def connector() -> OpenAIMessageConnector:
    return OpenAIMessageConnector()


def _native(connector: OpenAIMessageConnector, *messages: Any) -> List[Dict[str, Any]]:
    envelopes = connector.normalize_outgoing(list(messages), AGENT)
    assert all(isinstance(e, Envelope) for e in envelopes)
    return [e.content for e in envelopes]


def _chunk(delta: Dict[str, Any], index: int = 0) -> ChatCompletionChunk:
    return ChatCompletionChunk.model_validate(
        {
            "id": "chatcmpl-1",
            "object": "chat.completion.chunk",
            "created": 0,
            "model": "gpt-4o-mini",
            "choices": [{"index": index, "delta": delta, "finish_reason": None}],
        }
    )


def _tool_request(author: str = AGENT) -> ToolCallMessage:
    return ToolCallMessage(
        calls=[ToolCall(function_name="get_weather", arguments='{"city": "Berlin"}', id="call_abc")],
        author=author,
    )


def _tool_result(author: str = "user") -> ToolCallResultMessage:
    return ToolCallResultMessage(
        calls=[ToolCall(function_name="get_weather", arguments='{"city": "Berlin"}', id="call_abc", result="Sunny")],
        author=author,
    )


def test_text_roles_follow_perspective(connector: OpenAIMessageConnector) -> None:
    native = _native(
        connector,
        TextMessage(role=Role.SYSTEM, content="Be brief.", author="user"),
        TextMessage(content="Hello", author="user"),
        TextMessage(role=Role.ASSISTANT, content="Hi there", author=AGENT),
        TextMessage(role=Role.ASSISTANT, content="I am another agent", author="critic"),
    )

    assert native == [
        {"role": "system", "content": "Be brief."},
        {"role": "user", "content": "Hello"},
        {"role": "assistant", "content": "Hi there"},
        {"role": "user", "content": "I am another agent"},
    ]


@pytest.mark.parametrize("value", [{"role": "user", "content": "hi"}, "hi", 42])
def test_value_outside_message_model_is_rejected(connector: OpenAIMessageConnector, value: Any) -> None:
    with pytest.raises(UnknownMessageVariant):
        connector.normalize_outgoing([TextMessage(content="Hello", author="user"), value], AGENT)


def test_envelopes_keep_author_and_pass_through(connector: OpenAIMessageConnector) -> None:
    raw = Envelope(content={"role": "user", "content": "raw"}, author="user")
    text = TextMessage(content="Hello", author="user")

    envelopes = connector.normalize_outgoing([raw, text], AGENT)

    assert envelopes[0] is raw
    assert envelopes[1].author == "user"


def test_multi_modal_from_other_is_one_user_message(connector: OpenAIMessageConnector) -> None:
    message = MultiModalMessage(
        parts=[TextMessage(content="What is this?", author="user"), ImageMessage(url="http://x/y.png", author="user")],
        author="user",
    )

    assert _native(connector, message) == [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": "What is this?"},
                {"type": "image_url", "image_url": {"url": "http://x/y.png"}},
            ],
        }
    ]


def test_multi_modal_from_self_is_rejected(connector: OpenAIMessageConnector) -> None:
    message = MultiModalMessage(parts=[TextMessage(content="a", author=AGENT)], author=AGENT)

    with pytest.raises(SelfAuthoredMultiModalRejected):
        _native(connector, message)


def test_image_from_other_and_self(connector: OpenAIMessageConnector) -> None:
    assert _native(connector, ImageMessage(url="http://x/y.png", author="user")) == [
        {"role": "user", "content": [{"type": "image_url", "image_url": {"url": "http://x/y.png"}}]}
    ]

    with pytest.raises(UnsupportedContentKind):
        _native(connector, ImageMessage(url="http://x/y.png", author=AGENT))


def test_tool_call_only_from_self(connector: OpenAIMessageConnector) -> None:
    [native] = _native(connector, _tool_request())

    assert native["role"] == "assistant"
    assert native["tool_calls"] == [
        {"id": "call_abc", "type": "function", "function": {"name": "get_weather", "arguments": '{"city": "Berlin"}'}}
    ]

    with pytest.raises(UnsupportedContentKind):
        _native(connector, _tool_request(author="user"))


def test_tool_results_from_any_author(connector: OpenAIMessageConnector) -> None:
    expected = [{"role": "tool", "tool_call_id": "call_abc", "name": "get_weather", "content": "Sunny"}]

    assert _native(connector, _tool_result("user")) == expected
    assert _native(connector, _tool_result(AGENT)) == expected


def test_missing_call_ids_are_aligned(connector: OpenAIMessageConnector) -> None:
    request = ToolCallMessage(calls=[ToolCall(function_name="now", arguments="")], author=AGENT)
    result = ToolCallResultMessage(calls=[ToolCall(function_name="now", result="noon")], author="user")

    call, answer = _native(connector, request, result)

    assert call["tool_calls"][0]["id"] == answer["tool_call_id"] == "call_0"
    assert call["tool_calls"][0]["function"]["arguments"] == "{}"


def test_aggregate_from_self_expands_to_call_and_results(connector: OpenAIMessageConnector) -> None:
    aggregate_message = AggregateMessage(first=_tool_request(), second=_tool_result(AGENT), author=AGENT)

    call, result = _native(connector, aggregate_message)

    assert call["tool_calls"][0]["id"] == "call_abc"
    assert result["role"] == "tool"

    with pytest.raises(UnsupportedContentKind):
        _native(
            connector,
            AggregateMessage(first=_tool_request("user"), second=_tool_result("user"), author="user"),
        )


@pytest.mark.parametrize(
    "message, expected",
    [
        (LegacyMessage(content="old style", author="user"), {"role": "user", "content": "old style"}),
        (LegacyMessage(content="mine", author=AGENT), {"role": "assistant", "content": "mine"}),
        (
            LegacyMessage(role=Role.SYSTEM, content="system text", author="user"),
            {"role": "system", "content": "system text"},
        ),
    ],
)
def test_legacy_text(connector: OpenAIMessageConnector, message: LegacyMessage, expected: Dict[str, Any]) -> None:
    assert _native(connector, message) == [expected]


def test_legacy_function_calls_are_rejected(connector: OpenAIMessageConnector) -> None:
    with pytest.raises(SelfAuthoredFunctionCallRejected):
        _native(connector, LegacyMessage(function_name="f", function_arguments="{}", author=AGENT))

    with pytest.raises(UnsupportedContentKind):
        _native(connector, LegacyMessage(function_name="f", function_arguments="{}", author="user"))

    with pytest.raises(UnsupportedContentKind):
        _native(connector, LegacyMessage(content="both", function_name="f", function_arguments="{}", author="user"))


def test_reply_text(connector: OpenAIMessageConnector) -> None:
    reply = connector.denormalize_incoming(
        Envelope(content=ChatCompletionMessage(role="assistant", content="Hello!"), author=AGENT)
    )

    assert reply == TextMessage(content="Hello!", author=AGENT, role=Role.ASSISTANT)


def test_reply_tool_calls(connector: OpenAIMessageConnector) -> None:
    native = ChatCompletionMessage.model_validate(
        {
            "role": "assistant",
            "content": None,
            "tool_calls": [
                {"id": "call_1", "type": "function", "function": {"name": "get_weather", "arguments": '{"city": "Paris"}'}}
            ],
        }
    )

    reply = connector.from_native(native, AGENT)

    assert isinstance(reply, ToolCallMessage)
    assert reply.calls == [ToolCall(function_name="get_weather", arguments='{"city": "Paris"}', id="call_1")]
    assert reply.content is None


def test_reply_content_items_keep_order(connector: OpenAIMessageConnector) -> None:
    native = {
        "role": "assistant",
        "content": [
            {"type": "text", "text": "hi"},
            {"type": "image_url", "image_url": {"url": "http://x/y.png"}},
        ],
    }

    reply = connector.from_native(native, AGENT)

    assert isinstance(reply, MultiModalMessage)
    assert [type(p) for p in reply.parts] == [TextMessage, ImageMessage]
    assert reply.parts[1].url == "http://x/y.png"


def test_reply_single_content_item_is_not_wrapped(connector: OpenAIMessageConnector) -> None:
    reply = connector.from_native({"content": [{"type": "image_url", "image_url": {"url": "http://x/y.png"}}]}, AGENT)

    assert reply == ImageMessage(url="http://x/y.png", author=AGENT, role=Role.ASSISTANT)


def test_reply_rejections(connector: OpenAIMessageConnector) -> None:
    with pytest.raises(AmbiguousContentReference):
        connector.from_native({"content": [{"type": "image_url", "image_url": {}}]}, AGENT)

    with pytest.raises(UnsupportedContentKind):
        connector.from_native({"content": [{"type": "input_audio"}]}, AGENT)

    with pytest.raises(UnsupportedContentKind, match="refusal"):
        connector.from_native({"content": None, "refusal": "I can't help with that."}, AGENT)

    with pytest.raises(UnsupportedContentKind):
        connector.from_native(42, AGENT)


def test_non_envelope_reply_passes_through(connector: OpenAIMessageConnector) -> None:
    message = TextMessage(content="already normalized", author=AGENT)

    assert connector.denormalize_incoming(message) is message


def test_streaming_chunks(connector: OpenAIMessageConnector) -> None:
    [text] = connector.denormalize_streaming_fragment(_chunk({"content": "Hel"}), AGENT)
    assert text == TextUpdate(delta="Hel", author=AGENT)

    [call] = connector.denormalize_streaming_fragment(
        _chunk(
            {
                "tool_calls": [
                    {"index": 0, "id": "call_1", "type": "function", "function": {"name": "get_weather", "arguments": ""}}
                ]
            }
        ),
        AGENT,
    )
    assert isinstance(call, ToolCallUpdate)
    assert call.calls[0].function_name == "get_weather"
    assert call.calls[0].id == "call_1"


def test_streaming_rejects_other_choices(connector: OpenAIMessageConnector) -> None:
    with pytest.raises(InvalidStreamingChoice):
        connector.denormalize_streaming_fragment(_chunk({"content": "x"}, index=1), AGENT)


def test_usage_only_chunk_yields_nothing(connector: OpenAIMessageConnector) -> None:
    chunk = ChatCompletionChunk.model_validate(
        {
            "id": "chatcmpl-1",
            "object": "chat.completion.chunk",
            "created": 0,
            "model": "gpt-4o-mini",
            "choices": [],
            "usage": {"prompt_tokens": 3, "completion_tokens": 2, "total_tokens": 5},
        }
    )

    assert connector.denormalize_streaming_fragment(chunk, AGENT) == []


@pytest.mark.asyncio
async def test_connector_as_middleware(connector: OpenAIMessageConnector, scripted_agent_cls: Any) -> None:
    native_reply = ChatCompletionMessage(role="assistant", content="Hello!")
    inner = scripted_agent_cls(AGENT, replies=[Envelope(content=native_reply, author=AGENT, role=Role.ASSISTANT)])
    agent = inner.register_middleware(connector)

    reply = await agent.send("Hi")

    assert reply == TextMessage(content="Hello!", author=AGENT, role=Role.ASSISTANT)
    [sent] = inner.calls
    assert [e.content for e in sent] == [{"role": "user", "content": "Hi"}]


@pytest.mark.asyncio
async def test_connector_as_streaming_middleware(connector: OpenAIMessageConnector, scripted_agent_cls: Any) -> None:
    chunks = [_chunk({"role": "assistant", "content": ""}), _chunk({"content": "Hel"}), _chunk({"content": "lo"})]
    inner = scripted_agent_cls(AGENT, stream=[Envelope(content=c, author=AGENT) for c in chunks])
    agent = inner.register_streaming_middleware(connector)

    reply = await aggregate(agent.generate_streaming_reply([TextMessage(content="Hi", author="user")]))

    assert reply == TextMessage(content="Hello", author=AGENT, role=Role.ASSISTANT)


@pytest.mark.asyncio
async def test_round_trip_through_echo_backend(connector: OpenAIMessageConnector) -> None:
    class EchoAgent(Agent):
        name = AGENT

        async def generate_reply(self, messages: Any, options: Any = None, cancellation_token: Any = None) -> BaseMessage:
            return Envelope(content=messages[-1].content, author=self.name)

    agent = EchoAgent().register_middleware(connector)

    reply = await agent.send(TextMessage(content="same text", author="user"))

    assert reply == TextMessage(content="same text", author=AGENT, role=Role.ASSISTANT)
