"""Translate between the message model and OpenAI chat-completions message dictionaries."""

from typing import Any, Dict, List, Mapping, Sequence

from openai.types.chat import ChatCompletionChunk, ChatCompletionMessage

from generic_agent_lib.agent_core import get_logger
from generic_agent_lib.agent_core.connectors import ContentConnector, ContentPart
from generic_agent_lib.agent_core.exceptions import (
    AmbiguousContentReference,
    InvalidStreamingChoice,
    UnsupportedContentKind,
)
from generic_agent_lib.agent_core.messages import (
    BaseMessage,
    ImageMessage,
    Role,
    StreamingUpdate,
    TextMessage,
    TextUpdate,
    ToolCall,
    ToolCallFragment,
    ToolCallMessage,
    ToolCallResultMessage,
    ToolCallUpdate,
)

logger = get_logger(__name__)


def _call_id(call: ToolCall, index: int) -> str:
    # Requests and results are index-aligned, so the fallback matches on both sides.
    return call.id or f"call_{index}"


class OpenAIMessageConnector(ContentConnector[Dict[str, Any]]):
    """
    Connector for ``OpenAIChatAgent``.

    Outbound messages become chat-completions message dictionaries; replies are read from
    ``ChatCompletionMessage`` objects (or equivalent dictionaries) and streamed
    ``ChatCompletionChunk`` deltas become ``TextUpdate`` / ``ToolCallUpdate`` fragments.
    """

    def native_text(self, role: Role, text: str) -> Dict[str, Any]:
        return {"role": role.value, "content": text}

    def native_parts(self, role: Role, parts: Sequence[ContentPart]) -> Dict[str, Any]:
        content: List[Dict[str, Any]] = []
        for part in parts:
            if isinstance(part, TextMessage):
                content.append({"type": "text", "text": part.content})
            else:
                content.append({"type": "image_url", "image_url": {"url": part.url}})
        return {"role": role.value, "content": content}

    def native_tool_calls(self, message: ToolCallMessage) -> Dict[str, Any]:
        return {
            "role": "assistant",
            "content": message.content,
            "tool_calls": [
                {
                    "id": _call_id(call, i),
                    "type": "function",
                    "function": {"name": call.function_name, "arguments": call.arguments or "{}"},
                }
                for i, call in enumerate(message.calls)
            ],
        }

    def native_tool_results(self, message: ToolCallResultMessage) -> List[Dict[str, Any]]:
        return [
            {
                "role": "tool",
                "tool_call_id": _call_id(call, i),
                "name": call.function_name,
                "content": call.result,
            }
            for i, call in enumerate(message.calls)
        ]

    def from_native(self, native: object, author: str) -> BaseMessage:
        """
        Translate a chat-completions reply message.

        Args:
            native: A ``ChatCompletionMessage`` or a message dictionary.
            author: Name of the backend agent.

        Returns:
            A ``ToolCallMessage`` if the reply requests tool calls, otherwise the text and
            image items of its content.

        Raises:
            AmbiguousContentReference: If an image item has no URL.
            UnsupportedContentKind: If the reply carries anything else.
        """
        if isinstance(native, ChatCompletionMessage):
            data: Mapping[str, Any] = native.model_dump()
        elif isinstance(native, Mapping):
            data = native
        else:
            msg = f"Unsupported OpenAI reply payload: {type(native).__name__}"
            logger.error(msg)
            raise UnsupportedContentKind(msg)

        content = data.get("content")
        tool_calls = data.get("tool_calls")

        if tool_calls:
            calls = [
                ToolCall(
                    function_name=tc["function"]["name"],
                    arguments=tc["function"].get("arguments") or "",
                    id=tc.get("id"),
                )
                for tc in tool_calls
            ]
            return ToolCallMessage(calls=calls, content=content or None, author=author, role=Role.ASSISTANT)

        if isinstance(content, str):
            return TextMessage(content=content, author=author, role=Role.ASSISTANT)

        if isinstance(content, list):
            return self.collect([self._content_item(item, author) for item in content], author)

        refusal = data.get("refusal")
        msg = f"OpenAI reply of '{author}' has no content" + (f" (refusal: {refusal})" if refusal else ".")
        logger.error(msg)
        raise UnsupportedContentKind(msg)

    @staticmethod
    def _content_item(item: Mapping[str, Any], author: str) -> ContentPart:
        kind = item.get("type")
        if kind == "text":
            return TextMessage(content=item.get("text", ""), author=author, role=Role.ASSISTANT)
        if kind == "image_url":
            url = (item.get("image_url") or {}).get("url")
            if not url:
                msg = f"Image item in reply of '{author}' has no URL."
                logger.error(msg)
                raise AmbiguousContentReference(msg)
            return ImageMessage(url=url, author=author, role=Role.ASSISTANT)

        msg = f"Unsupported content item type in reply of '{author}': {kind}"
        logger.error(msg)
        raise UnsupportedContentKind(msg)

    def denormalize_streaming_fragment(
        self, native: object, author: str, next_call_index: int = 0
    ) -> List[StreamingUpdate]:
        if not isinstance(native, ChatCompletionChunk):
            msg = f"Unsupported OpenAI stream payload: {type(native).__name__}"
            logger.error(msg)
            raise UnsupportedContentKind(msg)

        updates: List[StreamingUpdate] = []
        # Usage-only chunks carry no choices.
        for choice in native.choices:
            if choice.index != 0:
                msg = f"Only one choice is supported in streaming response, got index {choice.index}."
                logger.error(msg)
                raise InvalidStreamingChoice(msg)

            delta = choice.delta
            if delta.content:
                updates.append(TextUpdate(delta=delta.content, author=author, role=Role.ASSISTANT))
            if delta.tool_calls:
                fragments = [
                    ToolCallFragment(
                        index=tc.index,
                        id=tc.id,
                        function_name=tc.function.name if tc.function else None,
                        arguments=tc.function.arguments if tc.function else None,
                    )
                    for tc in delta.tool_calls
                ]
                updates.append(ToolCallUpdate(calls=fragments, author=author, role=Role.ASSISTANT))
        return updates
