"""Fold an ordered sequence of streaming fragments into one completed message."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Optional

from ..exceptions import InvalidStreamingChoice, StreamingAggregationError
from ..logger import get_logger
from ..messages import (
    BaseMessage,
    Role,
    StreamingUpdate,
    TextMessage,
    TextUpdate,
    ToolCall,
    ToolCallMessage,
    ToolCallUpdate,
)

logger = get_logger(__name__)


@dataclass
class _CallBuffer:
    index: int
    id: Optional[str] = None
    function_name: str = ""
    arguments: str = ""


class StreamingAggregator:
    """Accumulates the fragments of one logical turn.

    Text deltas are concatenated in arrival order. Tool call fragments are keyed by index;
    a fragment either opens a new call or appends to ``function_name`` / ``arguments`` of a
    known one. Accumulated characters are never rewritten.

    If any tool call fragment was seen the result is a ``ToolCallMessage`` (text deltas become
    its ``content``), otherwise a ``TextMessage``.
    """

    def __init__(self) -> None:
        self._author: Optional[str] = None
        self._role: Optional[Role] = None
        self._text: List[str] = []
        self._calls: Dict[int, _CallBuffer] = {}
        self._highest_index = -1

    def update(self, fragment: StreamingUpdate) -> None:
        """Apply one fragment.

        Args:
            fragment: The next ``TextUpdate`` or ``ToolCallUpdate`` of the stream.

        Raises:
            InvalidStreamingChoice: If the fragment belongs to a choice other than 0.
            StreamingAggregationError: If the fragment is of an unknown kind, comes from a
                different author, or opens a call index below one already seen.
        """
        if not isinstance(fragment, (TextUpdate, ToolCallUpdate)):
            msg = f"Cannot aggregate fragment of type {type(fragment).__name__}."
            logger.error(msg)
            raise StreamingAggregationError(msg)

        if fragment.choice_index != 0:
            msg = f"Only one choice is supported in streaming response, got choice_index={fragment.choice_index}."
            logger.error(msg)
            raise InvalidStreamingChoice(msg)

        if self._author is None:
            self._author = fragment.author
            self._role = fragment.role
        elif fragment.author != self._author:
            msg = f"Fragment author '{fragment.author}' does not match stream author '{self._author}'."
            logger.error(msg)
            raise StreamingAggregationError(msg)

        if isinstance(fragment, TextUpdate):
            self._text.append(fragment.delta)
            return

        for part in fragment.calls:
            buffer = self._calls.get(part.index)
            if buffer is None:
                if part.index < self._highest_index:
                    msg = f"Tool call index {part.index} opened after index {self._highest_index}."
                    logger.error(msg)
                    raise StreamingAggregationError(msg)
                buffer = _CallBuffer(index=part.index)
                self._calls[part.index] = buffer
                self._highest_index = part.index

            if part.id and buffer.id is None:
                buffer.id = part.id
            if part.function_name:
                buffer.function_name += part.function_name
            if part.arguments:
                buffer.arguments += part.arguments

    @property
    def message(self) -> Optional[BaseMessage]:
        """The message accumulated so far, or None before the first fragment."""
        if self._author is None:
            return None

        content = "".join(self._text)
        if not self._calls:
            return TextMessage(author=self._author, role=self._role or Role.ASSISTANT, content=content)

        calls = [
            ToolCall(function_name=buffer.function_name, arguments=buffer.arguments, id=buffer.id)
            for _, buffer in sorted(self._calls.items())
        ]
        return ToolCallMessage(
            author=self._author,
            role=self._role or Role.ASSISTANT,
            calls=calls,
            content=content or None,
        )


async def aggregate(stream: AsyncIterator[Any]) -> BaseMessage:
    """Consume a reply stream and return the completed message.

    A materialized ``BaseMessage`` in the stream (such as the terminal aggregate emitted by
    function-call middleware) supersedes the fragments folded before it.

    Args:
        stream: Stream produced by ``generate_streaming_reply``.

    Returns:
        The completed message.

    Raises:
        StreamingAggregationError: If the stream is empty.
    """
    aggregator = StreamingAggregator()
    final: Optional[BaseMessage] = None
    async for item in stream:
        if isinstance(item, BaseMessage):
            final = item
        else:
            aggregator.update(item)

    result = final or aggregator.message
    if result is None:
        msg = "Stream ended without producing any fragment."
        logger.error(msg)
        raise StreamingAggregationError(msg)
    return result
