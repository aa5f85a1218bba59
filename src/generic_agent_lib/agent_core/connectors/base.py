"""
Shared translation policy between the message model and a backend's native content shape.

A connector is registered as middleware (on both the one-shot and the streaming contract) in
front of a backend agent. Outbound it decides, per message, whether the message was authored by
the agent it is sending to (``Perspective.SELF``) or by someone else (``Perspective.OTHER``) and
maps roles accordingly; inbound it turns the backend's native reply back into messages.
Subclasses only build and read native objects.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import AsyncIterator, Generic, List, NoReturn, Optional, Sequence, TypeVar, Union

from ..base import Agent, StreamingAgent, StreamItem
from ..exceptions import SelfAuthoredFunctionCallRejected, SelfAuthoredMultiModalRejected, UnsupportedContentKind
from ..logger import get_logger
from ..messages import (
    AggregateMessage,
    BaseMessage,
    Envelope,
    ImageMessage,
    LegacyMessage,
    MultiModalMessage,
    Role,
    StreamingUpdate,
    TextMessage,
    ToolCallMessage,
    ToolCallResultMessage,
    ToolCallUpdate,
    variant_dispatch,
    variant_of,
)
from ..middleware import MiddlewareContext
from ..streaming import CancellationToken, cancellable

logger = get_logger(__name__)

NativeT = TypeVar("NativeT")

ContentPart = Union[TextMessage, ImageMessage]


class Perspective(str, Enum):
    """Whether a message was authored by the agent it is being sent to."""

    SELF = "self"
    OTHER = "other"

    @classmethod
    def of(cls, message: BaseMessage, agent_name: str) -> "Perspective":
        return cls.SELF if message.author == agent_name else cls.OTHER

    @property
    def role(self) -> Role:
        """Native role of a non-system message seen from this perspective."""
        return Role.ASSISTANT if self is Perspective.SELF else Role.USER


def _reject(msg: str, error: type = UnsupportedContentKind) -> NoReturn:
    logger.error(msg)
    raise error(msg)


class ContentConnector(ABC, Generic[NativeT]):
    """
    Base class of the backend connectors.

    Implements both middleware contracts: messages are normalized into
    ``Envelope[NativeT]`` before calling the wrapped agent and the agent's native reply (or
    stream of native chunks) is denormalized on the way back.
    """

    def __init__(self, name: Optional[str] = None):
        self._name = name or type(self).__name__
        self._outgoing = variant_dispatch(
            {
                TextMessage: self._text_to_native,
                ImageMessage: self._image_to_native,
                MultiModalMessage: self._multi_modal_to_native,
                ToolCallMessage: self._tool_call_to_native,
                ToolCallResultMessage: self._tool_call_result_to_native,
                AggregateMessage: self._aggregate_to_native,
                LegacyMessage: self._legacy_to_native,
                Envelope: lambda message, perspective: [message.content],
            }
        )

    @property
    def name(self) -> Optional[str]:
        return self._name

    async def invoke(
        self,
        context: MiddlewareContext,
        agent: Agent,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> BaseMessage:
        native = self.normalize_outgoing(context.messages, agent.name)
        reply = await agent.generate_reply(native, context.options, cancellation_token)
        return self.denormalize_incoming(reply)

    async def invoke_streaming(
        self,
        context: MiddlewareContext,
        agent: StreamingAgent,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[StreamItem]:
        native = self.normalize_outgoing(context.messages, agent.name)
        stream = agent.generate_streaming_reply(native, context.options, cancellation_token)
        next_call_index = 0
        async for item in cancellable(stream, cancellation_token):
            if not isinstance(item, Envelope):
                yield item
                continue

            for update in self.denormalize_streaming_fragment(item.content, item.author, next_call_index):
                if isinstance(update, ToolCallUpdate) and update.calls:
                    next_call_index = max(next_call_index, max(c.index for c in update.calls) + 1)
                yield update

    def normalize_outgoing(self, messages: Sequence[BaseMessage], agent_name: str) -> List[BaseMessage]:
        """
        Translate a conversation into native envelopes for the agent named ``agent_name``.

        Envelopes are passed through unchanged. Any other message is translated according to
        its perspective relative to ``agent_name``; one message may yield several native items.

        Args:
            messages: The conversation, oldest first.
            agent_name: Name of the agent the conversation is sent to.

        Returns:
            The native messages, each wrapped in an ``Envelope`` keeping author and role.

        Raises:
            SelfAuthoredMultiModalRejected: For a multi-modal message authored by ``agent_name``.
            SelfAuthoredFunctionCallRejected: For a legacy function call authored by ``agent_name``.
            UnsupportedContentKind: For any other message without a native mapping.
            UnknownMessageVariant: For a value outside the message model.
        """
        envelopes: List[BaseMessage] = []
        for message in messages:
            variant_of(message)
            if isinstance(message, Envelope):
                envelopes.append(message)
                continue

            perspective = Perspective.of(message, agent_name)
            for native in self._outgoing(message, perspective):
                envelopes.append(Envelope(content=native, author=message.author, role=message.role))

        logger.debug(f"Normalized {len(messages)} message(s) into {len(envelopes)} native item(s) for '{agent_name}'.")
        return envelopes

    def _text_to_native(self, message: TextMessage, perspective: Perspective) -> List[NativeT]:
        role = Role.SYSTEM if message.role == Role.SYSTEM else perspective.role
        return [self.native_text(role, message.content)]

    def _image_to_native(self, message: ImageMessage, perspective: Perspective) -> List[NativeT]:
        if perspective is Perspective.SELF:
            _reject(f"ImageMessage from '{message.author}' cannot be sent back to its own backend.")
        return [self.native_parts(Role.USER, [message])]

    def _multi_modal_to_native(self, message: MultiModalMessage, perspective: Perspective) -> List[NativeT]:
        if perspective is Perspective.SELF:
            _reject(
                f"MultiModalMessage from '{message.author}' cannot be sent back to its own backend.",
                SelfAuthoredMultiModalRejected,
            )
        return [self.native_parts(Role.USER, message.parts)]

    def _tool_call_to_native(self, message: ToolCallMessage, perspective: Perspective) -> List[NativeT]:
        if perspective is Perspective.OTHER:
            _reject(f"ToolCallMessage from '{message.author}' can only be sent to the agent that requested it.")
        return [self.native_tool_calls(message)]

    def _tool_call_result_to_native(self, message: ToolCallResultMessage, perspective: Perspective) -> List[NativeT]:
        return self.native_tool_results(message)

    def _aggregate_to_native(self, message: AggregateMessage, perspective: Perspective) -> List[NativeT]:
        if perspective is Perspective.OTHER:
            _reject(f"AggregateMessage from '{message.author}' can only be sent to the agent that produced it.")
        return [self.native_tool_calls(message.first), *self.native_tool_results(message.second)]

    def _legacy_to_native(self, message: LegacyMessage, perspective: Perspective) -> List[NativeT]:
        has_function = message.function_name is not None and message.function_arguments is not None
        no_function = message.function_name is None and message.function_arguments is None

        if message.role == Role.SYSTEM:
            return [self.native_text(Role.SYSTEM, message.content or "")]
        if message.content is not None and no_function:
            return [self.native_text(perspective.role, message.content)]
        if message.content is None and has_function:
            if perspective is Perspective.SELF:
                _reject(
                    f"Legacy function call from '{message.author}' cannot be sent back to its own backend.",
                    SelfAuthoredFunctionCallRejected,
                )
            _reject(f"Legacy function call from '{message.author}' is not supported.")
        _reject(f"Unsupported legacy message combination from '{message.author}'.")

    def denormalize_incoming(self, reply: BaseMessage) -> BaseMessage:
        """
        Translate the agent's native reply into a message.

        Args:
            reply: The agent's reply; an ``Envelope`` carrying a native payload is translated,
                any other message is returned unchanged.

        Returns:
            A ``TextMessage`` or ``ImageMessage`` for a single item, a ``MultiModalMessage`` for
            several, or a ``ToolCallMessage`` when the backend requested tool calls.
        """
        if not isinstance(reply, Envelope):
            return reply

        message = self.from_native(reply.content, reply.author)
        logger.debug(f"Denormalized reply of '{reply.author}' into {type(message).__name__}.")
        return message

    @staticmethod
    def collect(items: Sequence[ContentPart], author: str) -> BaseMessage:
        """Return a single item directly or wrap several into a ``MultiModalMessage``."""
        if not items:
            _reject(f"Reply of '{author}' carries no content.")
        if len(items) == 1:
            return items[0]
        return MultiModalMessage(parts=list(items), author=author, role=Role.ASSISTANT)

    @abstractmethod
    def native_text(self, role: Role, text: str) -> NativeT:
        """Build a native text message with the given (already perspective-mapped) role."""
        pass

    @abstractmethod
    def native_parts(self, role: Role, parts: Sequence[ContentPart]) -> NativeT:
        """Build one native message whose content collection holds text and image items."""
        pass

    @abstractmethod
    def native_tool_calls(self, message: ToolCallMessage) -> NativeT:
        """Build the native assistant message requesting ``message.calls``."""
        pass

    @abstractmethod
    def native_tool_results(self, message: ToolCallResultMessage) -> List[NativeT]:
        """Build the native messages answering the calls of ``message``."""
        pass

    @abstractmethod
    def from_native(self, native: object, author: str) -> BaseMessage:
        """Translate a native reply payload authored by the backend agent ``author``."""
        pass

    @abstractmethod
    def denormalize_streaming_fragment(
        self, native: object, author: str, next_call_index: int = 0
    ) -> List[StreamingUpdate]:
        """
        Translate one native streaming chunk into zero or more updates.

        Args:
            native: The native chunk.
            author: Name of the backend agent.
            next_call_index: First tool call index not yet used in this stream, for backends
                whose chunks number their calls from zero.

        Raises:
            InvalidStreamingChoice: If the chunk belongs to a choice other than 0.
        """
        pass
