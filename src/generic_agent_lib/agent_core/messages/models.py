"""Provider-agnostic message models exchanged between agents.

The set of variants is closed: every component that matches on messages does so through
``MESSAGE_VARIANTS`` (see ``variant_dispatch``), so adding a variant forces every dispatch
table to be updated before the library can even be imported.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Callable, Dict, Generic, List, Literal, Mapping, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from ..exceptions import UnknownMessageVariant

T = TypeVar("T")
R = TypeVar("R")


class Role(str, Enum):
    """Conversation role of a message, independent of any backend's naming."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class BaseMessage(BaseModel):
    """Base model for messages exchanged between agents.

    Attributes:
        author: Name of the agent (or party) that produced the message.
        role: Optional conversation role.
    """

    model_config = ConfigDict(frozen=True)

    author: str
    role: Optional[Role] = None


class TextMessage(BaseMessage):
    """Plain text message."""

    kind: Literal["text"] = "text"
    role: Optional[Role] = Role.USER
    content: str


class ImageMessage(BaseMessage):
    """Message referencing an image by URL."""

    kind: Literal["image"] = "image"
    role: Optional[Role] = Role.USER
    url: str


class MultiModalMessage(BaseMessage):
    """Ordered collection of text and image parts sent as one message."""

    kind: Literal["multi_modal"] = "multi_modal"
    role: Optional[Role] = Role.USER
    parts: List[Annotated[Union[TextMessage, ImageMessage], Field(discriminator="kind")]]

    @model_validator(mode="after")
    def _check_parts(self) -> "MultiModalMessage":
        if not self.parts:
            raise ValueError("MultiModalMessage requires at least one part.")
        return self


class ToolCall(BaseModel):
    """A request to invoke a named function with serialized (JSON) arguments.

    Attributes:
        function_name: Name of the function to call.
        arguments: JSON-serialized arguments.
        id: Backend-issued call identifier, if any.
        result: Serialized result once the call has been executed.
    """

    model_config = ConfigDict(frozen=True)

    function_name: str
    arguments: str = ""
    id: Optional[str] = None
    result: Optional[str] = None


class ToolCallMessage(BaseMessage):
    """Tool-call request produced by a backend.

    ``content`` keeps any text the backend emitted alongside the calls.
    """

    kind: Literal["tool_call"] = "tool_call"
    role: Optional[Role] = Role.ASSISTANT
    calls: List[ToolCall]
    content: Optional[str] = None

    @model_validator(mode="after")
    def _check_calls(self) -> "ToolCallMessage":
        if not self.calls:
            raise ValueError("ToolCallMessage requires at least one call.")
        return self


class ToolCallResultMessage(BaseMessage):
    """Executed tool calls, each with its ``result`` populated."""

    kind: Literal["tool_call_result"] = "tool_call_result"
    calls: List[ToolCall]

    @model_validator(mode="after")
    def _check_results(self) -> "ToolCallResultMessage":
        missing = [call.function_name for call in self.calls if call.result is None]
        if missing:
            raise ValueError(f"ToolCallResultMessage calls without result: {missing}")
        return self


class AggregateMessage(BaseMessage):
    """A tool call that was executed and answered within the same turn.

    ``second.calls`` is index-aligned with ``first.calls``.
    """

    kind: Literal["aggregate"] = "aggregate"
    role: Optional[Role] = Role.ASSISTANT
    first: ToolCallMessage
    second: ToolCallResultMessage

    @model_validator(mode="after")
    def _check_alignment(self) -> "AggregateMessage":
        requested = [call.function_name for call in self.first.calls]
        answered = [call.function_name for call in self.second.calls]
        if requested != answered:
            raise ValueError(f"Tool call results {answered} are not aligned with requests {requested}.")
        return self


class LegacyMessage(BaseMessage):
    """Deprecated loosely-typed message kept for compatibility.

    Validity depends on which of ``content`` / ``function_name`` / ``function_arguments`` are
    set; the combinations are interpreted by the connectors, not enforced here.
    """

    kind: Literal["legacy"] = "legacy"
    content: Optional[str] = None
    function_name: Optional[str] = None
    function_arguments: Optional[str] = None


class Envelope(BaseMessage, Generic[T]):
    """Wraps a backend-native payload that has no normalized shape."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: Literal["envelope"] = "envelope"
    content: T


Message = Annotated[
    Union[
        TextMessage,
        ImageMessage,
        MultiModalMessage,
        ToolCallMessage,
        ToolCallResultMessage,
        AggregateMessage,
        LegacyMessage,
        Envelope,
    ],
    Field(discriminator="kind"),
]

MESSAGE_VARIANTS: tuple[type[BaseMessage], ...] = (
    TextMessage,
    ImageMessage,
    MultiModalMessage,
    ToolCallMessage,
    ToolCallResultMessage,
    AggregateMessage,
    LegacyMessage,
    Envelope,
)

message_adapter: TypeAdapter[Any] = TypeAdapter(Message)


def parse_message(data: Dict[str, Any]) -> BaseMessage:
    """Validate a plain dictionary into the matching message variant.

    Args:
        data: Dictionary carrying a ``kind`` discriminator.

    Returns:
        The validated message.
    """
    return message_adapter.validate_python(data)


def variant_of(message: Any) -> type[BaseMessage]:
    """Return the closed-set variant a value belongs to.

    Raises:
        UnknownMessageVariant: If the value is not one of ``MESSAGE_VARIANTS``.
    """
    for variant in MESSAGE_VARIANTS:
        if isinstance(message, variant):
            return variant
    raise UnknownMessageVariant(f"Unknown message variant: {type(message).__name__}")


def variant_dispatch(handlers: Mapping[type[BaseMessage], Callable[..., R]]) -> Callable[..., R]:
    """Build an exhaustive dispatcher over the message variants.

    The mapping must cover every entry in ``MESSAGE_VARIANTS``; a missing variant fails at
    construction time.

    Args:
        handlers: Mapping from variant class to handler. Handlers receive the message first,
            followed by any extra positional or keyword arguments given to the dispatcher.

    Returns:
        A callable ``dispatch(message, *args, **kwargs)``.

    Raises:
        TypeError: If a variant has no handler.
    """
    missing = [v.__name__ for v in MESSAGE_VARIANTS if v not in handlers]
    if missing:
        raise TypeError(f"Message dispatch table is not exhaustive, missing: {missing}")

    table = dict(handlers)

    def dispatch(message: Any, *args: Any, **kwargs: Any) -> R:
        return table[variant_of(message)](message, *args, **kwargs)

    return dispatch
