"""Streaming update models: one fragment of a logical message each."""

from __future__ import annotations

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .models import Role


class StreamingUpdate(BaseModel):
    """Base model for streaming fragments.

    Attributes:
        author: Name of the agent producing the stream.
        role: Conversation role of the message being streamed.
        choice_index: Backend choice the fragment belongs to. Only 0 is supported.
    """

    model_config = ConfigDict(frozen=True)

    author: str
    role: Optional[Role] = Role.ASSISTANT
    choice_index: int = 0


class TextUpdate(StreamingUpdate):
    """Text delta to append to the message content."""

    kind: Literal["text_update"] = "text_update"
    delta: str = ""


class ToolCallFragment(BaseModel):
    """Partial tool call identified by its index within the message."""

    model_config = ConfigDict(frozen=True)

    index: int
    id: Optional[str] = None
    function_name: Optional[str] = None
    arguments: Optional[str] = None


class ToolCallUpdate(StreamingUpdate):
    """Tool call fragments to merge into the calls of the message."""

    kind: Literal["tool_call_update"] = "tool_call_update"
    calls: List[ToolCallFragment]


ToolCallMessageUpdate = ToolCallUpdate

StreamingFragment = Annotated[Union[TextUpdate, ToolCallUpdate], Field(discriminator="kind")]
