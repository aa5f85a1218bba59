from typing import AsyncIterator, Optional, Sequence

from ..messages import BaseMessage, Role, TextMessage, TextUpdate
from ..streaming.cancellation import CancellationToken, check_cancelled
from .base import GenerateReplyOptions, StreamItem, StreamingAgent


class DefaultReplyAgent(StreamingAgent):
    """Answers every conversation with the same assistant text.

    Useful as the innermost agent of a user proxy whose behavior lives entirely in middleware.
    """

    def __init__(self, name: str, default_reply: str):
        self.name = name
        self.default_reply = default_reply

    async def generate_reply(
        self,
        messages: Sequence[BaseMessage],
        options: Optional[GenerateReplyOptions] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> BaseMessage:
        check_cancelled(cancellation_token)
        return TextMessage(role=Role.ASSISTANT, content=self.default_reply, author=self.name)

    async def generate_streaming_reply(
        self,
        messages: Sequence[BaseMessage],
        options: Optional[GenerateReplyOptions] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[StreamItem]:
        check_cancelled(cancellation_token)
        yield TextUpdate(role=Role.ASSISTANT, delta=self.default_reply, author=self.name)
