"""Middleware that logs each reply as a readable block."""

import logging
from typing import AsyncIterator, Optional

from ..base import Agent, StreamingAgent, StreamItem
from ..logger import get_logger
from ..messages import BaseMessage, StreamingUpdate, format_message
from ..streaming import CancellationToken, StreamingAggregator, cancellable
from .base import MiddlewareContext

logger = get_logger(__name__)


class PrintMessageMiddleware:
    """Logs the reply of the wrapped agent through ``format_message``.

    The streaming variant forwards every fragment unchanged and logs once the stream
    completes, using the aggregated message (or the last materialized message in the stream).
    """

    def __init__(self, level: int = logging.INFO, name: Optional[str] = None):
        self.level = level
        self._name = name or type(self).__name__

    @property
    def name(self) -> Optional[str]:
        return self._name

    async def invoke(
        self,
        context: MiddlewareContext,
        agent: Agent,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> BaseMessage:
        reply = await agent.generate_reply(context.messages, context.options, cancellation_token)
        logger.log(self.level, format_message(reply))
        return reply

    async def invoke_streaming(
        self,
        context: MiddlewareContext,
        agent: StreamingAgent,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[StreamItem]:
        aggregator = StreamingAggregator()
        final: Optional[BaseMessage] = None
        stream = agent.generate_streaming_reply(context.messages, context.options, cancellation_token)
        async for item in cancellable(stream, cancellation_token):
            if isinstance(item, StreamingUpdate):
                aggregator.update(item)
            else:
                final = item
            yield item

        completed = final or aggregator.message
        if completed is not None:
            logger.log(self.level, format_message(completed))
