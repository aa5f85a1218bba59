"""Agents composed from an inner agent and ordered middleware chains."""

from __future__ import annotations

from typing import Any, AsyncIterator, List, Optional, Sequence, Tuple

from ..base import Agent, GenerateReplyOptions, StreamingAgent, StreamItem
from ..logger import get_logger
from ..messages import BaseMessage
from ..streaming.cancellation import CancellationToken
from .base import Middleware, MiddlewareContext, StreamingMiddleware, as_middleware, as_streaming_middleware

logger = get_logger(__name__)


class _MiddlewareLink(StreamingAgent):
    """One layer of a composed chain: calls its middleware with the next layer as continuation."""

    def __init__(
        self,
        inner: Agent,
        middleware: Optional[Middleware] = None,
        streaming_middleware: Optional[StreamingMiddleware] = None,
    ):
        self.name = inner.name
        self._inner = inner
        self._middleware = middleware
        self._streaming_middleware = streaming_middleware

    async def generate_reply(
        self,
        messages: Sequence[BaseMessage],
        options: Optional[GenerateReplyOptions] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> BaseMessage:
        if self._middleware is None:
            return await self._inner.generate_reply(messages, options, cancellation_token)
        context = MiddlewareContext(messages=tuple(messages), options=options)
        return await self._middleware.invoke(context, self._inner, cancellation_token)

    def generate_streaming_reply(
        self,
        messages: Sequence[BaseMessage],
        options: Optional[GenerateReplyOptions] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[StreamItem]:
        if not isinstance(self._inner, StreamingAgent):
            raise TypeError(f"Agent '{self.name}' does not support streaming replies.")
        if self._streaming_middleware is None:
            return self._inner.generate_streaming_reply(messages, options, cancellation_token)
        context = MiddlewareContext(messages=tuple(messages), options=options)
        return self._streaming_middleware.invoke_streaming(context, self._inner, cancellation_token)


class MiddlewareAgent(Agent):
    """
    An agent plus an ordered list of middlewares on its one-shot contract.

    Registration never mutates: each ``register_*`` call returns a new agent. The last
    registered middleware is the outermost one, so it sees the request first and the reply last.
    """

    def __init__(
        self,
        inner: Agent,
        middlewares: Tuple[Middleware, ...] = (),
        streaming_middlewares: Tuple[StreamingMiddleware, ...] = (),
    ):
        self.name = inner.name
        self._inner = inner
        self._middlewares = middlewares
        self._streaming_middlewares = streaming_middlewares

    @staticmethod
    def wrap(agent: Agent) -> "MiddlewareAgent":
        """Wrap ``agent`` keeping its streaming capability; already composed agents are returned as-is."""
        if isinstance(agent, MiddlewareAgent):
            return agent
        if isinstance(agent, StreamingAgent):
            return MiddlewareStreamingAgent(agent)
        return MiddlewareAgent(agent)

    @property
    def inner(self) -> Agent:
        return self._inner

    @property
    def middlewares(self) -> List[Middleware]:
        return list(self._middlewares)

    def _copy(self, **changes: Any) -> "MiddlewareAgent":
        fields = {
            "middlewares": self._middlewares,
            "streaming_middlewares": self._streaming_middlewares,
            **changes,
        }
        return type(self)(self._inner, **fields)

    def register_middleware(self, middleware: Any) -> "MiddlewareAgent":
        mw = as_middleware(middleware)
        logger.debug(f"Registering middleware '{mw.name}' on agent '{self.name}'.")
        return self._copy(middlewares=self._middlewares + (mw,))

    def _one_shot_chain(self) -> Agent:
        agent: Agent = self._inner
        for mw in self._middlewares:
            agent = _MiddlewareLink(agent, middleware=mw)
        return agent

    async def generate_reply(
        self,
        messages: Sequence[BaseMessage],
        options: Optional[GenerateReplyOptions] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> BaseMessage:
        return await self._one_shot_chain().generate_reply(messages, options, cancellation_token)


class MiddlewareStreamingAgent(MiddlewareAgent, StreamingAgent):
    """``MiddlewareAgent`` over a streaming agent, with a second, independently registered chain."""

    def __init__(
        self,
        inner: Agent,
        middlewares: Tuple[Middleware, ...] = (),
        streaming_middlewares: Tuple[StreamingMiddleware, ...] = (),
    ):
        if not isinstance(inner, StreamingAgent):
            raise TypeError(f"Agent '{inner.name}' does not support streaming replies.")
        super().__init__(inner, middlewares, streaming_middlewares)

    @property
    def streaming_middlewares(self) -> List[StreamingMiddleware]:
        return list(self._streaming_middlewares)

    def register_middleware(self, middleware: Any) -> "MiddlewareStreamingAgent":
        return super().register_middleware(middleware)  # type: ignore[return-value]

    def register_streaming_middleware(self, middleware: Any) -> "MiddlewareStreamingAgent":
        mw = as_streaming_middleware(middleware)
        logger.debug(f"Registering streaming middleware '{mw.name}' on agent '{self.name}'.")
        return self._copy(streaming_middlewares=self._streaming_middlewares + (mw,))  # type: ignore[return-value]

    def _streaming_chain(self) -> StreamingAgent:
        agent: StreamingAgent = self._inner  # type: ignore[assignment]
        for mw in self._streaming_middlewares:
            agent = _MiddlewareLink(agent, streaming_middleware=mw)
        return agent

    def generate_streaming_reply(
        self,
        messages: Sequence[BaseMessage],
        options: Optional[GenerateReplyOptions] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[StreamItem]:
        return self._streaming_chain().generate_streaming_reply(messages, options, cancellation_token)
