"""Middleware contracts wrapped around an agent's one-shot and streaming replies."""

from __future__ import annotations

import inspect
from dataclasses import dataclass, replace
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Protocol, Tuple, runtime_checkable

from ..base import Agent, GenerateReplyOptions, StreamingAgent, StreamItem
from ..messages import BaseMessage
from ..streaming.cancellation import CancellationToken


@dataclass(frozen=True)
class MiddlewareContext:
    """What a middleware receives from the layer outside it.

    Attributes:
        messages: Read-only view of the conversation.
        options: Generation options of the call.
    """

    messages: Tuple[BaseMessage, ...]
    options: Optional[GenerateReplyOptions] = None

    def with_messages(self, messages: Any) -> "MiddlewareContext":
        return replace(self, messages=tuple(messages))

    def with_options(self, options: Optional[GenerateReplyOptions]) -> "MiddlewareContext":
        return replace(self, options=options)


@runtime_checkable
class Middleware(Protocol):
    """
    Behavior wrapped around the one-shot reply contract.

    ``agent`` is the continuation: the next middleware or the wrapped agent. A middleware may
    rewrite the context before calling it, rewrite the reply afterwards, or not call it at all.
    """

    @property
    def name(self) -> Optional[str]: ...

    async def invoke(
        self,
        context: MiddlewareContext,
        agent: Agent,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> BaseMessage: ...


@runtime_checkable
class StreamingMiddleware(Protocol):
    """
    Behavior wrapped around the streaming reply contract, transforming fragment by fragment.
    """

    @property
    def name(self) -> Optional[str]: ...

    def invoke_streaming(
        self,
        context: MiddlewareContext,
        agent: StreamingAgent,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[StreamItem]: ...


MiddlewareFunc = Callable[[MiddlewareContext, Agent, Optional[CancellationToken]], Awaitable[BaseMessage]]
StreamingMiddlewareFunc = Callable[[MiddlewareContext, StreamingAgent, Optional[CancellationToken]], AsyncIterator[StreamItem]]


class FunctionMiddleware:
    """Adapts a plain async callable ``(context, agent, cancellation_token) -> message`` into a middleware."""

    def __init__(self, func: MiddlewareFunc, name: Optional[str] = None):
        if not inspect.iscoroutinefunction(func):
            raise TypeError("FunctionMiddleware expects an async callable.")
        self._func = func
        self._name = name or getattr(func, "__name__", None) or type(self).__name__

    @property
    def name(self) -> Optional[str]:
        return self._name

    async def invoke(
        self,
        context: MiddlewareContext,
        agent: Agent,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> BaseMessage:
        return await self._func(context, agent, cancellation_token)


class FunctionStreamingMiddleware:
    """Adapts an async generator function ``(context, agent, cancellation_token)`` into a streaming middleware."""

    def __init__(self, func: StreamingMiddlewareFunc, name: Optional[str] = None):
        if not inspect.isasyncgenfunction(func):
            raise TypeError("FunctionStreamingMiddleware expects an async generator function.")
        self._func = func
        self._name = name or getattr(func, "__name__", None) or type(self).__name__

    @property
    def name(self) -> Optional[str]:
        return self._name

    def invoke_streaming(
        self,
        context: MiddlewareContext,
        agent: StreamingAgent,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[StreamItem]:
        return self._func(context, agent, cancellation_token)


def as_middleware(middleware: Any) -> Middleware:
    if isinstance(middleware, Middleware):
        return middleware
    if callable(middleware):
        return FunctionMiddleware(middleware)
    raise TypeError(f"Cannot use {type(middleware).__name__} as middleware.")


def as_streaming_middleware(middleware: Any) -> StreamingMiddleware:
    if isinstance(middleware, StreamingMiddleware):
        return middleware
    if callable(middleware):
        return FunctionStreamingMiddleware(middleware)
    raise TypeError(f"Cannot use {type(middleware).__name__} as streaming middleware.")
