"""Middleware that advertises functions, recognizes tool-call replies and executes them."""

from __future__ import annotations

from typing import AsyncIterator, List, Mapping, Optional, Sequence

from ..base import Agent, GenerateReplyOptions, StreamingAgent, StreamItem
from ..exceptions import MissingFunctionExecutor
from ..logger import get_logger
from ..messages import (
    AggregateMessage,
    BaseMessage,
    Role,
    StreamingUpdate,
    ToolCallMessage,
    ToolCallResultMessage,
)
from ..streaming import CancellationToken, StreamingAggregator, cancellable
from ..tools import FunctionContract, FunctionDispatcher, FunctionExecutor
from .base import MiddlewareContext

logger = get_logger(__name__)


class FunctionCallMiddleware:
    """
    Dispatches the tool calls found in a reply.

    Per turn the middleware goes ``NoCall`` (reply returned as-is) or ``CallRequested``; a
    requested call is either ``Dispatched`` (every function has an executor: the reply becomes
    an ``AggregateMessage`` of request and results) or passed through unchanged so the caller
    can execute it out-of-band. With ``strict=True`` a missing executor raises instead.

    When the incoming conversation already ends with a tool-call request this middleware can
    serve, it answers with the ``ToolCallResultMessage`` directly, without calling the agent.
    """

    def __init__(
        self,
        functions: Optional[Sequence[FunctionContract]] = None,
        function_map: Optional[Mapping[str, FunctionExecutor]] = None,
        strict: bool = False,
        tool_timeout: float = 180.0,
        name: Optional[str] = None,
    ):
        """
        Args:
            functions: Contracts advertised to the backend through the call options.
            function_map: Dispatch table mapping function names to executors.
            strict: Raise ``MissingFunctionExecutor`` instead of passing unknown calls through.
            tool_timeout: Timeout in seconds for a single executor.
            name: Diagnostic name of the middleware.
        """
        self._functions: List[FunctionContract] = list(functions or [])
        self._dispatcher = FunctionDispatcher(function_map or {}, tool_timeout=tool_timeout)
        self._strict = strict
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
        pending = self._pending_request(context)
        if pending is not None:
            return await self._answer_request(pending, agent.name, cancellation_token)

        context = self._advertise(context)
        reply = await agent.generate_reply(context.messages, context.options, cancellation_token)
        return await self._handle_reply(reply, cancellation_token)

    async def invoke_streaming(
        self,
        context: MiddlewareContext,
        agent: StreamingAgent,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[StreamItem]:
        pending = self._pending_request(context)
        if pending is not None:
            yield await self._answer_request(pending, agent.name, cancellation_token)
            return

        context = self._advertise(context)
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
        if not isinstance(completed, ToolCallMessage):
            return

        handled = await self._handle_reply(completed, cancellation_token)
        if isinstance(handled, AggregateMessage):
            yield handled

    def _pending_request(self, context: MiddlewareContext) -> Optional[ToolCallMessage]:
        if not context.messages:
            return None
        last = context.messages[-1]
        if isinstance(last, ToolCallMessage) and self._dispatcher.can_dispatch(last.calls):
            return last
        return None

    async def _answer_request(
        self, request: ToolCallMessage, author: str, cancellation_token: Optional[CancellationToken]
    ) -> ToolCallResultMessage:
        logger.info(f"Agent '{author}' executes tool calls requested by '{request.author}'.")
        calls = await self._dispatcher.dispatch(request.calls, cancellation_token)
        return ToolCallResultMessage(calls=calls, author=author, role=Role.ASSISTANT)

    def _advertise(self, context: MiddlewareContext) -> MiddlewareContext:
        if not self._functions:
            return context

        options = context.options or GenerateReplyOptions()
        advertised = list(options.functions or [])
        known = {f.name for f in advertised}
        advertised.extend(f for f in self._functions if f.name not in known)
        return context.with_options(options.model_copy(update={"functions": advertised}))

    async def _handle_reply(
        self, reply: BaseMessage, cancellation_token: Optional[CancellationToken]
    ) -> BaseMessage:
        if not isinstance(reply, ToolCallMessage):
            return reply

        if self._dispatcher.can_dispatch(reply.calls):
            calls = await self._dispatcher.dispatch(reply.calls, cancellation_token)
            result = ToolCallResultMessage(calls=calls, author=reply.author, role=reply.role)
            return AggregateMessage(first=reply, second=result, author=reply.author, role=reply.role)

        missing = self._dispatcher.missing(reply.calls)
        if self._strict:
            msg = f"No executor registered for requested function(s): {missing}"
            logger.error(msg)
            raise MissingFunctionExecutor(msg)

        logger.debug(f"Passing tool call(s) {missing} through for out-of-band execution.")
        return reply
