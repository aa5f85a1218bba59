"""Core agent abstractions: the one-shot and streaming reply contracts."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import (
    TYPE_CHECKING,
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    List,
    Optional,
    Sequence,
    TypeVar,
    Union,
)

from pydantic import BaseModel, ConfigDict

from ..exceptions import AgentProtocolError
from ..logger import get_logger
from ..messages import BaseMessage, Role, StreamingUpdate, TextMessage
from ..streaming.cancellation import CancellationToken, check_cancelled
from ..tools.models import FunctionContract

if TYPE_CHECKING:
    from ..middleware.agent import MiddlewareAgent, MiddlewareStreamingAgent

logger = get_logger(__name__)

T = TypeVar("T")

StreamItem = Union[StreamingUpdate, BaseMessage]


class GenerateReplyOptions(BaseModel):
    """Per-call generation options, passed through middleware untouched unless explicitly rewritten.

    Attributes:
        temperature: Sampling temperature; the valid range depends on the backend.
        max_tokens: Maximum number of tokens to generate.
        stop_sequences: Sequences that end generation.
        functions: Function contracts advertised to the backend.
    """

    model_config = ConfigDict(frozen=True)

    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    stop_sequences: Optional[List[str]] = None
    functions: Optional[List[FunctionContract]] = None


class Agent(ABC):
    """A reply-generating unit.

    Implementations receive the conversation as a read-only sequence and must not keep a
    reference to it beyond the call.
    """

    name: str

    @abstractmethod
    async def generate_reply(
        self,
        messages: Sequence[BaseMessage],
        options: Optional[GenerateReplyOptions] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> BaseMessage:
        """Produce one reply for the given conversation."""
        pass

    async def send(
        self,
        message: Union[str, BaseMessage, None] = None,
        chat_history: Optional[Sequence[BaseMessage]] = None,
        options: Optional[GenerateReplyOptions] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> BaseMessage:
        """
        Append ``message`` to ``chat_history`` and ask the agent for a reply.

        Args:
            message: A message, or a string sent as a user ``TextMessage`` authored by ``"user"``.
            chat_history: Previous messages; not modified.
            options: Generation options.
            cancellation_token: Optional cancellation token.

        Returns:
            The agent's reply.
        """
        history: List[BaseMessage] = list(chat_history or [])
        if isinstance(message, str):
            message = TextMessage(role=Role.USER, content=message, author="user")
        if message is not None:
            history.append(message)
        return await self.generate_reply(history, options, cancellation_token)

    def register_middleware(self, middleware: Any) -> "MiddlewareAgent":
        """Return a new agent wrapping this one with ``middleware`` on the one-shot contract."""
        from ..middleware.agent import MiddlewareAgent

        return MiddlewareAgent.wrap(self).register_middleware(middleware)


class StreamingAgent(Agent):
    """An agent that can also produce its reply as an ordered stream of fragments."""

    @abstractmethod
    def generate_streaming_reply(
        self,
        messages: Sequence[BaseMessage],
        options: Optional[GenerateReplyOptions] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[StreamItem]:
        """Produce the reply lazily. The returned iterator is single-pass."""
        pass

    def register_streaming_middleware(self, middleware: Any) -> "MiddlewareStreamingAgent":
        """Return a new agent wrapping this one with ``middleware`` on the streaming contract."""
        from ..middleware.agent import MiddlewareAgent

        wrapped = MiddlewareAgent.wrap(self)
        return wrapped.register_streaming_middleware(middleware)  # type: ignore[attr-defined]


class BackendAgent(StreamingAgent):
    """Base class for agents that call an external generation backend.

    Only the backend call itself is retried (with exponential backoff); protocol errors and
    cancellation are raised immediately.
    """

    def __init__(self, name: str, max_retries: int = 3, base_retry_delay: float = 1.0):
        self.name = name
        self.max_retries = max_retries
        self.base_retry_delay = base_retry_delay

    async def _execute_with_retry(
        self,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        cancellation_token: Optional[CancellationToken] = None,
        **kwargs: Any,
    ) -> T:
        """
        Executes a backend call with retry logic.

        Args:
            func: The asynchronous function to execute.
            *args: Positional arguments for the function.
            cancellation_token: Checked before every attempt and after every response.
            **kwargs: Keyword arguments for the function.

        Returns:
            The result of the function call.

        Raises:
            Exception: The last encountered exception if all retries fail.
        """
        delay = self.base_retry_delay
        for attempt in range(self.max_retries + 1):
            check_cancelled(cancellation_token)
            try:
                result = await func(*args, **kwargs)
            except AgentProtocolError:
                raise
            except Exception as e:
                if attempt == self.max_retries:
                    logger.error(f"Backend call of agent '{self.name}' failed after {attempt + 1} attempt(s): {e}")
                    raise

                logger.warning(f"API Error (Retry: {attempt + 1}/{self.max_retries}): {e}. Waiting {delay}s...")
                await asyncio.sleep(delay)
                delay *= 2
                continue

            check_cancelled(cancellation_token)
            return result

        raise TimeoutError(f"Failed to get response after {self.max_retries} retries.")
