import asyncio
from typing import Any, AsyncIterator, List
from unittest.mock import AsyncMock

import pytest

from generic_agent_lib.agent_core import BackendAgent, CancellationToken, TextUpdate
from generic_agent_lib.agent_core.exceptions import OperationCancelledError
from generic_agent_lib.agent_core.messages import ToolCall
from generic_agent_lib.agent_core.streaming import cancellable, check_cancelled
from generic_agent_lib.agent_core.tools import FunctionDispatcher


class IdleBackend(BackendAgent):
    async def generate_reply(self, messages: Any, options: Any = None, cancellation_token: Any = None) -> Any:
        raise NotImplementedError

    async def generate_streaming_reply(self, messages: Any, options: Any = None, cancellation_token: Any = None) -> Any:
        raise NotImplementedError
        yield


async def _numbers(count: int) -> AsyncIterator[int]:
    for i in range(count):
        yield i


def test_token_starts_uncancelled() -> None:
    token = CancellationToken()

    assert not token.cancelled
    token.raise_if_cancelled()
    check_cancelled(None)

    token.cancel()
    assert token.cancelled
    with pytest.raises(OperationCancelledError):
        check_cancelled(token)


@pytest.mark.asyncio
async def test_cancellable_stops_after_cancel() -> None:
    token = CancellationToken()
    received: List[int] = []

    with pytest.raises(OperationCancelledError):
        async for value in cancellable(_numbers(10), token):
            received.append(value)
            if value == 2:
                token.cancel()

    assert received == [0, 1, 2]


@pytest.mark.asyncio
async def test_cancellable_without_token_passes_everything() -> None:
    assert [v async for v in cancellable(_numbers(3), None)] == [0, 1, 2]


@pytest.mark.asyncio
async def test_retry_loop_stops_when_cancelled_between_attempts() -> None:
    token = CancellationToken()
    backend = IdleBackend("backend", max_retries=5, base_retry_delay=0.01)

    async def failing() -> str:
        token.cancel()
        raise ConnectionError("flaky")

    call = AsyncMock(side_effect=failing)

    with pytest.raises(OperationCancelledError):
        await backend._execute_with_retry(call, cancellation_token=token)

    assert call.call_count == 1


@pytest.mark.asyncio
async def test_response_after_cancel_is_discarded() -> None:
    token = CancellationToken()
    backend = IdleBackend("backend")

    async def respond() -> str:
        token.cancel()
        return "too late"

    with pytest.raises(OperationCancelledError):
        await backend._execute_with_retry(respond, cancellation_token=token)


@pytest.mark.asyncio
async def test_dispatcher_checks_token_after_executors() -> None:
    token = CancellationToken()

    async def slow(arguments: str) -> str:
        await asyncio.sleep(0)
        token.cancel()
        return "done"

    dispatcher = FunctionDispatcher({"slow": slow})

    with pytest.raises(OperationCancelledError):
        await dispatcher.dispatch([ToolCall(function_name="slow", arguments="{}")], token)


@pytest.mark.asyncio
async def test_dispatcher_timeout_becomes_error_result() -> None:
    async def hang(arguments: str) -> str:
        await asyncio.sleep(1)
        return "never"

    dispatcher = FunctionDispatcher({"hang": hang}, tool_timeout=0.01)

    [call] = await dispatcher.dispatch([ToolCall(function_name="hang")])

    assert call.result is not None
    assert call.result.startswith("Error: Function execution timed out")


@pytest.mark.asyncio
async def test_streaming_fragments_stop_at_cancel() -> None:
    token = CancellationToken()

    async def stream() -> AsyncIterator[TextUpdate]:
        for delta in ("a", "b", "c"):
            yield TextUpdate(delta=delta, author="bot")

    seen: List[str] = []
    with pytest.raises(OperationCancelledError):
        async for update in cancellable(stream(), token):
            seen.append(update.delta)
            token.cancel()

    assert seen == ["a"]
