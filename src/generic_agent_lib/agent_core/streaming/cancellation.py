"""Cooperative cancellation shared by agents, middleware and streams."""

from __future__ import annotations

from typing import AsyncIterator, Optional, TypeVar

from ..exceptions import OperationCancelledError
from ..logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class CancellationToken:
    """A flag passed from the outermost call down to the backend and the stream pull loop.

    Every suspension point (awaiting a backend response, the next fragment, or a tool
    executor) calls ``raise_if_cancelled`` before and after suspending.
    """

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        """Request cancellation of the operation this token was passed to."""
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        """Raise ``OperationCancelledError`` when cancellation was requested."""
        if self._cancelled:
            logger.debug("Cancellation observed, stopping in-flight operation.")
            raise OperationCancelledError("Operation was cancelled.")


def check_cancelled(token: Optional[CancellationToken]) -> None:
    """``token.raise_if_cancelled()`` that tolerates a missing token."""
    if token is not None:
        token.raise_if_cancelled()


async def cancellable(stream: AsyncIterator[T], token: Optional[CancellationToken]) -> AsyncIterator[T]:
    """Re-yield ``stream`` and stop with ``OperationCancelledError`` once ``token`` is cancelled.

    The token is checked before pulling each upstream element and again before handing it
    to the consumer, so no fragment is produced after cancellation.

    Args:
        stream: Upstream asynchronous sequence.
        token: Optional cancellation token.

    Yields:
        The upstream elements in order.
    """
    check_cancelled(token)
    async for item in stream:
        check_cancelled(token)
        yield item
        check_cancelled(token)
