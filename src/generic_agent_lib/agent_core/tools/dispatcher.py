"""Execution of requested tool calls against a caller-supplied dispatch table."""

from __future__ import annotations

import asyncio
import inspect
import json
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..exceptions import MissingFunctionExecutor, ToolExecutionError
from ..logger import get_logger
from ..messages import ToolCall
from ..streaming.cancellation import CancellationToken, check_cancelled
from .models import FunctionExecutor

logger = get_logger(__name__)


def parse_arguments(function_name: str, raw_args: Any) -> Dict[str, Any]:
    """Normalize serialized tool arguments into a dictionary.

    Handles JSON strings, dictionaries, or None values.

    Args:
        function_name: Name of the function (for error reporting).
        raw_args: The raw arguments (dict, string, or None).

    Returns:
        A dictionary of keyword arguments.

    Raises:
        ToolExecutionError: If arguments cannot be parsed or are not a JSON object.
    """
    if raw_args is None or raw_args == "":
        return {}

    if isinstance(raw_args, dict):
        return raw_args

    if isinstance(raw_args, str):
        try:
            parsed = json.loads(raw_args)
        except json.JSONDecodeError as exc:
            raise ToolExecutionError(f"Failed to parse arguments for function '{function_name}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise ToolExecutionError(
                f"Failed to parse arguments for function '{function_name}': arguments must decode to a JSON object."
            )
        return parsed

    try:
        return dict(raw_args)
    except (TypeError, ValueError) as exc:
        raise ToolExecutionError(f"Failed to parse arguments for function '{function_name}': {exc}") from exc


class FunctionDispatcher:
    """Runs tool calls through a ``{function_name: executor}`` table.

    Calls from one reply run concurrently; results are reassembled in call order and a
    failing call only affects its own result slot.
    """

    # Exceptions that are rendered into the call's result so the backend can react to them.
    # Anything else (ConnectionError, MemoryError, ...) propagates and aborts the turn.
    RECOVERABLE_ERRORS = (
        ToolExecutionError,
        FileNotFoundError,
        FileExistsError,
        PermissionError,
        IsADirectoryError,
        NotADirectoryError,
        ValueError,
        TypeError,
    )

    def __init__(self, function_map: Mapping[str, FunctionExecutor], tool_timeout: float = 180.0) -> None:
        """Initialize the dispatcher.

        Args:
            function_map: Mapping from function name to executor.
            tool_timeout: Timeout in seconds for a single executor. Default is 180 seconds.
        """
        self._function_map = dict(function_map)
        self._tool_timeout = tool_timeout

    def missing(self, calls: Sequence[ToolCall]) -> List[str]:
        """Names of requested functions without an executor, in call order."""
        return [call.function_name for call in calls if call.function_name not in self._function_map]

    def can_dispatch(self, calls: Sequence[ToolCall]) -> bool:
        return bool(calls) and not self.missing(calls)

    async def dispatch(
        self, calls: Sequence[ToolCall], cancellation_token: Optional[CancellationToken] = None
    ) -> List[ToolCall]:
        """Execute every call and return copies carrying their results.

        Args:
            calls: Requested tool calls.
            cancellation_token: Checked before and after awaiting the executors.

        Returns:
            The calls, index-aligned with ``calls``, with ``result`` populated.

        Raises:
            MissingFunctionExecutor: If a call has no executor.
        """
        missing = self.missing(calls)
        if missing:
            msg = f"No executor registered for function(s): {missing}"
            logger.error(msg)
            raise MissingFunctionExecutor(msg)

        check_cancelled(cancellation_token)
        logger.info(f"Dispatching {len(calls)} tool call(s): {[c.function_name for c in calls]}")
        results = await asyncio.gather(*(self._execute(call) for call in calls))
        check_cancelled(cancellation_token)

        return [call.model_copy(update={"result": result}) for call, result in zip(calls, results)]

    async def _execute(self, call: ToolCall) -> str:
        executor = self._function_map[call.function_name]
        logger.debug(f"Executing function '{call.function_name}' (ID: {call.id}) with {call.arguments!r}")
        try:
            result = await self._run(executor, call.arguments)
        except self.RECOVERABLE_ERRORS as exc:
            msg = str(exc)
            logger.warning(f"Recoverable error in '{call.function_name}': {msg} ({type(exc).__name__})")
            return f"Error: {msg}"

        logger.info(f"Function '{call.function_name}' executed successfully.")
        return result if isinstance(result, str) else str(result)

    async def _run(self, executor: FunctionExecutor, arguments: str) -> Any:
        """Run an executor, handling async/sync callables and the timeout.

        Raises:
            ToolExecutionError: If execution times out.
        """
        try:
            if inspect.iscoroutinefunction(executor):
                return await asyncio.wait_for(executor(arguments), timeout=self._tool_timeout)

            result = await asyncio.wait_for(asyncio.to_thread(executor, arguments), timeout=self._tool_timeout)
            if inspect.isawaitable(result):
                result = await asyncio.wait_for(result, timeout=self._tool_timeout)
            return result

        except asyncio.TimeoutError as exc:
            msg = f"Function execution timed out after {self._tool_timeout} seconds."
            raise ToolExecutionError(msg) from exc
