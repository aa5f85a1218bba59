"""
Exception hierarchy of the agent library.

Two families live here. ``AgentProtocolError`` and its subclasses signal that a message,
content item or streaming fragment has no valid mapping at some boundary (connector,
aggregator, dispatcher). ``LLMToolError`` and its subclasses cover registration and execution
of callable functions. Both are raised at the point of detection and never retried.
"""


class AgentProtocolError(Exception):
    """Base exception for message protocol violations."""

    pass


class UnsupportedContentKind(AgentProtocolError):
    """Raised when a message or native content item has no normalized mapping."""

    pass


class AmbiguousContentReference(AgentProtocolError):
    """Raised when an image content item lacks a resolvable location."""

    pass


class InvalidStreamingChoice(AgentProtocolError):
    """Raised when a streaming fragment reports a choice index other than 0."""

    pass


class SelfAuthoredMultiModalRejected(AgentProtocolError):
    """Raised when a multi-modal message authored by the current agent is sent back to its backend."""

    pass


class SelfAuthoredFunctionCallRejected(AgentProtocolError):
    """Raised when a legacy function-call message authored by the current agent is sent to its backend."""

    pass


class MissingFunctionExecutor(AgentProtocolError):
    """Raised when a requested tool call has no executor and pass-through is disabled."""

    pass


class UnknownMessageVariant(AgentProtocolError):
    """Raised when a value outside the closed message variant set is matched exhaustively."""

    pass


class StreamingAggregationError(AgentProtocolError):
    """Raised when a fragment sequence cannot be folded into one message."""

    pass


class OperationCancelledError(AgentProtocolError):
    """Raised when a cancellation token is observed at a suspension point."""

    pass


class LLMToolError(Exception):
    """Base exception for all tool-related errors."""

    pass


class ToolRegistrationError(LLMToolError):
    """Raised when there is an error registering a function."""

    pass


class ToolNotFoundError(LLMToolError):
    """Raised when a requested function is not found in the registry."""

    pass


class ToolExecutionError(LLMToolError):
    """Raised when a function fails during execution."""

    pass


class ToolValidationError(LLMToolError):
    """Raised when function parameters or definition are invalid."""

    pass
