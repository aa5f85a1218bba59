"""Export the protocol and tool exception hierarchies used across the library."""

from .exceptions import (
    AgentProtocolError,
    UnsupportedContentKind,
    AmbiguousContentReference,
    InvalidStreamingChoice,
    SelfAuthoredMultiModalRejected,
    SelfAuthoredFunctionCallRejected,
    MissingFunctionExecutor,
    UnknownMessageVariant,
    StreamingAggregationError,
    OperationCancelledError,
    LLMToolError,
    ToolRegistrationError,
    ToolNotFoundError,
    ToolExecutionError,
    ToolValidationError,
)

__all__ = [
    "AgentProtocolError",
    "UnsupportedContentKind",
    "AmbiguousContentReference",
    "InvalidStreamingChoice",
    "SelfAuthoredMultiModalRejected",
    "SelfAuthoredFunctionCallRejected",
    "MissingFunctionExecutor",
    "UnknownMessageVariant",
    "StreamingAggregationError",
    "OperationCancelledError",
    "LLMToolError",
    "ToolRegistrationError",
    "ToolNotFoundError",
    "ToolExecutionError",
    "ToolValidationError",
]
