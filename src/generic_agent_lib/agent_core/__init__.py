"""Public exports for the provider-agnostic agent protocol."""

from .logger import get_logger, setup_logging
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
from .messages import (
    Role,
    BaseMessage,
    TextMessage,
    ImageMessage,
    MultiModalMessage,
    ToolCall,
    ToolCallMessage,
    ToolCallResultMessage,
    AggregateMessage,
    LegacyMessage,
    Envelope,
    StreamingUpdate,
    TextUpdate,
    ToolCallFragment,
    ToolCallUpdate,
    get_content,
    get_tool_calls,
    format_message,
)
from .streaming import CancellationToken, StreamingAggregator, aggregate
from .tools import FunctionContract, FunctionParameter, FunctionRegistry
from .base import Agent, StreamingAgent, BackendAgent, GenerateReplyOptions, StreamItem, DefaultReplyAgent
from .middleware import (
    MiddlewareContext,
    Middleware,
    StreamingMiddleware,
    MiddlewareAgent,
    MiddlewareStreamingAgent,
    FunctionCallMiddleware,
    PrintMessageMiddleware,
)
from .connectors import ContentConnector, Perspective
from .conversation import TERMINATE, GroupChat, initiate_chat, is_terminate_message

__all__ = [
    "get_logger",
    "setup_logging",
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
    "Role",
    "BaseMessage",
    "TextMessage",
    "ImageMessage",
    "MultiModalMessage",
    "ToolCall",
    "ToolCallMessage",
    "ToolCallResultMessage",
    "AggregateMessage",
    "LegacyMessage",
    "Envelope",
    "StreamingUpdate",
    "TextUpdate",
    "ToolCallFragment",
    "ToolCallUpdate",
    "get_content",
    "get_tool_calls",
    "format_message",
    "CancellationToken",
    "StreamingAggregator",
    "aggregate",
    "FunctionContract",
    "FunctionParameter",
    "FunctionRegistry",
    "Agent",
    "StreamingAgent",
    "BackendAgent",
    "GenerateReplyOptions",
    "StreamItem",
    "DefaultReplyAgent",
    "MiddlewareContext",
    "Middleware",
    "StreamingMiddleware",
    "MiddlewareAgent",
    "MiddlewareStreamingAgent",
    "FunctionCallMiddleware",
    "PrintMessageMiddleware",
    "ContentConnector",
    "Perspective",
    "TERMINATE",
    "GroupChat",
    "initiate_chat",
    "is_terminate_message",
]
