"""Generic Agent Library - a provider-agnostic message protocol for cooperating agents."""

from .agent_core import (
    Agent,
    StreamingAgent,
    GenerateReplyOptions,
    DefaultReplyAgent,
    Role,
    BaseMessage,
    TextMessage,
    ImageMessage,
    MultiModalMessage,
    ToolCall,
    ToolCallMessage,
    ToolCallResultMessage,
    AggregateMessage,
    Envelope,
    FunctionContract,
    FunctionRegistry,
    FunctionCallMiddleware,
    PrintMessageMiddleware,
    GroupChat,
    initiate_chat,
    TERMINATE,
    CancellationToken,
    aggregate,
)
from .agent_impl.gemini import GeminiChatAgent, GeminiContentConnector
from .agent_impl.openai_api import OpenAIChatAgent, OpenAIMessageConnector

__all__ = [
    "Agent",
    "StreamingAgent",
    "GenerateReplyOptions",
    "DefaultReplyAgent",
    "Role",
    "BaseMessage",
    "TextMessage",
    "ImageMessage",
    "MultiModalMessage",
    "ToolCall",
    "ToolCallMessage",
    "ToolCallResultMessage",
    "AggregateMessage",
    "Envelope",
    "FunctionContract",
    "FunctionRegistry",
    "FunctionCallMiddleware",
    "PrintMessageMiddleware",
    "GroupChat",
    "initiate_chat",
    "TERMINATE",
    "CancellationToken",
    "aggregate",
    "GeminiChatAgent",
    "GeminiContentConnector",
    "OpenAIChatAgent",
    "OpenAIMessageConnector",
]
