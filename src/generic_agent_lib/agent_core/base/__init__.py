"""Re-export the agent contracts and shared option models used by all backends."""

from .base import Agent, StreamingAgent, BackendAgent, GenerateReplyOptions, StreamItem
from .default_reply import DefaultReplyAgent

__all__ = [
    "Agent",
    "StreamingAgent",
    "BackendAgent",
    "GenerateReplyOptions",
    "StreamItem",
    "DefaultReplyAgent",
]
