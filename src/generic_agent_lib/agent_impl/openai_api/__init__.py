"""Expose the OpenAI chat agent and its message connector."""

from .agent import OpenAIChatAgent
from .connector import OpenAIMessageConnector

__all__ = ["OpenAIChatAgent", "OpenAIMessageConnector"]
