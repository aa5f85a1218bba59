"""Collect concrete backend agents and their content connectors."""

from .gemini import GeminiChatAgent, GeminiContentConnector
from .openai_api import OpenAIChatAgent, OpenAIMessageConnector

__all__ = [
    "GeminiChatAgent",
    "GeminiContentConnector",
    "OpenAIChatAgent",
    "OpenAIMessageConnector",
]
