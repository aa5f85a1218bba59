"""Gemini agent implementation."""

from .agent import GeminiChatAgent
from .connector import GeminiContentConnector

__all__ = ["GeminiChatAgent", "GeminiContentConnector"]
