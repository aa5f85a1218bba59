"""Connectors translating between the message model and backend-native content."""

from .base import ContentConnector, ContentPart, Perspective

__all__ = ["ContentConnector", "ContentPart", "Perspective"]
