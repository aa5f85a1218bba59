"""Conversation orchestration between agents."""

from .orchestrator import TERMINATE, GroupChat, initiate_chat, is_terminate_message, round_robin

__all__ = ["TERMINATE", "GroupChat", "initiate_chat", "is_terminate_message", "round_robin"]
