"""Bounded turn-taking between agents with sentinel-based termination."""

from typing import Callable, List, Optional, Sequence, Union

from ..base import Agent
from ..logger import get_logger
from ..messages import BaseMessage, Role, TextMessage, get_content
from ..streaming import CancellationToken, check_cancelled

logger = get_logger(__name__)

TERMINATE = "[GROUPCHAT_TERMINATE]"
"""Reply content that ends a conversation."""

SpeakerSelector = Callable[[Sequence[Agent], Sequence[BaseMessage]], Agent]


def is_terminate_message(message: BaseMessage, sentinel: str = TERMINATE) -> bool:
    """Whether the rendered text content of ``message`` is exactly ``sentinel`` (case-sensitive)."""
    return get_content(message) == sentinel


def round_robin(agents: Sequence[Agent], history: Sequence[BaseMessage]) -> Agent:
    """Pick the agent after the author of the last message, or the first agent."""
    if history:
        names = [agent.name for agent in agents]
        last_author = history[-1].author
        if last_author in names:
            return agents[(names.index(last_author) + 1) % len(agents)]
    return agents[0]


class GroupChat:
    """
    Drives a conversation between two or more agents.

    Each turn the selected agent receives the full history and its reply is appended. The
    conversation ends when a reply equals the sentinel or after ``max_round`` turns. Errors
    raised by an agent abort the run.
    """

    def __init__(
        self,
        agents: Sequence[Agent],
        speaker_selector: Optional[SpeakerSelector] = None,
        sentinel: str = TERMINATE,
    ):
        """
        Args:
            agents: Participating agents; names must be unique.
            speaker_selector: Chooses the next speaker from the agents and the history.
                Defaults to round-robin after the last speaker.
            sentinel: Reply content that terminates the conversation.
        """
        if not agents:
            raise ValueError("GroupChat requires at least one agent.")
        names = [agent.name for agent in agents]
        if len(set(names)) != len(names):
            raise ValueError(f"Agent names must be unique, got {names}.")

        self.agents = list(agents)
        self.speaker_selector = speaker_selector or round_robin
        self.sentinel = sentinel

    def select_next_speaker(self, history: Sequence[BaseMessage]) -> Agent:
        speaker = self.speaker_selector(self.agents, history)
        if speaker not in self.agents:
            raise ValueError(f"Selected speaker '{speaker.name}' is not part of the group chat.")
        return speaker

    async def run(
        self,
        history: Optional[Sequence[BaseMessage]] = None,
        max_round: int = 10,
        cancellation_token: Optional[CancellationToken] = None,
        initial_speaker: Optional[Agent] = None,
    ) -> List[BaseMessage]:
        """
        Run the conversation.

        Args:
            history: Messages to start from; not modified.
            max_round: Maximum number of replies to append.
            cancellation_token: Optional cancellation token, checked before every turn.
            initial_speaker: Agent speaking first instead of the selector's choice.

        Returns:
            The history followed by every appended reply.
        """
        messages: List[BaseMessage] = list(history or [])
        speaker = initial_speaker

        for turn in range(1, max_round + 1):
            check_cancelled(cancellation_token)
            if speaker is None:
                speaker = self.select_next_speaker(messages)

            reply = await speaker.generate_reply(tuple(messages), None, cancellation_token)
            messages.append(reply)
            logger.info(f"Turn {turn}: '{speaker.name}' replied with {type(reply).__name__}.")

            if is_terminate_message(reply, self.sentinel):
                logger.info(f"Conversation terminated by '{speaker.name}' after {turn} turn(s).")
                break
            speaker = None

        return messages


async def initiate_chat(
    sender: Agent,
    receiver: Agent,
    message: Union[str, BaseMessage, None] = None,
    max_round: int = 10,
    chat_history: Optional[Sequence[BaseMessage]] = None,
    cancellation_token: Optional[CancellationToken] = None,
) -> List[BaseMessage]:
    """
    Run a two-agent conversation started by ``sender``.

    The initiating message counts as the first turn: with ``max_round=10`` at most ten
    messages are appended in total, the initiating one included.

    Args:
        sender: The agent opening the conversation.
        receiver: The agent answering first.
        message: Opening message; a string becomes a user ``TextMessage`` authored by ``sender``.
            Without a message the sender generates the opening turn from ``chat_history``.
        max_round: Maximum number of appended messages.
        chat_history: Earlier messages to continue from; not modified.
        cancellation_token: Optional cancellation token.

    Returns:
        The full conversation.
    """
    chat = GroupChat([sender, receiver])
    history: List[BaseMessage] = list(chat_history or [])

    if message is None:
        return await chat.run(history, max_round, cancellation_token, initial_speaker=sender)

    if isinstance(message, str):
        message = TextMessage(role=Role.USER, content=message, author=sender.name)
    history.append(message)
    logger.info(f"Turn 1: '{sender.name}' initiated the chat with {type(message).__name__}.")

    if is_terminate_message(message, chat.sentinel) or max_round <= 1:
        return history
    return await chat.run(history, max_round - 1, cancellation_token, initial_speaker=receiver)
