import os
from typing import Any, AsyncIterator, List, Optional, Sequence

import pytest
from dotenv import load_dotenv, find_dotenv
from google.genai.client import Client, AsyncClient
from openai import AsyncOpenAI

from generic_agent_lib.agent_core import (
    BaseMessage,
    GenerateReplyOptions,
    StreamingAgent,
    StreamItem,
    CancellationToken,
)

# Load environment variables from .env file
env_file = find_dotenv()
if env_file:
    load_dotenv(env_file)


class ScriptedAgent(StreamingAgent):
    """Test agent replaying prepared replies and recording what it was called with."""

    def __init__(
        self,
        name: str,
        replies: Optional[Sequence[BaseMessage]] = None,
        stream: Optional[Sequence[StreamItem]] = None,
    ):
        self.name = name
        self.replies: List[BaseMessage] = list(replies or [])
        self.stream: List[StreamItem] = list(stream or [])
        self.calls: List[Sequence[BaseMessage]] = []
        self.options: List[Optional[GenerateReplyOptions]] = []

    async def generate_reply(
        self,
        messages: Sequence[BaseMessage],
        options: Optional[GenerateReplyOptions] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> BaseMessage:
        self.calls.append(list(messages))
        self.options.append(options)
        return self.replies.pop(0)

    async def generate_streaming_reply(
        self,
        messages: Sequence[BaseMessage],
        options: Optional[GenerateReplyOptions] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[StreamItem]:
        self.calls.append(list(messages))
        self.options.append(options)
        for item in self.stream:
            yield item


@pytest.fixture
def scripted_agent_cls() -> type:
    return ScriptedAgent


@pytest.fixture
def genai_client() -> AsyncClient:
    api_key = os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY") or "dummy_key"
    return Client(api_key=api_key).aio


@pytest.fixture
def openai_client() -> AsyncOpenAI:
    api_key = os.getenv("OPENAI_API_KEY") or "dummy_key"
    return AsyncOpenAI(api_key=api_key, base_url=os.getenv("OPENAI_BASE_URL"))


@pytest.fixture(scope="session")
def vcr_config() -> dict[str, Any]:
    return {
        "cassette_library_dir": "tests/cassettes",
        "record_mode": os.getenv("VCR_RECORD_MODE", "once"),
        "match_on": ["method", "path", "query"],
        "filter_headers": [
            "authorization",
            "openai-organization",
            "x-goog-api-key",
            "x-api-key",
            "api-key",
        ],
        "filter_query_parameters": ["key", "api_key", "access_token"],
        "decode_compressed_response": True,
    }
