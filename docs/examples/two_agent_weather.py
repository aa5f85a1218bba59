"""
Two agents talking until the user proxy sends the termination sentinel.

The assistant is backed by Gemini and may request the ``get_weather`` function; the user proxy
executes it and replies with the result, then ends the chat once the assistant answers in text.
"""

import asyncio
import os
from typing import Annotated, Optional

from dotenv import load_dotenv
from google import genai
from pydantic import Field

from generic_agent_lib import (
    TERMINATE,
    DefaultReplyAgent,
    FunctionCallMiddleware,
    FunctionRegistry,
    GeminiChatAgent,
    GeminiContentConnector,
    PrintMessageMiddleware,
    initiate_chat,
)
from generic_agent_lib.agent_core import Agent, BaseMessage, MiddlewareContext, Role, TextMessage, get_tool_calls
from generic_agent_lib.agent_core import CancellationToken, setup_logging

load_dotenv()

registry = FunctionRegistry()


@registry.function
def get_weather(city: Annotated[str, Field(description="Name of the city.")]) -> str:
    """Get the current weather of a city."""
    return f"The weather in {city} is sunny"


async def terminate_unless_tool_call(
    context: MiddlewareContext, agent: Agent, cancellation_token: Optional[CancellationToken] = None
) -> BaseMessage:
    if get_tool_calls(context.messages[-1]):
        return await agent.generate_reply(context.messages, context.options, cancellation_token)
    return TextMessage(role=Role.ASSISTANT, content=TERMINATE, author=agent.name)


async def main() -> None:
    setup_logging()
    api_key = os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY")
    if not api_key:
        print("Error: GOOGLE_API_KEY not found in environment variables.")
        return

    assistant = (
        GeminiChatAgent(
            aclient=genai.Client(api_key=api_key).aio,
            name="assistant",
            model_name=os.getenv("GEMINI_MODEL", "gemini-flash-latest"),
            system_instruction="You are a helpful assistant. Use the available functions when useful.",
            functions=registry.contracts,
        )
        .register_middleware(GeminiContentConnector())
        .register_middleware(PrintMessageMiddleware())
    )

    user = (
        DefaultReplyAgent(name="user", default_reply=TERMINATE)
        .register_middleware(FunctionCallMiddleware(function_map=registry.function_map))
        .register_middleware(terminate_unless_tool_call)
        .register_middleware(PrintMessageMiddleware())
    )

    history = await initiate_chat(user, assistant, "What's the weather in New York?", max_round=10)
    print(f"Conversation finished after {len(history)} messages.")


if __name__ == "__main__":
    asyncio.run(main())
