import asyncio
import os
from typing import List

from dotenv import load_dotenv
from openai import AsyncOpenAI

from generic_agent_lib import OpenAIChatAgent, OpenAIMessageConnector, PrintMessageMiddleware
from generic_agent_lib.agent_core import BaseMessage, TextMessage, Role, aggregate, get_content, setup_logging

# Load environment variables
load_dotenv()


async def main() -> None:
    """
    Main function to run the CLI chat using OpenAI, streaming every reply.
    """
    print("Welcome to the CLI Chat (OpenAI)!")
    setup_logging()

    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        print("Error: OPENAI_API_KEY not found in environment variables.")
        return

    client = AsyncOpenAI(api_key=api_key, base_url=os.getenv("OPENAI_BASE_URL"))
    connector = OpenAIMessageConnector()
    assistant = (
        OpenAIChatAgent(
            client=client,
            name="assistant",
            model_name=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
            system_message="You are a helpful assistant.",
        )
        .register_streaming_middleware(connector)
        .register_streaming_middleware(PrintMessageMiddleware())
    )

    history: List[BaseMessage] = []

    print("\nStart chatting! Type 'exit' or 'quit' to stop.")
    while True:
        user_input = input("\nYou: ").strip()
        if user_input.lower() in ["exit", "quit"]:
            print("Goodbye!")
            break

        if not user_input:
            continue

        history.append(TextMessage(role=Role.USER, content=user_input, author="user"))
        try:
            reply = await aggregate(assistant.generate_streaming_reply(history))
        except Exception as e:
            print(f"An error occurred: {e}")
            history.pop()
            continue

        print(f"Assistant: {get_content(reply)}")
        history.append(reply)


if __name__ == "__main__":
    asyncio.run(main())
