from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Sequence, cast

from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion, ChatCompletionToolParam

from generic_agent_lib.agent_core import BackendAgent, GenerateReplyOptions, StreamItem, get_logger
from generic_agent_lib.agent_core.exceptions import UnsupportedContentKind
from generic_agent_lib.agent_core.messages import BaseMessage, Envelope, Role
from generic_agent_lib.agent_core.streaming import CancellationToken, cancellable
from generic_agent_lib.agent_core.tools import FunctionContract

logger = get_logger(__name__)


class OpenAIChatAgent(BackendAgent):
    """
    Agent backed by OpenAI's chat-completions API.

    The agent only speaks the native message format: it accepts ``Envelope`` messages whose
    content is a chat-completions message dictionary and replies with
    ``Envelope[ChatCompletionMessage]`` (``Envelope[ChatCompletionChunk]`` per chunk when
    streaming). Register an ``OpenAIMessageConnector`` to talk to it with regular messages.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        name: str,
        model_name: str,
        system_message: Optional[str] = None,
        temperature: float = 1.0,
        max_tokens: int = 3000,
        functions: Optional[Sequence[FunctionContract]] = None,
        max_retries: int = 3,
        base_retry_delay: float = 1.0,
    ):
        """
        Initializes the OpenAI chat agent.

        Args:
            client: The initialized AsyncOpenAI client.
            name: Name of the agent; replies are authored under this name.
            model_name: The identifier for the OpenAI model to use (e.g., 'gpt-4o-mini').
            system_message: Optional system instruction prepended to every request.
            temperature: Default sampling temperature, overridden by the call options.
            max_tokens: Default maximum number of generated tokens.
            functions: Function contracts always advertised to the model.
            max_retries: Maximum number of retries of a failing backend call.
            base_retry_delay: Initial delay in seconds between retries, doubled on each retry.
        """
        super().__init__(name, max_retries=max_retries, base_retry_delay=base_retry_delay)
        self.client: AsyncOpenAI = client
        self.model: str = model_name
        self.system_message = system_message
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.functions: List[FunctionContract] = list(functions or [])

    async def generate_reply(
        self,
        messages: Sequence[BaseMessage],
        options: Optional[GenerateReplyOptions] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> BaseMessage:
        request = self._build_request(messages, options)
        logger.debug(f"Sending {len(request['messages'])} message(s) to OpenAI model '{self.model}'.")

        response: ChatCompletion = await self._execute_with_retry(
            self.client.chat.completions.create,
            cancellation_token=cancellation_token,
            **request,
        )
        if not response.choices:
            msg = f"OpenAI response for agent '{self.name}' has no choices."
            logger.error(msg)
            raise UnsupportedContentKind(msg)

        logger.debug(f"OpenAI response received. Finish reason: {response.choices[0].finish_reason}")
        return Envelope(content=response.choices[0].message, author=self.name, role=Role.ASSISTANT)

    async def generate_streaming_reply(
        self,
        messages: Sequence[BaseMessage],
        options: Optional[GenerateReplyOptions] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[StreamItem]:
        request = self._build_request(messages, options)
        logger.debug(f"Streaming {len(request['messages'])} message(s) to OpenAI model '{self.model}'.")

        stream = await self._execute_with_retry(
            self.client.chat.completions.create,
            cancellation_token=cancellation_token,
            stream=True,
            **request,
        )
        async for chunk in cancellable(stream, cancellation_token):
            yield Envelope(content=chunk, author=self.name, role=Role.ASSISTANT)

    def _build_request(self, messages: Sequence[BaseMessage], options: Optional[GenerateReplyOptions]) -> Dict[str, Any]:
        options = options or GenerateReplyOptions()

        native: List[Dict[str, Any]] = []
        if self.system_message:
            native.append({"role": "system", "content": self.system_message})
        for message in messages:
            if not isinstance(message, Envelope) or not isinstance(message.content, dict):
                msg = (
                    f"OpenAIChatAgent '{self.name}' only accepts Envelope[dict] messages, got "
                    f"{type(message).__name__}. Register an OpenAIMessageConnector."
                )
                logger.error(msg)
                raise UnsupportedContentKind(msg)
            native.append(message.content)

        request: Dict[str, Any] = {
            "model": self.model,
            # The SDK expects a union of typed message params; the dicts are structurally compatible.
            "messages": cast(Iterable[Any], native),
            "temperature": options.temperature if options.temperature is not None else self.temperature,
            "max_tokens": options.max_tokens or self.max_tokens,
        }
        if options.stop_sequences:
            request["stop"] = options.stop_sequences

        tools = self._tools(self.functions + list(options.functions or []))
        if tools:
            request["tools"] = tools
        return request

    @staticmethod
    def _tools(functions: Sequence[FunctionContract]) -> List[ChatCompletionToolParam]:
        tools: List[ChatCompletionToolParam] = []
        seen = set()
        for function in functions:
            if function.name in seen:
                continue
            seen.add(function.name)
            tools.append(
                {
                    "type": "function",
                    "function": {
                        "name": function.name,
                        "description": function.description or "",
                        "parameters": function.to_json_schema(),
                    },
                }
            )
        return tools
