from typing import AsyncIterator, List, Optional, Sequence, Tuple

from google.genai import types
from google.genai.client import AsyncClient
from google.genai.types import GenerateContentResponse

from generic_agent_lib.agent_core import BackendAgent, GenerateReplyOptions, StreamItem, get_logger
from generic_agent_lib.agent_core.exceptions import UnsupportedContentKind
from generic_agent_lib.agent_core.messages import BaseMessage, Envelope, Role
from generic_agent_lib.agent_core.streaming import CancellationToken, cancellable
from generic_agent_lib.agent_core.tools import FunctionContract
from .schema_sanitizer import declaration_parameters

logger = get_logger(__name__)


class GeminiChatAgent(BackendAgent):
    """
    Agent backed by Google's Gemini models.

    Accepts ``Envelope[types.Content]`` messages and replies with
    ``Envelope[GenerateContentResponse]`` (one envelope per chunk when streaming). Contents with
    role ``system`` are not sent as history; their text is appended to the system instruction.
    """

    def __init__(
        self,
        aclient: AsyncClient,
        name: str,
        model_name: str,
        system_instruction: Optional[str] = None,
        temperature: float = 1.0,
        max_tokens: int = 3000,
        functions: Optional[Sequence[FunctionContract]] = None,
        max_retries: int = 3,
        base_retry_delay: float = 1.0,
    ):
        """
        Initializes the Gemini chat agent.

        Args:
            aclient: The initialized Google GenAI async client (``genai.Client(...).aio``).
            name: Name of the agent; replies are authored under this name.
            model_name: The identifier for the Gemini model to use (e.g., 'gemini-flash-latest').
            system_instruction: A system-level instruction or persona for the model.
            temperature: Default sampling temperature, overridden by the call options.
            max_tokens: Default maximum number of generated tokens.
            functions: Function contracts always advertised to the model.
            max_retries: Maximum number of retries of a failing backend call.
            base_retry_delay: Initial delay in seconds between retries, doubled on each retry.
        """
        super().__init__(name, max_retries=max_retries, base_retry_delay=base_retry_delay)
        self.client: AsyncClient = aclient
        self.model: str = model_name
        self.system_instruction = system_instruction
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.functions: List[FunctionContract] = list(functions or [])
        logger.info(f"Initialized GeminiChatAgent '{name}' with model='{model_name}', temp={temperature}")

    async def generate_reply(
        self,
        messages: Sequence[BaseMessage],
        options: Optional[GenerateReplyOptions] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> BaseMessage:
        contents, config = self._build_request(messages, options)
        logger.debug(f"Sending {len(contents)} content(s) to Gemini model '{self.model}'.")

        response: GenerateContentResponse = await self._execute_with_retry(
            self.client.models.generate_content,
            cancellation_token=cancellation_token,
            model=self.model,
            contents=contents,
            config=config,
        )
        return Envelope(content=response, author=self.name, role=Role.ASSISTANT)

    async def generate_streaming_reply(
        self,
        messages: Sequence[BaseMessage],
        options: Optional[GenerateReplyOptions] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[StreamItem]:
        contents, config = self._build_request(messages, options)
        logger.debug(f"Streaming {len(contents)} content(s) to Gemini model '{self.model}'.")

        stream = await self._execute_with_retry(
            self.client.models.generate_content_stream,
            cancellation_token=cancellation_token,
            model=self.model,
            contents=contents,
            config=config,
        )
        async for chunk in cancellable(stream, cancellation_token):
            yield Envelope(content=chunk, author=self.name, role=Role.ASSISTANT)

    def _build_request(
        self, messages: Sequence[BaseMessage], options: Optional[GenerateReplyOptions]
    ) -> Tuple[List[types.Content], types.GenerateContentConfig]:
        options = options or GenerateReplyOptions()

        instructions = [self.system_instruction] if self.system_instruction else []
        contents: List[types.Content] = []
        for message in messages:
            if not isinstance(message, Envelope) or not isinstance(message.content, types.Content):
                msg = (
                    f"GeminiChatAgent '{self.name}' only accepts Envelope[types.Content] messages, got "
                    f"{type(message).__name__}. Register a GeminiContentConnector."
                )
                logger.error(msg)
                raise UnsupportedContentKind(msg)

            content = message.content
            if content.role == "system":
                instructions.extend(part.text for part in content.parts or [] if part.text)
            else:
                contents.append(content)

        tools: Optional[List[types.Tool]] = None
        declarations = self._declarations(self.functions + list(options.functions or []))
        if declarations:
            tools = [types.Tool(function_declarations=declarations)]

        config = types.GenerateContentConfig(
            system_instruction="\n".join(instructions) or None,
            temperature=options.temperature if options.temperature is not None else self.temperature,
            max_output_tokens=options.max_tokens or self.max_tokens,
            stop_sequences=options.stop_sequences,
            tools=tools,
        )
        return contents, config

    @staticmethod
    def _declarations(functions: Sequence[FunctionContract]) -> List[types.FunctionDeclaration]:
        declarations = []
        seen = set()
        for function in functions:
            if function.name in seen:
                continue
            seen.add(function.name)

            parameters = declaration_parameters(function)
            if parameters:
                declarations.append(
                    types.FunctionDeclaration(name=function.name, description=function.description, parameters=parameters)
                )
            else:
                declarations.append(types.FunctionDeclaration(name=function.name, description=function.description))
        return declarations
