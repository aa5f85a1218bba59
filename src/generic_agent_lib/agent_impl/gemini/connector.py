"""Translate between the message model and Gemini ``types.Content`` objects."""

import json
import mimetypes
from typing import List, NoReturn, Sequence

from google.genai import types

from generic_agent_lib.agent_core import get_logger
from generic_agent_lib.agent_core.connectors import ContentConnector, ContentPart
from generic_agent_lib.agent_core.exceptions import (
    AmbiguousContentReference,
    InvalidStreamingChoice,
    UnsupportedContentKind,
)
from generic_agent_lib.agent_core.messages import (
    BaseMessage,
    ImageMessage,
    Role,
    StreamingUpdate,
    TextMessage,
    TextUpdate,
    ToolCall,
    ToolCallFragment,
    ToolCallMessage,
    ToolCallResultMessage,
    ToolCallUpdate,
)
from generic_agent_lib.agent_core.tools import parse_arguments

logger = get_logger(__name__)

# "system" contents are lifted into the system instruction by GeminiChatAgent.
_GEMINI_ROLES = {Role.SYSTEM: "system", Role.ASSISTANT: "model", Role.USER: "user"}

_DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"


def _guess_mime_type(url: str) -> str:
    mime_type, _ = mimetypes.guess_type(url)
    return mime_type or _DEFAULT_IMAGE_MIME_TYPE


def _fail(msg: str, error: type = UnsupportedContentKind) -> NoReturn:
    logger.error(msg)
    raise error(msg)


class GeminiContentConnector(ContentConnector[types.Content]):
    """
    Connector for ``GeminiChatAgent``.

    Images are referenced by URI through ``FileData``; inline image bytes in a reply have no
    URI to reference and are rejected rather than dropped.
    """

    def native_text(self, role: Role, text: str) -> types.Content:
        return types.Content(role=_GEMINI_ROLES[role], parts=[types.Part(text=text)])

    def native_parts(self, role: Role, parts: Sequence[ContentPart]) -> types.Content:
        native_parts = []
        for part in parts:
            if isinstance(part, TextMessage):
                native_parts.append(types.Part(text=part.content))
            else:
                native_parts.append(
                    types.Part(file_data=types.FileData(file_uri=part.url, mime_type=_guess_mime_type(part.url)))
                )
        return types.Content(role=_GEMINI_ROLES[role], parts=native_parts)

    def native_tool_calls(self, message: ToolCallMessage) -> types.Content:
        parts = [types.Part(text=message.content)] if message.content else []
        for call in message.calls:
            parts.append(
                types.Part(
                    function_call=types.FunctionCall(
                        id=call.id,
                        name=call.function_name,
                        args=parse_arguments(call.function_name, call.arguments),
                    )
                )
            )
        return types.Content(role="model", parts=parts)

    def native_tool_results(self, message: ToolCallResultMessage) -> List[types.Content]:
        parts = [
            types.Part(
                function_response=types.FunctionResponse(
                    id=call.id,
                    name=call.function_name,
                    response={"result": call.result},
                )
            )
            for call in message.calls
        ]
        return [types.Content(role="user", parts=parts)]

    def from_native(self, native: object, author: str) -> BaseMessage:
        """
        Translate a Gemini reply.

        Args:
            native: A ``GenerateContentResponse`` (its first candidate is used) or a ``Content``.
            author: Name of the backend agent.

        Returns:
            A ``ToolCallMessage`` if the reply contains function calls, otherwise the text and
            image items of its parts.
        """
        content = self._reply_content(native, author)
        parts = content.parts or []

        function_calls = [p.function_call for p in parts if p.function_call]
        if function_calls:
            text = "".join(p.text for p in parts if p.text)
            calls = [
                ToolCall(function_name=fc.name or "", arguments=json.dumps(fc.args or {}), id=fc.id)
                for fc in function_calls
            ]
            return ToolCallMessage(calls=calls, content=text or None, author=author, role=Role.ASSISTANT)

        return self.collect([self._part_item(part, author) for part in parts], author)

    @staticmethod
    def _reply_content(native: object, author: str) -> types.Content:
        if isinstance(native, types.Content):
            return native

        if not isinstance(native, types.GenerateContentResponse):
            _fail(f"Unsupported Gemini reply payload: {type(native).__name__}")

        candidates = native.candidates or []
        if not candidates or candidates[0].content is None:
            _fail(f"Gemini reply of '{author}' has no candidate content.")
        return candidates[0].content

    @staticmethod
    def _part_item(part: types.Part, author: str) -> ContentPart:
        if part.text is not None:
            return TextMessage(content=part.text, author=author, role=Role.ASSISTANT)

        if part.file_data is not None:
            file_data = part.file_data
            if not file_data.file_uri:
                _fail(f"File item in reply of '{author}' has no URI.", AmbiguousContentReference)
            if file_data.mime_type and not file_data.mime_type.startswith("image/"):
                _fail(f"Unsupported file type in reply of '{author}': {file_data.mime_type}")
            return ImageMessage(url=file_data.file_uri, author=author, role=Role.ASSISTANT)

        if part.inline_data is not None:
            _fail(f"Inline data in reply of '{author}' cannot be referenced by URI.", AmbiguousContentReference)

        _fail(f"Unsupported part in reply of '{author}'.")

    def denormalize_streaming_fragment(
        self, native: object, author: str, next_call_index: int = 0
    ) -> List[StreamingUpdate]:
        if not isinstance(native, types.GenerateContentResponse):
            _fail(f"Unsupported Gemini stream payload: {type(native).__name__}")

        updates: List[StreamingUpdate] = []
        for candidate in native.candidates or []:
            index = candidate.index or 0
            if index != 0:
                _fail(
                    f"Only one choice is supported in streaming response, got index {index}.",
                    InvalidStreamingChoice,
                )
            if candidate.content is None:
                continue

            fragments = []
            for part in candidate.content.parts or []:
                if part.function_call:
                    fc = part.function_call
                    fragments.append(
                        ToolCallFragment(
                            index=next_call_index + len(fragments),
                            id=fc.id,
                            function_name=fc.name,
                            arguments=json.dumps(fc.args or {}),
                        )
                    )
                elif part.text is not None:
                    if part.text:
                        updates.append(TextUpdate(delta=part.text, author=author, role=Role.ASSISTANT))
                else:
                    item = self._part_item(part, author)
                    _fail(f"{type(item).__name__} in stream of '{author}' has no streaming fragment.")

            if fragments:
                updates.append(ToolCallUpdate(calls=fragments, author=author, role=Role.ASSISTANT))
        return updates
