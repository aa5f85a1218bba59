"""Bridge MCP server tools into FunctionRegistry entries through async stdio client sessions."""

from contextlib import AsyncExitStack
from types import TracebackType
from typing import Any, List, Optional, Type, cast

from mcp import ClientSession
from mcp.client.stdio import stdio_client, StdioServerParameters
from mcp.types import Tool as MCPTool, TextContent, ImageContent, EmbeddedResource

from generic_agent_lib.agent_core import get_logger
from generic_agent_lib.agent_core.exceptions import ToolRegistrationError
from generic_agent_lib.agent_core.tools import FunctionContract, FunctionRegistry, SchemaValidator

logger = get_logger(__name__)

__all__ = ["MCPClientWrapper"]


class MCPClientWrapper:
    """Exposes the tools of an MCP server as registry functions, so agents can dispatch them."""

    def __init__(self, command: str, args: list[str], env: Optional[dict[str, str]] = None):
        """Initializes the wrapper with parameters for the MCP server process.

        Args:
            command: The command to run the server.
            args: List of arguments for the command.
            env: Optional dictionary of environment variables.
        """
        self._server_params = StdioServerParameters(command=command, args=args, env=env)
        self._session: Optional[ClientSession] = None
        self._exit_stack = AsyncExitStack()

    async def __aenter__(self) -> "MCPClientWrapper":
        logger.debug("Initializing MCP client session...")
        read, write = await self._exit_stack.enter_async_context(stdio_client(self._server_params))
        self._session = await self._exit_stack.enter_async_context(ClientSession(read, write))

        await self._session.initialize()
        logger.info("MCP client session initialized successfully.")
        return self

    async def __aexit__(
        self, exc_type: Optional[Type[BaseException]], exc_val: Optional[BaseException], exc_tb: Optional[TracebackType]
    ) -> None:
        await self._exit_stack.aclose()
        self._session = None
        logger.info("MCP client session closed.")

    async def load_into(self, registry: FunctionRegistry) -> List[FunctionContract]:
        """Registers every tool of the MCP server in ``registry``.

        Tools whose name is already taken in the registry are skipped.

        Args:
            registry: The FunctionRegistry to register the tools into.

        Returns:
            Contracts of the tools that were registered.

        Raises:
            RuntimeError: If the MCP client is not connected.
        """
        if not self._session:
            raise RuntimeError("MCP Client is not connected. Use 'async with'.")

        result = await self._session.list_tools()
        logger.info(f"Found {len(result.tools)} tools on MCP server.")

        contracts = []
        for tool in result.tools:
            contract = self._register_single_tool(registry, tool)
            if contract is not None:
                contracts.append(contract)
        return contracts

    def _register_single_tool(self, registry: FunctionRegistry, tool: MCPTool) -> Optional[FunctionContract]:
        tool_name = tool.name
        tool_description = tool.description or f"Tool {tool_name} provided by MCP server."

        async def mcp_proxy(**kwargs: Any) -> str:
            """Forward a call to the remote MCP tool and flatten its content blocks into text."""
            if not self._session:
                raise RuntimeError(f"Cannot call tool '{tool_name}': MCP session is not active.")

            logger.info(f"Delegating function '{tool_name}' to MCP server.")
            mcp_result = await self._session.call_tool(tool_name, arguments=kwargs)
            if not mcp_result.content:
                return "Success"

            return "\n".join(self._render_block(block) for block in mcp_result.content)

        mcp_proxy.__name__ = tool_name
        mcp_proxy.__doc__ = tool_description

        parameters = SchemaValidator.sanitize_schema(tool.inputSchema)
        try:
            contract = registry.register(
                name_or_func=tool_name, description=tool_description, func=mcp_proxy, parameters=parameters
            )
        except ToolRegistrationError as e:
            logger.error(f"Skipping MCP tool '{tool_name}': {e}")
            return None

        logger.info(f"MCP tool '{tool_name}' registered.")
        return contract

    @staticmethod
    def _render_block(block: Any) -> str:
        if block.type == "text":
            return cast(TextContent, block).text
        if block.type == "image":
            return f"[Image: {cast(ImageContent, block).mimeType}]"
        if block.type == "resource":
            return f"[Resource: {cast(EmbeddedResource, block).resource.uri}]"
        return f"[Unknown content type: {block.type}]"
