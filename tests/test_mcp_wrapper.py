import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from mcp.types import Tool as MCPTool, TextContent, CallToolResult, ListToolsResult
from generic_agent_lib.mcp_wrapper import MCPClientWrapper
from generic_agent_lib.agent_core.tools import FunctionRegistry
from typing import Any, Iterator


@pytest.fixture
def mock_registry() -> Any:
    return MagicMock(spec=FunctionRegistry)


@pytest.fixture
def mock_session() -> Any:
    session = AsyncMock()
    session.initialize = AsyncMock()
    # Ensure context manager returns the session itself
    session.__aenter__.return_value = session
    return session


@pytest.fixture
def patched_transport(mock_session: Any) -> Iterator[Any]:
    with patch("generic_agent_lib.mcp_wrapper.wrapper.stdio_client", new_callable=MagicMock) as mock_stdio:
        mock_stdio.return_value = AsyncMock()
        mock_stdio.return_value.__aenter__.return_value = (AsyncMock(), AsyncMock())

        with patch("generic_agent_lib.mcp_wrapper.wrapper.ClientSession", return_value=mock_session):
            yield mock_stdio


@pytest.mark.asyncio
async def test_mcp_wrapper_lifecycle(mock_session: Any, patched_transport: Any) -> None:
    """Test that the MCP wrapper correctly initializes and closes the session."""
    async with MCPClientWrapper("cmd", ["arg"]) as wrapper:
        assert wrapper._session is not None
        assert mock_session.initialize.call_count > 0

    # Session should be None after closing
    assert wrapper._session is None


@pytest.mark.asyncio
async def test_load_into_requires_connection(mock_registry: Any) -> None:
    with pytest.raises(RuntimeError, match="not connected"):
        await MCPClientWrapper("cmd", []).load_into(mock_registry)


@pytest.mark.asyncio
async def test_load_into_registers_tools(mock_registry: Any, mock_session: Any, patched_transport: Any) -> None:
    """Test that tools from MCP are registered into the FunctionRegistry."""
    tools_result = ListToolsResult(
        tools=[
            MCPTool(name="tool1", description="desc1", inputSchema={"type": "object"}),
            MCPTool(name="tool2", description=None, inputSchema={"type": "object"}),
        ]
    )
    mock_session.list_tools = AsyncMock(return_value=tools_result)

    async with MCPClientWrapper("cmd", ["arg"]) as wrapper:
        contracts = await wrapper.load_into(mock_registry)

        assert mock_session.list_tools.call_count > 0
        assert mock_registry.register.call_count == 2
        assert len(contracts) == 2

        calls = mock_registry.register.call_args_list
        assert calls[0].kwargs["name_or_func"] == "tool1"
        assert calls[0].kwargs["description"] == "desc1"
        assert calls[0].kwargs["parameters"] == {"type": "object", "additionalProperties": False}
        assert calls[1].kwargs["name_or_func"] == "tool2"
        assert calls[1].kwargs["description"] == "Tool tool2 provided by MCP server."


@pytest.mark.asyncio
async def test_conflicting_tool_is_skipped(mock_session: Any, patched_transport: Any) -> None:
    registry = FunctionRegistry()

    def search(query: str) -> str:
        return query

    registry.register(
        "search",
        description="Local search.",
        func=search,
        parameters={"type": "object", "properties": {"query": {"type": "string"}}},
    )
    mock_session.list_tools = AsyncMock(
        return_value=ListToolsResult(
            tools=[
                MCPTool(name="search", description="Remote search.", inputSchema={"type": "object"}),
                MCPTool(name="fetch", description="Fetch a URL.", inputSchema={"type": "object"}),
            ]
        )
    )

    async with MCPClientWrapper("cmd", ["arg"]) as wrapper:
        contracts = await wrapper.load_into(registry)

    assert [c.name for c in contracts] == ["fetch"]
    assert registry.functions["search"].contract.description == "Local search."


@pytest.mark.asyncio
async def test_mcp_proxy_execution(mock_session: Any, patched_transport: Any) -> None:
    """Test that a registered MCP tool is dispatched through the registry's function map."""
    tools_result = ListToolsResult(
        tools=[
            MCPTool(
                name="test_tool",
                description="desc",
                inputSchema={"type": "object", "properties": {"param": {"type": "string"}}, "required": ["param"]},
            )
        ]
    )
    mock_session.list_tools = AsyncMock(return_value=tools_result)
    mock_session.call_tool = AsyncMock(
        return_value=CallToolResult(
            content=[TextContent(type="text", text="Result from MCP"), TextContent(type="text", text="second block")]
        )
    )
    registry = FunctionRegistry()

    async with MCPClientWrapper("cmd", ["arg"]) as wrapper:
        [contract] = await wrapper.load_into(registry)
        result = await registry.function_map["test_tool"]('{"param": "value"}')

    mock_session.call_tool.assert_called_with("test_tool", arguments={"param": "value"})
    assert result == "Result from MCP\nsecond block"
    assert contract.parameters[0].name == "param"


@pytest.mark.asyncio
async def test_mcp_proxy_empty_result(mock_registry: Any, mock_session: Any, patched_transport: Any) -> None:
    mock_session.list_tools = AsyncMock(
        return_value=ListToolsResult(tools=[MCPTool(name="ping", description="Ping.", inputSchema={})])
    )
    mock_session.call_tool = AsyncMock(return_value=CallToolResult(content=[]))

    async with MCPClientWrapper("cmd", ["arg"]) as wrapper:
        await wrapper.load_into(mock_registry)
        proxy_func = mock_registry.register.call_args.kwargs["func"]

        assert await proxy_func() == "Success"

    with pytest.raises(RuntimeError, match="not active"):
        await proxy_func()
