"""Optional MCP integration: load MCP server tools into a FunctionRegistry."""

from .wrapper import MCPClientWrapper

__all__ = ["MCPClientWrapper"]
