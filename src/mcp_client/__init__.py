"""MCP Client - tool discovery and invocation over HTTP."""

from mcp_client.client import (
    MCPAuthError,
    MCPClient,
    MCPClientError,
    MCPConnectionError,
    MCPProtocolError,
)

__all__ = [
    "MCPAuthError",
    "MCPClient",
    "MCPClientError",
    "MCPConnectionError",
    "MCPProtocolError",
]
