"""MCP Server - authentication, tool registry, and protocol dispatch.

The MCP Server authenticates callers by bearer token, lists its tools,
validates tool arguments, and runs tools on the caller's behalf.
"""

from mcp_server.auth import authenticate, require_identity
from mcp_server.credentials import CredentialStore, load_credentials
from mcp_server.dispatcher import ProtocolDispatcher, classify_error
from mcp_server.registry import ToolRegistry, build_registry

__all__ = [
    "authenticate",
    "require_identity",
    "CredentialStore",
    "load_credentials",
    "ProtocolDispatcher",
    "classify_error",
    "ToolRegistry",
    "build_registry",
]
