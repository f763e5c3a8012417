"""Tool capabilities served by the MCP Server.

Tools are listed explicitly here; the server registers exactly this set
at startup, in this order.
"""

from mcp_tools.base import ToolCapability
from mcp_tools.clock import GetCurrentTimeTool


def load_builtin_tools() -> list[ToolCapability]:
    """Instantiate every built-in tool in registration order."""
    return [
        GetCurrentTimeTool(),
    ]


__all__ = ["ToolCapability", "GetCurrentTimeTool", "load_builtin_tools"]
