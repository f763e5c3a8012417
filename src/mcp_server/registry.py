"""Tool Registry for MCP Server.

Holds every tool's descriptor (for discovery) and executor (for
invocation). The registry is built once at startup, then sealed;
after that it is only ever read, so concurrent requests share it
without locking.
"""

from typing import Any, Awaitable, Callable, Iterable, Optional, Union

from shared.errors import DuplicateToolError
from shared.logging import get_logger
from shared.models import AuthenticatedIdentity, ToolDescriptor
from shared.schema import check_parameter_schema
from mcp_tools.base import ToolCapability

logger = get_logger(__name__)


# Executors take (arguments, identity) and return a JSON value, directly or
# through an awaitable
ToolExecutor = Callable[
    [Optional[Any], AuthenticatedIdentity],
    Union[Any, Awaitable[Any]],
]


class ToolRegistry:
    """
    Ordered registry of tools.

    Responsibilities:
    - Reject duplicate names and malformed parameter schemas
    - Preserve registration order for discovery
    - Look up executors by name
    """

    def __init__(self) -> None:
        self._definitions: list[ToolDescriptor] = []
        self._executors: dict[str, ToolExecutor] = {}
        self._descriptors: dict[str, ToolDescriptor] = {}
        self._sealed = False

    def register(self, descriptor: ToolDescriptor, executor: ToolExecutor) -> None:
        """
        Register a tool.

        Args:
            descriptor: Discovery metadata for the tool
            executor: Callable that runs the tool

        Raises:
            DuplicateToolError: If the name is already registered
            InvalidToolSchemaError: If the parameter schema is malformed
            RuntimeError: If the registry has been sealed
        """
        if self._sealed:
            raise RuntimeError("Tool registry is sealed; register tools at startup")

        name = descriptor.name
        if name in self._executors:
            raise DuplicateToolError(name)

        check_parameter_schema(name, descriptor.parameters)

        self._definitions.append(descriptor)
        self._descriptors[name] = descriptor
        self._executors[name] = executor

        logger.info("Tool registered", tool=name)

    def register_tool(self, tool: ToolCapability) -> None:
        """Register a tool capability under its own descriptor."""
        self.register(tool.descriptor(), tool.execute)

    def seal(self) -> None:
        """Disallow further registration."""
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    def definitions(self) -> tuple[ToolDescriptor, ...]:
        """All descriptors in registration order."""
        return tuple(self._definitions)

    def dispatch(self, name: str) -> Optional[ToolExecutor]:
        """Get the executor registered under ``name``."""
        return self._executors.get(name)

    def get(self, name: str) -> Optional[ToolDescriptor]:
        """Get the descriptor registered under ``name``."""
        return self._descriptors.get(name)

    def names(self) -> list[str]:
        """All tool names in registration order."""
        return [d.name for d in self._definitions]

    def __contains__(self, name: object) -> bool:
        return name in self._executors

    def __len__(self) -> int:
        return len(self._definitions)


def build_registry(tools: Iterable[ToolCapability]) -> ToolRegistry:
    """
    Build and seal a registry from a list of tool capabilities.

    Any duplicate name or malformed schema aborts the build; the server
    must not start with a partial registry.
    """
    registry = ToolRegistry()
    for tool in tools:
        registry.register_tool(tool)
    registry.seal()

    logger.info("Tool registry built", tool_count=len(registry), tools=registry.names())
    return registry
