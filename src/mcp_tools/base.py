"""Base class for tool capabilities.

All tools must:
- Have a unique, stable name
- Declare their parameters with the supported JSON Schema subset
- Keep per-call state local to ``execute``; one instance serves
  every concurrent request
- Report failures by raising, never by returning error payloads
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from shared.models import AuthenticatedIdentity, ToolDescriptor


class ToolCapability(ABC):
    """
    A tool that can be discovered and invoked through ``/mcp``.

    Arguments reach ``execute`` already validated against
    ``parameters_schema()``. ``execute`` may be a coroutine function or a
    plain function; plain functions run in a worker thread.

    Raise ``ArgumentValidationError`` for bad input the schema cannot
    express and ``ToolExecutionError`` for everything else.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique tool name."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description shown on discovery."""
        pass

    def parameters_schema(self) -> dict[str, Any]:
        """Parameter schema; tools without parameters keep the default."""
        return {
            "type": "object",
            "properties": {},
            "additionalProperties": False,
            "required": [],
        }

    @abstractmethod
    def execute(
        self,
        arguments: Optional[Any],
        identity: AuthenticatedIdentity
    ) -> Any:
        """
        Run the tool.

        Args:
            arguments: Validated arguments, or None if the caller sent none
            identity: The authenticated caller

        Returns:
            A JSON-serializable result
        """
        pass

    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(
            name=self.name,
            description=self.description,
            parameters=self.parameters_schema(),
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
