"""Exception types for the MCP Server.

Failures are typed so the protocol layer can classify them structurally.
Wire-level error codes live in ``shared.models``.
"""

from enum import Enum
from typing import Optional


class MCPError(Exception):
    """Base exception for all MCP Server errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class AuthFailure(str, Enum):
    """Reasons the auth gate can reject a request."""
    MISSING_TOKEN = "missing_token"
    INVALID_FORMAT = "invalid_format"
    INVALID_TOKEN = "invalid_token"


AUTH_FAILURE_MESSAGES: dict[AuthFailure, str] = {
    AuthFailure.MISSING_TOKEN: "Missing Authorization header",
    AuthFailure.INVALID_FORMAT: "Invalid Authorization header format. Expected: Bearer <token>",
    AuthFailure.INVALID_TOKEN: "Invalid or expired API key",
}


class AuthenticationError(MCPError):
    """Bearer token was missing, malformed, or unknown."""

    def __init__(self, kind: AuthFailure) -> None:
        super().__init__(AUTH_FAILURE_MESSAGES[kind])
        self.kind = kind


class ArgumentValidationError(MCPError):
    """Tool arguments do not satisfy the tool's parameter schema.

    Tools may also raise this directly for parameter problems the schema
    cannot express.
    """


class ToolExecutionError(MCPError):
    """A tool failed while doing its work."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class DuplicateToolError(MCPError, ValueError):
    """Two tools were registered under the same name."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Duplicate tool name detected: '{name}'. Each tool must have a unique name."
        )
        self.name = name


class InvalidToolSchemaError(MCPError, ValueError):
    """A tool declared a parameter schema that is not valid JSON Schema."""


class CredentialsError(MCPError):
    """The credentials file could not be loaded."""
