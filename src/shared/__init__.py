"""Shared models, errors, configuration, and logging for the MCP Server."""

from shared.models import (
    AuthenticatedIdentity,
    Credential,
    ErrorDetail,
    RequestEnvelope,
    ResponseEnvelope,
    ToolDescriptor,
)
from shared.errors import (
    ArgumentValidationError,
    AuthenticationError,
    MCPError,
    ToolExecutionError,
)
from shared.config import Settings, get_settings
from shared.logging import get_logger, setup_logging

__all__ = [
    "AuthenticatedIdentity",
    "Credential",
    "ErrorDetail",
    "RequestEnvelope",
    "ResponseEnvelope",
    "ToolDescriptor",
    "ArgumentValidationError",
    "AuthenticationError",
    "MCPError",
    "ToolExecutionError",
    "Settings",
    "get_settings",
    "get_logger",
    "setup_logging",
]
