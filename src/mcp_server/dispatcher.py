"""Protocol dispatcher for MCP Server.

Routes parsed request envelopes to discovery or tool invocation and turns
every outcome into a response envelope. Tool failures never escape this
module; they are classified and returned as error envelopes.
"""

import asyncio
import functools
import inspect
import time
from typing import Any, Optional, Union

from shared.errors import ArgumentValidationError, ToolExecutionError
from shared.logging import get_logger
from shared.models import (
    ERROR_INVALID_PARAMS,
    ERROR_METHOD_NOT_FOUND,
    ERROR_TOOL_EXECUTION,
    AuthenticatedIdentity,
    DiscoverRequest,
    InvokeRequest,
    ResponseEnvelope,
)
from shared.schema import validate_arguments
from mcp_server.registry import ToolExecutor, ToolRegistry

logger = get_logger(__name__)


# Untyped tool failures whose message contains any of these are reported
# as parameter errors. Clients match on the resulting codes and prefixes.
PARAMETER_ERROR_KEYWORDS = (
    "parameter",
    "required",
    "Unexpected",
    "Missing",
    "must be",
    "exceeds maximum",
    "at least",
    "characters long",
    "type",
)

INVALID_PARAMS_PREFIX = "Invalid parameters"
TOOL_EXECUTION_PREFIX = "Tool execution error"


def is_parameter_error(message: str) -> bool:
    """Check whether a failure message reads as a parameter problem."""
    return any(keyword in message for keyword in PARAMETER_ERROR_KEYWORDS)


def _message_of(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


def classify_error(exc: BaseException) -> tuple[int, str]:
    """
    Map a validation or execution failure to an error code and message.

    Typed errors are classified by type; anything else raised by a tool
    falls back to keyword matching on its message.

    Returns:
        Tuple of (error_code, message)
    """
    message = _message_of(exc)

    if isinstance(exc, ArgumentValidationError):
        is_params = True
    elif isinstance(exc, ToolExecutionError):
        is_params = False
    else:
        is_params = is_parameter_error(message)

    if is_params:
        return ERROR_INVALID_PARAMS, f"{INVALID_PARAMS_PREFIX}: {message}"
    return ERROR_TOOL_EXECUTION, f"{TOOL_EXECUTION_PREFIX}: {message}"


class ProtocolDispatcher:
    """
    Handles authenticated ``/mcp`` requests.

    Responsibilities:
    - Serve discovery from the registry
    - Validate arguments before running a tool
    - Run sync executors off the event loop
    - Classify failures into error envelopes
    """

    def __init__(self, registry: ToolRegistry) -> None:
        self.registry = registry

    async def handle(
        self,
        request: Union[DiscoverRequest, InvokeRequest],
        identity: AuthenticatedIdentity
    ) -> ResponseEnvelope:
        """Dispatch a parsed envelope on its method."""
        if isinstance(request, DiscoverRequest):
            return self.discover()
        return await self.invoke(request.tool_name, request.arguments, identity)

    def discover(self) -> ResponseEnvelope:
        """List every registered tool in registration order."""
        tools = [d.model_dump() for d in self.registry.definitions()]
        return ResponseEnvelope.success({"tools": tools})

    async def invoke(
        self,
        tool_name: str,
        arguments: Optional[Any],
        identity: AuthenticatedIdentity
    ) -> ResponseEnvelope:
        """
        Invoke a tool by name.

        Args:
            tool_name: Registered tool name
            arguments: Decoded JSON arguments, or None
            identity: The authenticated caller

        Returns:
            Success envelope with the tool's result, or an error envelope
        """
        start_time = time.perf_counter()

        logger.debug("Invoking tool", tool=tool_name, user=identity.username)

        descriptor = self.registry.get(tool_name)
        executor = self.registry.dispatch(tool_name)
        if descriptor is None or executor is None:
            logger.info("Unknown tool requested", tool=tool_name, user=identity.username)
            return ResponseEnvelope.failure(
                ERROR_METHOD_NOT_FOUND,
                f"Tool '{tool_name}' not found",
                {"available_tools": self.registry.names()},
            )

        try:
            validate_arguments(descriptor.parameters, arguments)
        except ArgumentValidationError as e:
            return self._failure(tool_name, identity, e)

        try:
            result = await self._run_executor(executor, arguments, identity)
        except (ArgumentValidationError, ToolExecutionError) as e:
            return self._failure(tool_name, identity, e)
        except Exception as e:
            logger.error(
                "Tool raised an unexpected exception",
                tool=tool_name,
                user=identity.username,
                error=str(e),
                exc_info=True
            )
            return self._failure(tool_name, identity, e)

        logger.info(
            "Tool executed",
            tool=tool_name,
            user=identity.username,
            execution_time_ms=round((time.perf_counter() - start_time) * 1000, 3)
        )
        return ResponseEnvelope.success(result)

    def _failure(
        self,
        tool_name: str,
        identity: AuthenticatedIdentity,
        exc: BaseException
    ) -> ResponseEnvelope:
        code, message = classify_error(exc)
        logger.warning(
            "Tool invocation failed",
            tool=tool_name,
            user=identity.username,
            code=code,
            error=message
        )
        return ResponseEnvelope.failure(code, message)

    async def _run_executor(
        self,
        executor: ToolExecutor,
        arguments: Optional[Any],
        identity: AuthenticatedIdentity
    ) -> Any:
        """Run an executor, in a worker thread if it is synchronous."""
        if inspect.iscoroutinefunction(executor):
            return await executor(arguments, identity)

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(
            None, functools.partial(executor, arguments, identity)
        )
        if inspect.isawaitable(result):
            result = await result
        return result
