"""MCP Client for tool discovery and invocation.

Provides a clean interface for talking to the MCP Server's ``/mcp``
endpoint. Handles authentication, envelope formatting, and error mapping.
Requests are sent once; failures are raised to the caller.
"""

from typing import Any, Optional

import httpx

from shared.logging import get_logger
from shared.models import ERROR_AUTH, ToolDescriptor

logger = get_logger(__name__)


class MCPClientError(Exception):
    """Base exception for MCP Client errors."""
    pass


class MCPConnectionError(MCPClientError):
    """Connection to MCP Server failed."""
    pass


class MCPAuthError(MCPClientError):
    """The server rejected the API key."""
    pass


class MCPProtocolError(MCPClientError):
    """The server answered with an error envelope."""

    def __init__(self, code: int, message: str, data: Optional[Any] = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


class MCPClient:
    """
    Client for the MCP Server protocol.

    Usage:
        async with MCPClient("http://localhost:3000", api_key="k1") as client:
            tools = await client.discover()
            result = await client.invoke("get_current_time")
    """

    def __init__(
        self,
        server_url: str = "http://localhost:3000",
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> None:
        """
        Initialize MCP Client.

        Args:
            server_url: MCP Server base URL
            api_key: API key sent as a bearer token
            timeout: Request timeout in seconds
            transport: Optional httpx transport (e.g. ``httpx.ASGITransport``)
        """
        self.server_url = server_url.rstrip("/")
        self.timeout = timeout
        self._api_key = api_key
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.server_url,
                timeout=self.timeout,
                headers=self._get_headers(),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "MCPClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def health_check(self) -> bool:
        """
        Check MCP Server health.

        Raises:
            MCPConnectionError: If server is unreachable
        """
        try:
            client = await self._get_client()
            response = await client.get("/health")
        except httpx.ConnectError as e:
            raise MCPConnectionError(f"Cannot connect to MCP Server: {e}") from e
        return response.status_code == 200 and response.text == "OK"

    async def _call(self, envelope: dict[str, Any]) -> Any:
        try:
            client = await self._get_client()
            response = await client.post("/mcp", json=envelope)
        except httpx.ConnectError as e:
            logger.error("MCP Server connection failed", error=str(e))
            raise MCPConnectionError(f"Cannot connect to MCP Server: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise MCPClientError(
                f"Unexpected response from MCP Server (HTTP {response.status_code})"
            ) from e

        error = body.get("error") if isinstance(body, dict) else None
        if response.status_code == 401 or (error and error.get("code") == ERROR_AUTH):
            raise MCPAuthError(error["message"] if error else "Authentication failed")

        if error:
            raise MCPProtocolError(error["code"], error["message"], error.get("data"))

        if response.status_code != 200 or not isinstance(body, dict):
            raise MCPClientError(f"Unexpected response from MCP Server (HTTP {response.status_code})")

        return body.get("result")

    async def discover(self) -> list[ToolDescriptor]:
        """
        List the tools the server offers.

        Raises:
            MCPConnectionError: If server is unreachable
            MCPAuthError: If the API key is rejected
        """
        result = await self._call({"method": "discover"})
        return [ToolDescriptor.model_validate(tool) for tool in result.get("tools", [])]

    async def invoke(
        self,
        tool_name: str,
        arguments: Optional[dict[str, Any]] = None
    ) -> Any:
        """
        Invoke a tool and return its result.

        Raises:
            MCPProtocolError: If the tool is unknown, the arguments are
                invalid, or the tool fails
            MCPConnectionError: If server is unreachable
            MCPAuthError: If the API key is rejected
        """
        logger.debug("Invoking tool", tool=tool_name)
        return await self._call({
            "method": "invoke",
            "params": {"tool_name": tool_name, "arguments": arguments},
        })
