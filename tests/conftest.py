"""Shared fixtures for MCP Server tests."""

from typing import Any, Optional

import pytest
from fastapi.testclient import TestClient

from shared.models import AuthenticatedIdentity, Credential
from mcp_server.credentials import build_credential_store
from mcp_tools.base import ToolCapability

TEST_API_KEY = "test-api-key-12345"
TEST_API_KEY_2 = "test-api-key-67890"
TEST_USERNAME = "testuser"
TEST_USERNAME_2 = "testuser2"


class EchoTool(ToolCapability):
    """Returns its arguments and the caller's username."""

    @property
    def name(self) -> str:
        return "echo"

    @property
    def description(self) -> str:
        return "Echo arguments back"

    def parameters_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "message": {"type": "string", "minLength": 1, "maxLength": 20},
                "count": {"type": "integer", "minimum": 1, "maximum": 5},
            },
            "required": ["message"],
            "additionalProperties": False,
        }

    async def execute(self, arguments: Optional[Any], identity: AuthenticatedIdentity) -> Any:
        return {
            "message": arguments["message"],
            "count": arguments.get("count", 1),
            "user": identity.username,
            "external_keys": sorted(identity.external_keys),
        }


class FailingTool(ToolCapability):
    """Raises whatever exception it was constructed with."""

    def __init__(self, name: str, exc: Exception) -> None:
        self._name = name
        self._exc = exc

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return "Always fails"

    def execute(self, arguments: Optional[Any], identity: AuthenticatedIdentity) -> Any:
        raise self._exc


@pytest.fixture
def credential() -> Credential:
    return Credential(username=TEST_USERNAME, api_key=TEST_API_KEY)


@pytest.fixture
def credential_with_keys() -> Credential:
    return Credential(
        username=TEST_USERNAME_2,
        api_key=TEST_API_KEY_2,
        external_keys={
            "postgres_url": "postgresql://localhost/test",
            "api_key": "external-api-key",
        },
    )


@pytest.fixture
def store(credential, credential_with_keys):
    return build_credential_store([credential, credential_with_keys])


@pytest.fixture
def identity(credential) -> AuthenticatedIdentity:
    return AuthenticatedIdentity(credential=credential)


@pytest.fixture
def app(store):
    from mcp_server.main import create_app
    from mcp_tools import load_builtin_tools

    return create_app(store, tools=[
        *load_builtin_tools(),
        EchoTool(),
        FailingTool("explode", RuntimeError("Database connection failed")),
    ])


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {TEST_API_KEY}"}
