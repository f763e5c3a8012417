"""Core data models for the MCP Server.

Credentials, tool descriptors, and the request/response envelopes
exchanged on ``POST /mcp``.
"""

from types import MappingProxyType
from typing import Annotated, Any, Literal, Mapping, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_serializer,
    field_validator,
)


JSONRPC_VERSION = "2.0"

# Error codes carried in ErrorDetail.code
ERROR_AUTH = -32001
ERROR_INVALID_PARAMS = -32002
ERROR_TOOL_EXECUTION = -32003
ERROR_INVALID_REQUEST = -32600
ERROR_METHOD_NOT_FOUND = -32601


class Credential(BaseModel):
    """A caller's API key plus the external service keys tools may use."""
    model_config = ConfigDict(frozen=True)

    username: str
    api_key: str
    external_keys: Mapping[str, str] = Field(default_factory=dict, validate_default=True)

    @field_validator("external_keys", mode="after")
    @classmethod
    def _freeze_external_keys(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(value))

    @field_serializer("external_keys")
    def _serialize_external_keys(self, value: Mapping[str, str]) -> dict[str, str]:
        return dict(value)

    def get_external_key(self, key: str) -> Optional[str]:
        """Get an external service key (e.g. ``postgres_url``)."""
        return self.external_keys.get(key)


class AuthenticatedIdentity(BaseModel):
    """
    Caller identity attached to a request once the auth gate passes.

    Created per request and handed to tool executors; never mutated.
    """
    model_config = ConfigDict(frozen=True)

    credential: Credential

    @property
    def username(self) -> str:
        return self.credential.username

    @property
    def external_keys(self) -> dict[str, str]:
        return dict(self.credential.external_keys)

    def get_external_key(self, key: str) -> Optional[str]:
        return self.credential.get_external_key(key)


class ToolDescriptor(BaseModel):
    """
    Discovery-facing metadata for a tool.

    ``parameters`` is the JSON Schema (supported subset) the tool's
    arguments are validated against before execution.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Unique, stable tool name")
    description: str = Field(..., description="Human-readable description")
    parameters: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        description="Parameter schema"
    )


# Request envelopes

class DiscoverRequest(BaseModel):
    """``{"method": "discover"}``"""
    method: Literal["discover"]


class InvokeParams(BaseModel):
    tool_name: str
    arguments: Optional[Any] = None


class InvokeRequest(BaseModel):
    """``{"method": "invoke", "params": {"tool_name": ..., "arguments": ...}}``"""
    method: Literal["invoke"]
    params: InvokeParams

    @property
    def tool_name(self) -> str:
        return self.params.tool_name

    @property
    def arguments(self) -> Optional[Any]:
        return self.params.arguments


RequestEnvelope = Annotated[
    Union[DiscoverRequest, InvokeRequest],
    Field(discriminator="method"),
]

_envelope_adapter: TypeAdapter = TypeAdapter(RequestEnvelope)


def parse_envelope(payload: Any) -> Union[DiscoverRequest, InvokeRequest]:
    """
    Parse a decoded JSON body into a request envelope.

    Raises:
        pydantic.ValidationError: If the payload matches neither shape
    """
    return _envelope_adapter.validate_python(payload)


# Response envelopes

class ErrorDetail(BaseModel):
    """Error member of a response envelope."""
    code: int
    message: str
    data: Optional[Any] = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ResponseEnvelope(BaseModel):
    """
    Response to a ``/mcp`` request.

    Exactly one of ``result`` and ``error`` appears on the wire; the other
    key is left out entirely rather than sent as null.
    """
    jsonrpc: str = JSONRPC_VERSION
    result: Optional[Any] = None
    error: Optional[ErrorDetail] = None

    @classmethod
    def success(cls, result: Any) -> "ResponseEnvelope":
        return cls(result=result)

    @classmethod
    def failure(
        cls,
        code: int,
        message: str,
        data: Optional[Any] = None
    ) -> "ResponseEnvelope":
        return cls(error=ErrorDetail(code=code, message=message, data=data))

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"jsonrpc": self.jsonrpc}
        if self.error is not None:
            body["error"] = self.error.to_dict()
        else:
            body["result"] = self.result
        return body
