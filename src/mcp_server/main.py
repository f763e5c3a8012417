"""MCP Server - FastAPI Application.

Exposes ``POST /mcp`` (discover and invoke tools, bearer-authenticated)
and ``GET /health``. Credentials and the tool registry are built before
the app exists and are read-only afterward.
"""

import sys
import uuid
from contextlib import asynccontextmanager
from typing import Any, Iterable, Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError

from shared.config import Settings, get_settings
from shared.errors import AuthenticationError, MCPError
from shared.logging import bind_context, clear_context, get_logger, setup_logging
from shared.models import (
    ERROR_AUTH,
    ERROR_INVALID_REQUEST,
    AuthenticatedIdentity,
    ResponseEnvelope,
    parse_envelope,
)
from mcp_server.auth import require_identity
from mcp_server.credentials import CredentialStore, load_credentials
from mcp_server.dispatcher import ProtocolDispatcher
from mcp_server.registry import build_registry
from mcp_tools import ToolCapability, load_builtin_tools

logger = get_logger(__name__)

VERSION = "0.1.0"


def envelope_response(
    envelope: ResponseEnvelope,
    status_code: int = status.HTTP_200_OK,
    headers: Optional[dict[str, str]] = None
) -> JSONResponse:
    """Serialize a response envelope, leaving out whichever member is absent."""
    return JSONResponse(
        content=jsonable_encoder(envelope.to_dict()),
        status_code=status_code,
        headers=headers,
    )


def _describe_validation_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first['msg']}" if location else first["msg"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(
        "MCP Server started",
        tool_count=len(app.state.registry),
        user_count=len(app.state.credentials)
    )
    yield
    logger.info("Shutting down MCP Server")


async def authentication_error_handler(
    request: Request, exc: AuthenticationError
) -> JSONResponse:
    return envelope_response(
        ResponseEnvelope.failure(ERROR_AUTH, exc.message),
        status_code=status.HTTP_401_UNAUTHORIZED,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_app(
    credentials: CredentialStore,
    tools: Optional[Iterable[ToolCapability]] = None
) -> FastAPI:
    """
    Create the MCP Server application.

    Args:
        credentials: Credential store indexed by API key
        tools: Tools to serve; defaults to the built-in set

    Raises:
        DuplicateToolError: If two tools share a name
        InvalidToolSchemaError: If a tool's parameter schema is malformed
    """
    registry = build_registry(load_builtin_tools() if tools is None else tools)
    dispatcher = ProtocolDispatcher(registry)

    app = FastAPI(
        title="MCP Server",
        description="Bearer-authenticated tool discovery and invocation",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.credentials = credentials
    app.state.registry = registry
    app.state.dispatcher = dispatcher

    app.add_exception_handler(AuthenticationError, authentication_error_handler)

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        clear_context()
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        bind_context(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            clear_context()
        response.headers["X-Request-ID"] = request_id
        return response

    @app.get("/health", response_class=PlainTextResponse, tags=["System"])
    async def health_check() -> str:
        """Liveness probe; no authentication."""
        return "OK"

    @app.post("/mcp", tags=["Protocol"])
    async def handle_mcp(
        request: Request,
        identity: AuthenticatedIdentity = Depends(require_identity)
    ) -> JSONResponse:
        """
        Discover or invoke tools.

        The body is read only after authentication succeeds.
        """
        try:
            payload: Any = await request.json()
        except ValueError:
            return envelope_response(
                ResponseEnvelope.failure(
                    ERROR_INVALID_REQUEST, "Invalid request: body is not valid JSON"
                ),
                status_code=status.HTTP_400_BAD_REQUEST,
            )

        try:
            envelope = parse_envelope(payload)
        except ValidationError as e:
            return envelope_response(
                ResponseEnvelope.failure(
                    ERROR_INVALID_REQUEST,
                    f"Invalid request: {_describe_validation_error(e)}",
                ),
                status_code=status.HTTP_400_BAD_REQUEST,
            )

        response = await dispatcher.handle(envelope, identity)
        return envelope_response(response)

    return app


def setup_server(settings: Optional[Settings] = None) -> FastAPI:
    """
    Load credentials and build the application.

    Usable as a uvicorn factory: ``uvicorn --factory mcp_server.main:setup_server``.
    """
    settings = settings or get_settings()
    credentials = load_credentials(settings.credentials_path)
    return create_app(credentials)


def main() -> None:
    """Run the MCP Server."""
    import uvicorn

    settings = get_settings()
    setup_logging(
        settings.log_level,
        json_output=settings.mcp_server.json_logs or settings.environment == "production"
    )

    try:
        app = setup_server(settings)
    except MCPError as e:
        logger.error("Failed to start MCP Server", error=str(e))
        sys.exit(1)

    logger.info(
        "MCP Server listening",
        host=settings.mcp_server.host,
        port=settings.mcp_server.port
    )
    uvicorn.run(
        app,
        host=settings.mcp_server.host,
        port=settings.mcp_server.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
