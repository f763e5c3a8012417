"""Authentication for MCP Server.

Handles:
- Bearer token extraction from the Authorization header
- API key lookup against the credential store
- FastAPI dependency that attaches the caller identity to the request
"""

from typing import Mapping, Optional

from fastapi import Request

from shared.errors import AuthenticationError, AuthFailure
from shared.logging import bind_context, get_logger
from shared.models import AuthenticatedIdentity
from mcp_server.credentials import CredentialStore

logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "


def _authorization_header(headers: Mapping[str, str]) -> Optional[str]:
    value = headers.get("authorization")
    if value is not None:
        return value
    # Plain dicts are case-sensitive; starlette Headers are not
    for key, candidate in headers.items():
        if key.lower() == "authorization":
            return candidate
    return None


def authenticate(
    headers: Mapping[str, str],
    store: CredentialStore
) -> AuthenticatedIdentity:
    """
    Authenticate a request from its headers.

    Args:
        headers: Request headers
        store: Credential store indexed by API key

    Returns:
        The caller's identity

    Raises:
        AuthenticationError: If the header is missing, malformed, or the
            key is unknown
    """
    header = _authorization_header(headers)
    if header is None:
        raise AuthenticationError(AuthFailure.MISSING_TOKEN)

    if not header.startswith(BEARER_PREFIX):
        raise AuthenticationError(AuthFailure.INVALID_FORMAT)

    token = header[len(BEARER_PREFIX):]
    credential = store.get(token)
    if credential is None:
        raise AuthenticationError(AuthFailure.INVALID_TOKEN)

    return AuthenticatedIdentity(credential=credential)


async def require_identity(request: Request) -> AuthenticatedIdentity:
    """
    FastAPI dependency for authenticated routes.

    Stores the identity on ``request.state.identity`` and binds the
    username into the logging context.
    """
    store: CredentialStore = request.app.state.credentials
    try:
        identity = authenticate(request.headers, store)
    except AuthenticationError as e:
        logger.warning(
            "Authentication failed",
            reason=e.kind.value,
            path=request.url.path,
            client=request.client.host if request.client else None
        )
        raise

    request.state.identity = identity
    bind_context(username=identity.username)
    return identity
