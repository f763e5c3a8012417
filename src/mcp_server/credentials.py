"""Credential loading for MCP Server.

Credentials live in a YAML file keyed by username:

    alice:
      api_key: alice-key-123
    bob:
      api_key: bob-key-456
      external_keys:
        postgres_url: postgresql://localhost/bobdb

The loaded store is indexed by API key and is read-only.
"""

from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping

import yaml
from pydantic import BaseModel, Field, ValidationError

from shared.errors import CredentialsError
from shared.logging import get_logger
from shared.models import Credential

logger = get_logger(__name__)

CredentialStore = Mapping[str, Credential]


class UserConfig(BaseModel):
    """One user's entry in the credentials file."""
    api_key: str
    external_keys: dict[str, str] = Field(default_factory=dict)


def build_credential_store(credentials: Iterable[Credential]) -> CredentialStore:
    """
    Index credentials by API key.

    Raises:
        CredentialsError: If two users share an API key
    """
    store: dict[str, Credential] = {}
    for credential in credentials:
        if credential.api_key in store:
            raise CredentialsError(
                f"Duplicate API key found for user '{credential.username}'"
            )
        store[credential.api_key] = credential
    return MappingProxyType(store)


def parse_credentials(data: Any, source: str = "<memory>") -> CredentialStore:
    """Build a credential store from the decoded contents of a credentials file."""
    if not isinstance(data, dict):
        raise CredentialsError(
            f"Credentials file at {source} must map usernames to user entries"
        )
    if not data:
        raise CredentialsError(f"No users found in credentials file at: {source}")

    credentials = []
    for username, entry in data.items():
        try:
            user = UserConfig.model_validate(entry)
        except ValidationError as e:
            raise CredentialsError(
                f"Invalid entry for user '{username}' in {source}: {e}"
            ) from e
        credentials.append(Credential(
            username=str(username),
            api_key=user.api_key,
            external_keys=user.external_keys,
        ))

    return build_credential_store(credentials)


def load_credentials(path: str | Path) -> CredentialStore:
    """
    Load the credential store from a YAML file.

    Raises:
        CredentialsError: If the file is unreadable, malformed, empty,
            or contains duplicate API keys
    """
    path = Path(path)
    try:
        contents = path.read_text()
    except OSError as e:
        raise CredentialsError(f"Failed to read credentials file at: {path}") from e

    try:
        data = yaml.safe_load(contents)
    except yaml.YAMLError as e:
        raise CredentialsError(f"Failed to parse credentials file at: {path}") from e

    store = parse_credentials(data, source=str(path))
    logger.info("Credentials loaded", path=str(path), user_count=len(store))
    return store
