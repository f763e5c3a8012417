"""Tests for credential loading."""

import pytest
from pydantic import ValidationError

from shared.errors import CredentialsError
from shared.models import Credential


def write(tmp_path, text: str):
    path = tmp_path / "credentials.yaml"
    path.write_text(text)
    return path


class TestLoadCredentials:
    """Tests for load_credentials."""

    def test_load_users(self, tmp_path):
        from mcp_server.credentials import load_credentials

        path = write(tmp_path, """
alice:
  api_key: alice-key-123

bob:
  api_key: bob-key-456
  external_keys:
    postgres_url: postgresql://localhost/bobdb
""")
        store = load_credentials(path)

        assert len(store) == 2
        assert store["alice-key-123"].username == "alice"
        assert store["alice-key-123"].external_keys == {}
        assert store["bob-key-456"].get_external_key("postgres_url") == (
            "postgresql://localhost/bobdb"
        )

    def test_store_is_read_only(self, tmp_path):
        from mcp_server.credentials import load_credentials

        store = load_credentials(write(tmp_path, "alice:\n  api_key: k1\n"))
        with pytest.raises(TypeError):
            store["k2"] = store["k1"]

    def test_missing_file(self, tmp_path):
        from mcp_server.credentials import load_credentials

        with pytest.raises(CredentialsError, match="Failed to read"):
            load_credentials(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        from mcp_server.credentials import load_credentials

        with pytest.raises(CredentialsError, match="Failed to parse"):
            load_credentials(write(tmp_path, "invalid: [ yaml: syntax"))

    def test_empty_file(self, tmp_path):
        from mcp_server.credentials import load_credentials

        with pytest.raises(CredentialsError):
            load_credentials(write(tmp_path, ""))

    def test_no_users(self, tmp_path):
        from mcp_server.credentials import load_credentials

        with pytest.raises(CredentialsError, match="No users"):
            load_credentials(write(tmp_path, "{}"))

    def test_entry_without_api_key(self, tmp_path):
        from mcp_server.credentials import load_credentials

        with pytest.raises(CredentialsError, match="alice"):
            load_credentials(write(tmp_path, "alice:\n  external_keys: {}\n"))

    def test_duplicate_api_keys(self, tmp_path):
        from mcp_server.credentials import load_credentials

        path = write(tmp_path, """
alice:
  api_key: duplicate-key
bob:
  api_key: duplicate-key
""")
        with pytest.raises(CredentialsError, match="Duplicate API key found for user 'bob'"):
            load_credentials(path)


class TestBuildCredentialStore:
    """Tests for building a store from in-memory credentials."""

    def test_indexed_by_api_key(self):
        from mcp_server.credentials import build_credential_store

        store = build_credential_store([Credential(username="alice", api_key="k1")])
        assert store["k1"].username == "alice"
        assert store.get("alice") is None

    def test_credentials_are_frozen(self):
        credential = Credential(username="alice", api_key="k1")
        with pytest.raises(ValidationError):
            credential.username = "mallory"

    def test_external_keys_are_read_only(self):
        credential = Credential(
            username="alice", api_key="k1", external_keys={"postgres_url": "pg://a"}
        )
        with pytest.raises(TypeError):
            credential.external_keys["postgres_url"] = "pg://mallory"
        assert credential.get_external_key("postgres_url") == "pg://a"

    def test_external_keys_detached_from_input(self):
        source = {"postgres_url": "pg://a"}
        credential = Credential(username="alice", api_key="k1", external_keys=source)
        source["postgres_url"] = "pg://changed"
        assert credential.get_external_key("postgres_url") == "pg://a"

    def test_default_external_keys_are_read_only(self):
        credential = Credential(username="alice", api_key="k1")
        with pytest.raises(TypeError):
            credential.external_keys["x"] = "y"

    def test_serializes_external_keys_as_dict(self):
        credential = Credential(username="alice", api_key="k1", external_keys={"a": "b"})
        assert credential.model_dump()["external_keys"] == {"a": "b"}
