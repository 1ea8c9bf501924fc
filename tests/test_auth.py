"""Tests for auth module."""

import pytest

from dbview_mcp.auth import (
    AuthError,
    BearerTokenVerifier,
    check_write_permission,
    get_auth_provider,
)
from dbview_mcp.config import Config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("DBVIEW_AUTH_TOKEN", "DBVIEW_READ_ONLY", "DBVIEW_PORT", "DBVIEW_ROW_LIMIT"):
        monkeypatch.delenv(name, raising=False)


class TestBearerTokenVerifier:
    """Tests for BearerTokenVerifier class."""

    @pytest.mark.asyncio
    async def test_no_auth_configured_allows_any_request(self):
        """When DBVIEW_AUTH_TOKEN is not set, all requests should pass."""
        verifier = BearerTokenVerifier(Config.from_env())

        result = await verifier.verify_token("any-token")
        assert result is not None
        assert result.client_id == "anonymous"

        result = await verifier.verify_token("")
        assert result is not None

    @pytest.mark.asyncio
    async def test_empty_token_rejected(self, monkeypatch):
        monkeypatch.setenv("DBVIEW_AUTH_TOKEN", "a" * 32)
        verifier = BearerTokenVerifier(Config.from_env())
        assert await verifier.verify_token("") is None

    @pytest.mark.asyncio
    async def test_invalid_token_rejected(self, monkeypatch):
        monkeypatch.setenv("DBVIEW_AUTH_TOKEN", "correct-token-with-32-characters!")
        verifier = BearerTokenVerifier(Config.from_env())
        assert await verifier.verify_token("wrong-token") is None

    @pytest.mark.asyncio
    async def test_valid_token_accepted(self, monkeypatch):
        token = "my-super-secret-token-32-chars!!"
        monkeypatch.setenv("DBVIEW_AUTH_TOKEN", token)
        verifier = BearerTokenVerifier(Config.from_env())

        result = await verifier.verify_token(token)
        assert result is not None
        assert result.client_id == "authenticated"
        assert result.token == token
        assert result.scopes == ["read", "write"]

    @pytest.mark.asyncio
    async def test_read_only_token_has_read_scope(self, monkeypatch):
        token = "b" * 40
        monkeypatch.setenv("DBVIEW_AUTH_TOKEN", token)
        verifier = BearerTokenVerifier(Config.from_env(read_only_override=True))

        result = await verifier.verify_token(token)
        assert result.scopes == ["read"]


class TestGetAuthProvider:
    def test_returns_verifier_when_token_configured(self, monkeypatch):
        monkeypatch.setenv("DBVIEW_AUTH_TOKEN", "a" * 32)
        assert isinstance(get_auth_provider(Config.from_env()), BearerTokenVerifier)

    def test_returns_none_when_no_token(self):
        assert get_auth_provider(Config.from_env()) is None


class TestCheckWritePermission:
    def test_write_allowed_by_default(self):
        check_write_permission(Config.from_env())

    def test_write_rejected_in_read_only_mode_env(self, monkeypatch):
        monkeypatch.setenv("DBVIEW_READ_ONLY", "true")
        with pytest.raises(AuthError, match="read-only mode"):
            check_write_permission(Config.from_env())

    def test_write_rejected_in_read_only_mode_cli(self):
        with pytest.raises(AuthError, match="read-only mode"):
            check_write_permission(Config.from_env(read_only_override=True))

    @pytest.mark.parametrize("value", ["1", "true", "TRUE", "yes", "YES", "True"])
    def test_read_only_env_values(self, monkeypatch, value):
        monkeypatch.setenv("DBVIEW_READ_ONLY", value)
        with pytest.raises(AuthError, match="read-only mode"):
            check_write_permission(Config.from_env())

    @pytest.mark.parametrize("value", ["0", "false", "no", ""])
    def test_read_only_false_values(self, monkeypatch, value):
        monkeypatch.setenv("DBVIEW_READ_ONLY", value)
        check_write_permission(Config.from_env())

    def test_cli_flag_overrides_env(self, monkeypatch):
        monkeypatch.setenv("DBVIEW_READ_ONLY", "true")
        check_write_permission(Config.from_env(read_only_override=False))
