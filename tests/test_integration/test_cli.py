"""End-to-end tests for the ``ftapi`` CLI.

Every command runs through Typer's ``CliRunner`` against a fake 42 API
served by :class:`httpx.MockTransport`, with config and data directories
isolated under ``tmp_path``.
"""

from __future__ import annotations

import json
import time
from pathlib import Path
from urllib.parse import parse_qs

import httpx
import pytest

from conftest import make_token, make_token_payload, make_user_payload
from ftapi import __version__
from ftapi.app import app, main
from ftapi.exceptions import ConfigError
from ftapi.token_store import TokenStore


# ---------------------------------------------------------------------------
# Fake API
# ---------------------------------------------------------------------------


class FakeApi:
    """Routes requests to canned responses and records what was sent."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.token_response = httpx.Response(200, json=make_token_payload())
        self.user_token_response = httpx.Response(
            200,
            json=make_token_payload(
                access_token="user-token",
                scope="public profile",
                refresh_token="refresh-token",
                created_at=int(time.time()),
            ),
        )
        self.me_response = httpx.Response(200, json=make_user_payload())

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/oauth/token":
            form = parse_qs(request.content.decode())
            if form["grant_type"] == ["authorization_code"]:
                return self.user_token_response
            return self.token_response
        if request.url.path == "/v2/me":
            return self.me_response
        return httpx.Response(404, json={"error": "not_found"})


@pytest.fixture
def api(isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> FakeApi:
    """Serve the fake API to every client the CLI builds."""
    fake = FakeApi()
    real_client = httpx.Client

    def _client(**kwargs):
        kwargs["transport"] = httpx.MockTransport(fake)
        return real_client(**kwargs)

    monkeypatch.setattr(httpx, "Client", _client)
    monkeypatch.setenv("FTAPI_UID", "abc")
    monkeypatch.setenv("FTAPI_SECRET", "s3cret")
    return fake


def _store_user_token(**overrides) -> None:
    overrides.setdefault("access_token", "user-token")
    overrides.setdefault("created_at", int(time.time()))
    TokenStore().save(make_token(**overrides))


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


class TestRoot:
    def test_version(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"ftapi {__version__}" in result.output

    def test_no_args_shows_help(self, cli_runner) -> None:
        result = cli_runner.invoke(app, [])
        assert "auth" in result.output
        assert "user" in result.output


# ---------------------------------------------------------------------------
# auth
# ---------------------------------------------------------------------------


class TestAuthUrl:
    def test_prints_authorization_url(self, cli_runner, api: FakeApi) -> None:
        result = cli_runner.invoke(
            app,
            ["-q", "--no-color", "auth", "url", "-s", "public", "-s", "projects", "-s", "profile"],
        )
        assert result.exit_code == 0, result.output
        assert result.output.strip() == (
            "https://api.intra.42.fr/oauth/authorize?client_id=abc"
            "&redirect_uri=http%3A%2F%2Flocalhost%3A1337%2Foauth%2Fcallback"
            "&scope=public%20projects%20profile&response_type=code"
        )
        assert api.requests == []

    def test_base_url_flag(self, cli_runner, api: FakeApi) -> None:
        result = cli_runner.invoke(
            app, ["-q", "--base-url", "http://localhost:3000/", "auth", "url"]
        )
        assert result.exit_code == 0, result.output
        assert result.output.startswith("http://localhost:3000/oauth/authorize?client_id=abc&")
        assert "scope=public&" in result.output

    def test_missing_credentials(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["--no-color", "auth", "url"])
        assert result.exit_code == 1
        assert "FTAPI_UID" in result.output


class TestAuthToken:
    def test_redacted_by_default(self, cli_runner, api: FakeApi) -> None:
        result = cli_runner.invoke(app, ["--json", "-q", "--no-color", "auth", "token"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["access_token"] == "********"
        assert data["expires_at"] == data["created_at"] + data["expires_in"]

    def test_show_secret(self, cli_runner, api: FakeApi) -> None:
        result = cli_runner.invoke(
            app, ["--json", "-q", "--no-color", "auth", "token", "--show-secret"]
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["access_token"] == "app-access-token"

    def test_rejected_credentials(self, cli_runner, api: FakeApi) -> None:
        api.token_response = httpx.Response(
            401,
            json={"error": "invalid_client", "error_description": "Client authentication failed."},
        )
        result = cli_runner.invoke(app, ["--no-color", "auth", "token"])
        assert result.exit_code == 3
        assert "invalid_client" in result.output

    def test_verbose_traces_request(self, cli_runner, api: FakeApi) -> None:
        result = cli_runner.invoke(app, ["--json", "-v", "--no-color", "auth", "token"])
        assert result.exit_code == 0, result.output
        assert "[debug] POST https://api.intra.42.fr/oauth/token" in result.output


class TestAuthExchange:
    def test_stores_user_token(self, cli_runner, api: FakeApi) -> None:
        result = cli_runner.invoke(app, ["--no-color", "auth", "exchange", "the-code"])
        assert result.exit_code == 0, result.output
        assert "User token stored" in result.output

        stored = TokenStore().load()
        assert stored is not None
        assert stored.access_token == "user-token"
        assert stored.refresh_token == "refresh-token"

        form = parse_qs(api.requests[0].content.decode())
        assert form["code"] == ["the-code"]
        assert form["redirect_uri"] == ["http://localhost:1337/oauth/callback"]

    def test_custom_callback(self, cli_runner, api: FakeApi) -> None:
        result = cli_runner.invoke(
            app, ["-q", "auth", "exchange", "c", "--callback", "https://example.com/cb"]
        )
        assert result.exit_code == 0, result.output
        form = parse_qs(api.requests[0].content.decode())
        assert form["redirect_uri"] == ["https://example.com/cb"]

    def test_invalid_grant_stores_nothing(self, cli_runner, api: FakeApi) -> None:
        api.user_token_response = httpx.Response(
            400, json={"error": "invalid_grant", "error_description": "code expired"}
        )
        result = cli_runner.invoke(app, ["--no-color", "auth", "exchange", "old"])
        assert result.exit_code == 3
        assert "code expired" in result.output
        assert TokenStore().load() is None


class TestAuthStatusAndLogout:
    def test_status_without_token(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["--no-color", "auth", "status"])
        assert result.exit_code == 0
        assert "No stored user token." in result.output

    def test_status_json(self, cli_runner, isolated_config: Path) -> None:
        _store_user_token(refresh_token="r")
        result = cli_runner.invoke(app, ["--json", "-q", "auth", "status"])
        assert result.exit_code == 0, result.output
        rows = {row["Field"]: row["Value"] for row in json.loads(result.output)}
        assert rows["Token Type"] == "bearer"
        assert rows["Expired"] == "False"
        assert rows["Renewable"] == "True"

    def test_status_with_timestamp_past_year_9999(self, cli_runner, isolated_config: Path) -> None:
        _store_user_token(created_at=10**13)
        result = cli_runner.invoke(app, ["--json", "-q", "auth", "status"])
        assert result.exit_code == 0, result.output
        rows = {row["Field"]: row["Value"] for row in json.loads(result.output)}
        assert rows["Created At"] == "10000000000000"
        assert rows["Expires At"] == str(10**13 + 7200)

    def test_logout(self, cli_runner, isolated_config: Path) -> None:
        _store_user_token()
        result = cli_runner.invoke(app, ["--no-color", "auth", "logout"])
        assert result.exit_code == 0
        assert "removed" in result.output
        assert TokenStore().load() is None

    def test_logout_without_token(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["--no-color", "auth", "logout"])
        assert result.exit_code == 0
        assert "No stored user token." in result.output


# ---------------------------------------------------------------------------
# user
# ---------------------------------------------------------------------------


class TestUserMe:
    def test_prints_profile(self, cli_runner, api: FakeApi) -> None:
        _store_user_token()
        result = cli_runner.invoke(app, ["--json", "-q", "--no-color", "user", "me"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["login"] == "norminet"
        assert data["staff"] is False
        assert "pool_month" not in data
        assert api.requests[0].headers["authorization"] == "Bearer user-token"

    def test_without_stored_token(self, cli_runner, api: FakeApi) -> None:
        result = cli_runner.invoke(app, ["--no-color", "user", "me"])
        assert result.exit_code == 2
        assert "No stored user token." in result.output
        assert api.requests == []

    def test_expired_token_warns(self, cli_runner, api: FakeApi) -> None:
        _store_user_token(created_at=1_000, expires_in=60)
        result = cli_runner.invoke(app, ["--no-color", "user", "me"])
        assert "expired" in result.output

    def test_api_rejection(self, cli_runner, api: FakeApi) -> None:
        _store_user_token()
        api.me_response = httpx.Response(
            401, json={"error": "Not authorized", "error_description": "The access token is invalid"}
        )
        result = cli_runner.invoke(app, ["--no-color", "user", "me"])
        assert result.exit_code == 3
        assert "The access token is invalid" in result.output


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


class TestConfigCommands:
    def test_show_defaults(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["--json", "-q", "config", "show"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["base_url"] == "https://api.intra.42.fr"
        assert data["scopes"] == ["public"]

    def test_set_then_show(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["-q", "config", "set", "scopes", "public projects"])
        assert result.exit_code == 0, result.output
        result = cli_runner.invoke(app, ["--json", "-q", "config", "show"])
        assert json.loads(result.output)["scopes"] == ["public", "projects"]

    def test_set_scopes_used_by_auth_url(self, cli_runner, api: FakeApi) -> None:
        cli_runner.invoke(app, ["-q", "config", "set", "scopes", "public,profile"])
        result = cli_runner.invoke(app, ["-q", "auth", "url"])
        assert "scope=public%20profile" in result.output

    def test_set_unknown_key(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["--no-color", "config", "set", "nope", "x"])
        assert result.exit_code == 2
        assert "Unknown config key" in result.output

    def test_set_invalid_value(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["--no-color", "config", "set", "request.timeout", "soon"])
        assert result.exit_code == 2

    def test_path(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["config", "path"])
        assert result.output.strip().endswith("config.json")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


class TestMain:
    def test_ft_error_maps_to_exit_code(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def _raise() -> None:
            raise ConfigError("broken config")

        monkeypatch.setattr("ftapi.app._setup_signal_handlers", lambda: None)
        monkeypatch.setattr("ftapi.app.app", _raise)
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 1

    def test_unexpected_error_writes_crash_log(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def _raise() -> None:
            raise RuntimeError("boom")

        monkeypatch.setattr("ftapi.app._setup_signal_handlers", lambda: None)
        monkeypatch.setattr("ftapi.app.app", _raise)
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 1

        logs = list((isolated_config / "data" / "ftapi" / "logs").glob("crash-*.log"))
        assert len(logs) == 1
        assert "RuntimeError: boom" in logs[0].read_text()
