"""Shared test fixtures for ftapi.

Provides token and payload builders, a fixed clock, isolated config
environments, output state management, and a CLI runner. These fixtures
are discovered by pytest and available to all test modules without
explicit imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from ftapi.models import Token
from ftapi.output import OutputFormat, OutputManager, reset_output, set_output


NOW = 1_700_000_000
"""Fixed "current time" used by tests that inject a clock."""


def make_token_payload(**overrides: Any) -> dict[str, Any]:
    """Build a token endpoint JSON body, valid for an hour from :data:`NOW`."""
    data: dict[str, Any] = {
        "access_token": "app-access-token",
        "token_type": "bearer",
        "expires_in": 7200,
        "scope": "public",
        "created_at": NOW - 3600,
    }
    data.update(overrides)
    return data


def make_token(**overrides: Any) -> Token:
    """Build a :class:`Token` from :func:`make_token_payload`."""
    return Token.model_validate(make_token_payload(**overrides))


def make_user_payload(**overrides: Any) -> dict[str, Any]:
    """Build a ``/v2/me`` response body."""
    data: dict[str, Any] = {
        "id": 4242,
        "email": "norminet@student.42.fr",
        "login": "norminet",
        "first_name": "Norminet",
        "last_name": "Cat",
        "usual_full_name": "Norminet Cat",
        "usual_first_name": None,
        "url": "https://api.intra.42.fr/v2/users/norminet",
        "phone": "hidden",
        "displayname": "Norminet Cat",
        "kind": "student",
        "image": {
            "link": "https://cdn.intra.42.fr/users/norminet.jpg",
            "versions": {
                "large": "https://cdn.intra.42.fr/users/large_norminet.jpg",
                "medium": "https://cdn.intra.42.fr/users/medium_norminet.jpg",
                "small": "https://cdn.intra.42.fr/users/small_norminet.jpg",
                "micro": "https://cdn.intra.42.fr/users/micro_norminet.jpg",
            },
        },
        "staff?": False,
        "correction_point": 7,
        "wallet": 120,
        "pool_month": "september",
    }
    data.update(overrides)
    return data


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager's Rich consoles keep references to the streams that
    were current when it was created; CliRunner swaps those streams, so a
    manager must never outlive the test that created it.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """A settable clock for expiry tests."""

    def __init__(self, now: int = NOW) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration and data directories to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME under tmp_path, forces the XDG
    layout regardless of platform, clears FTAPI_* environment variables,
    and changes the working directory to tmp_path.
    """
    monkeypatch.setattr("ftapi.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["FTAPI_UID", "FTAPI_SECRET", "FTAPI_BASE_URL"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet, plain OutputManager for tests that don't care about output."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
