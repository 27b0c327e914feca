"""Auth commands -- obtain and manage 42 API tokens.

Provides the ``ftapi auth`` sub-command group. Application credentials
come from the configured sources (``env:FTAPI_UID`` / ``env:FTAPI_SECRET``
by default); the user token obtained by ``exchange`` is kept in the
:class:`~ftapi.token_store.TokenStore`.

Typical workflow::

    ftapi auth url                 # open the printed URL, log in
    ftapi auth exchange <code>     # store the user token
    ftapi user me                  # use it
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

import typer

from ftapi.exceptions import FtError
from ftapi.models import Token
from ftapi.output import error, format_response, get_output, info, print_data, success, suggest

auth_app = typer.Typer(no_args_is_help=True)

_REDACTED = "********"


@auth_app.command("token")
def auth_token(
    ctx: typer.Context,
    show_secret: bool = typer.Option(
        False, "--show-secret", help="Print the access token instead of redacting it."
    ),
) -> None:
    """Fetch an application token with the client-credentials grant.

    Example::

        ftapi auth token
        ftapi --json auth token --show-secret
    """
    from ftapi.client import FtClient
    from ftapi.config import resolve_config

    try:
        config = resolve_config((ctx.obj or {}).get("base_url"))
        with FtClient.from_config(config) as client:
            token = client.fetch_app_token()
    except FtError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    format_response(token_view(token, show_secret=show_secret))


@auth_app.command("url")
def auth_url(
    ctx: typer.Context,
    callback: Optional[str] = typer.Option(
        None, "--callback", "-c", help="Redirect URI registered for the application."
    ),
    scopes: Optional[list[str]] = typer.Option(
        None, "--scope", "-s", help="Scope to request (repeatable)."
    ),
) -> None:
    """Print the URL a user must open to authorize the application.

    Defaults for the callback URL and scopes come from the config file.

    Example::

        ftapi auth url --scope public --scope profile
    """
    from ftapi.client import FtClient
    from ftapi.config import resolve_config

    try:
        config = resolve_config((ctx.obj or {}).get("base_url"))
        with FtClient.from_config(config) as client:
            url = client.get_authorization_url(
                callback or config.callback_url, scopes or config.scopes
            )
    except FtError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    print_data(url)
    suggest("After logging in, run: ftapi auth exchange <code>")


@auth_app.command("exchange")
def auth_exchange(
    ctx: typer.Context,
    code: str = typer.Argument(help="Authorization code from the callback query string."),
    callback: Optional[str] = typer.Option(
        None, "--callback", "-c", help="Redirect URI used when building the authorization URL."
    ),
) -> None:
    """Exchange an authorization code for a user token and store it.

    Example::

        ftapi auth exchange 4f2c9e...
    """
    from ftapi.client import FtClient
    from ftapi.config import resolve_config
    from ftapi.token_store import TokenStore

    try:
        config = resolve_config((ctx.obj or {}).get("base_url"))
        with FtClient.from_config(config) as client:
            token = client.fetch_access_token(code, callback or config.callback_url)
    except FtError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    store = TokenStore()
    store.save(token)
    success(f"User token stored at {store.path}")
    suggest("Try it: ftapi user me")


@auth_app.command("status")
def auth_status() -> None:
    """Show the state of the stored user token.

    Example::

        ftapi auth status
    """
    from ftapi.token_store import TokenStore

    store = TokenStore()
    token = store.load()
    if token is None:
        info("No stored user token.")
        suggest("Log in: ftapi auth url")
        return

    rows = [
        ["Token Type", token.token_type],
        ["Scope", token.scope],
        ["Created At", _format_timestamp(token.created_at)],
        ["Expires At", _format_timestamp(token.expires_at)],
        ["Expired", str(token.is_expired())],
        ["Renewable", str(token.can_renew())],
    ]
    get_output().print_table(["Field", "Value"], rows, title="Stored User Token")


@auth_app.command("logout")
def auth_logout() -> None:
    """Delete the stored user token.

    Example::

        ftapi auth logout
    """
    from ftapi.token_store import TokenStore

    if TokenStore().clear():
        success("Stored user token removed.")
    else:
        info("No stored user token.")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def token_view(token: Token, show_secret: bool = False) -> dict[str, Any]:
    """Render *token* for display, redacting secrets unless asked not to."""
    data = token.model_dump(exclude_none=True)
    if not show_secret:
        data["access_token"] = _REDACTED
        if "refresh_token" in data:
            data["refresh_token"] = _REDACTED
    data["expires_at"] = token.expires_at
    return data


def _format_timestamp(ts: int) -> str:
    """ISO-8601 UTC time, or the raw integer when it is past year 9999."""
    try:
        return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()
    except (OverflowError, ValueError, OSError):
        return str(ts)
