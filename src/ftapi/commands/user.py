"""User commands -- read resources on behalf of the logged-in user."""

from __future__ import annotations

import typer

from ftapi.exit_codes import EXIT_INVALID_USAGE
from ftapi.exceptions import FtError
from ftapi.output import error, format_response, suggest, warning

user_app = typer.Typer(no_args_is_help=True)


@user_app.command("me")
def user_me(ctx: typer.Context) -> None:
    """Fetch the profile of the user owning the stored token.

    Example::

        ftapi user me
        ftapi --json user me
    """
    from ftapi.client import FtClient
    from ftapi.config import resolve_config
    from ftapi.token_store import TokenStore

    token = TokenStore().load()
    if token is None:
        error("No stored user token.")
        suggest("Log in: ftapi auth url")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    if token.is_expired():
        warning("The stored user token has expired; the API will likely reject it.")

    try:
        config = resolve_config((ctx.obj or {}).get("base_url"))
        with FtClient.from_user(token, config=config.client_config()) as client:
            user = client.fetch_user_data()
    except FtError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    format_response(user.model_dump(mode="json"))
