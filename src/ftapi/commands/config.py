"""Config commands -- view and modify the global configuration.

Provides the ``ftapi config`` sub-command group for reading and updating
the user's configuration file (:class:`~ftapi.models.GlobalConfig`).
Settings control the API base URL, where the application credentials come
from, the default callback URL and scopes, and request timeouts.
"""

from __future__ import annotations

import typer

from ftapi.exceptions import ConfigError
from ftapi.output import error, format_response, info, print_data, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the stored configuration (defaults filled in).

    Example::

        ftapi config show
        ftapi --json config show
    """
    from ftapi.config import config_path, load_global_config

    try:
        config = load_global_config()
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    info(f"Config file: {config_path()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key, e.g. 'base_url' or 'request.timeout'."),
    value: str = typer.Argument(help="Value to set. Scopes are space or comma separated."),
) -> None:
    """Set a configuration value.

    The updated config is validated against
    :class:`~ftapi.models.GlobalConfig` before saving.

    Example::

        ftapi config set app_id_source file:~/.secrets/42_uid
        ftapi config set scopes "public projects profile"
        ftapi config set request.connect_timeout 10
    """
    from ftapi.config import load_global_config, save_global_config, set_config_value

    try:
        updated = set_config_value(load_global_config(), key, value)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=2) from None

    save_global_config(updated)
    success(f"Set {key}.")


@config_app.command("path")
def config_path_command() -> None:
    """Print the path of the config file."""
    from ftapi.config import config_path

    print_data(str(config_path()))
