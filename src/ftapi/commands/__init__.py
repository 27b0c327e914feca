"""Built-in CLI sub-commands for ftapi.

Each module exports a :class:`typer.Typer` sub-application registered on
the root app in :mod:`ftapi.app`:

* :mod:`~ftapi.commands.auth` -- application tokens, the authorization
  URL, code exchange and the stored user token.
* :mod:`~ftapi.commands.user` -- user resources (``me``).
* :mod:`~ftapi.commands.config` -- view and modify global settings.
"""
