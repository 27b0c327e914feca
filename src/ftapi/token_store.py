"""Persistent storage for the CLI's user token.

Stores the token obtained by ``ftapi auth exchange`` in
``~/.local/share/ftapi/tokens/<name>.json`` (XDG) or the
platform-equivalent directory. Files are written atomically with
``0o600`` permissions so the secret is never world-readable, even
momentarily.

The file holds the token exactly as the API issued it, serialised without
absent optional fields so that loading it back yields an equal
:class:`~ftapi.models.Token`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ftapi.config import _atomic_write, get_data_dir
from ftapi.models import Token

DEFAULT_TOKEN_NAME = "default"


def _tokens_dir() -> Path:
    path = get_data_dir() / "tokens"
    path.mkdir(parents=True, exist_ok=True)
    return path


class TokenStore:
    """Read/write a single named user token.

    Args:
        name: Identifier used to derive the file name.

    Example::

        store = TokenStore()
        store.save(token)
        assert store.load() == token
    """

    def __init__(self, name: str = DEFAULT_TOKEN_NAME) -> None:
        self._name = name
        self._path = _tokens_dir() / f"{name}.json"

    @property
    def path(self) -> Path:
        """The filesystem path to this token's file."""
        return self._path

    def save(self, token: Token) -> None:
        """Persist *token* atomically with ``0o600`` permissions."""
        _atomic_write(
            self._path,
            token.model_dump_json(exclude_none=True, indent=2) + "\n",
            mode=0o600,
        )

    def load(self) -> Optional[Token]:
        """Load the stored token.

        Returns:
            The stored :class:`~ftapi.models.Token`, or ``None`` if the
            file does not exist or cannot be parsed.
        """
        if not self._path.is_file():
            return None
        try:
            return Token.model_validate_json(self._path.read_text(encoding="utf-8"))
        except (ValidationError, OSError):
            return None

    def clear(self) -> bool:
        """Delete the stored token file.

        Returns:
            ``True`` if a file was removed, ``False`` if none existed.
        """
        if self._path.is_file():
            self._path.unlink()
            return True
        return False
