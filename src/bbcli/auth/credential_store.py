"""Persistent credential store keyed by ``host:user``.

Stores one token per account in ``<data dir>/credentials/<host>:<user>.json``
(see :func:`bbcli.config.get_data_dir`). Files are written atomically with
``0o600`` permissions so that secrets are never world-readable, even
momentarily.

The HTTP client never reads this store: :func:`bbcli.config.resolve_token`
turns an entry into a plain token string before a client is built.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from bbcli.config import _atomic_write, get_data_dir


def credential_key(host: str, user: str) -> str:
    """Return the store key for an account, e.g. ``bitbucket.org:alice``."""
    return f"{host}:{user}"


class CredentialEntry(BaseModel):
    """A stored access token for one account.

    Attributes:
        token: The bearer token.
        host: Bitbucket host the token belongs to.
        user: Account name on that host.
        created_at: When the token was stored (UTC).
    """

    token: str = Field(description="Bearer token")
    host: str = Field(description="Bitbucket host, e.g. bitbucket.org")
    user: str = Field(description="Account the token belongs to")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the token was stored",
    )


def _credentials_dir() -> Path:
    """Return the credentials directory, creating it if needed."""
    path = get_data_dir() / "credentials"
    path.mkdir(parents=True, exist_ok=True)
    return path


class CredentialStore:
    """Read/write the token of a single ``host:user`` account.

    Args:
        host: Bitbucket host name.
        user: Account name on that host.

    Example::

        store = CredentialStore("bitbucket.org", "alice")
        store.save(CredentialEntry(token="tok123", host="bitbucket.org", user="alice"))
        assert store.load().token == "tok123"
    """

    def __init__(self, host: str, user: str) -> None:
        self._key = credential_key(host, user)
        self._path = _credentials_dir() / f"{self._key}.json"

    @property
    def key(self) -> str:
        """The ``host:user`` key of this entry."""
        return self._key

    @property
    def path(self) -> Path:
        """The filesystem path to this account's credential file."""
        return self._path

    def save(self, entry: CredentialEntry) -> None:
        """Persist *entry* atomically with ``0o600`` permissions.

        Raises:
            OSError: If the file cannot be written (permissions, disk full, etc.).
        """
        text = json.dumps(entry.model_dump(mode="json"), indent=2) + "\n"
        _atomic_write(self._path, text, mode=0o600)

    def load(self) -> Optional[CredentialEntry]:
        """Load the stored entry, or ``None`` if it is missing or unreadable."""
        if not self._path.is_file():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return CredentialEntry.model_validate(data)
        except (json.JSONDecodeError, ValidationError, OSError):
            return None

    def clear(self) -> bool:
        """Delete the stored entry. Returns ``True`` if a file was removed."""
        if self._path.is_file():
            self._path.unlink()
            return True
        return False
