"""Local credential storage for Bitbucket access tokens.

- :class:`CredentialEntry` -- one stored token with its host and user.
- :class:`CredentialStore` -- atomic, ``0o600`` JSON file per ``host:user``.

Token *selection* (environment variables first, then this store) lives in
:func:`bbcli.config.resolve_token`.
"""

from bbcli.auth.credential_store import (
    CredentialEntry,
    CredentialStore,
    credential_key,
)

__all__ = ["CredentialEntry", "CredentialStore", "credential_key"]
