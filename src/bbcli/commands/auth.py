"""Auth commands -- log in and out of Bitbucket.

Provides the ``bb auth`` sub-command group. ``login`` verifies a token
against ``GET /user``, stores it in the credential store under
``host:user`` and records the user as active in ``hosts.yml``. Environment
tokens (``BB_TOKEN``, ``BITBUCKET_TOKEN``) always take precedence over
stored ones.

Typical workflow::

    echo "$TOKEN" | bb auth login --with-token
    bb auth status
    bb auth logout
"""

from __future__ import annotations

import sys
from typing import Optional

import typer

from bbcli.commands.common import confirm, make_client, prompts_disabled
from bbcli.exceptions import AuthError, InvalidUsageError
from bbcli.models import DEFAULT_HOST
from bbcli.output import get_output, info, print_data, success, suggest


auth_app = typer.Typer(no_args_is_help=True)


def _mask(token: str) -> str:
    if len(token) <= 8:
        return "*" * len(token)
    return token[:4] + "*" * 8


@auth_app.command("login")
def auth_login(
    ctx: typer.Context,
    host: str = typer.Option(DEFAULT_HOST, "--host", help="Bitbucket host."),
    with_token: bool = typer.Option(
        False, "--with-token", help="Read the token from standard input."
    ),
    username: Optional[str] = typer.Option(
        None, "--username", "-u", help="Account name; looked up from the token if omitted."
    ),
) -> None:
    """Store an access token for a Bitbucket account.

    The token is checked with ``GET /user`` before it is saved. Unless
    ``--username`` is given, the account name reported by the API is used
    as the credential store key.

    Args:
        ctx: Typer context carrying the global options.
        host: Host the token belongs to.
        with_token: Read the token from stdin instead of prompting.
        username: Skip the lookup and store under this account name.

    Raises:
        InvalidUsageError: If no token was provided.
        APIError: If the API rejects the token.

    Example::

        bb auth login
        echo "$TOKEN" | bb auth login --with-token
    """
    from bbcli.api.users import get_current_user
    from bbcli.auth import CredentialEntry, CredentialStore
    from bbcli.config import load_hosts, save_hosts

    if with_token:
        token = sys.stdin.read().strip()
    elif prompts_disabled(ctx):
        raise InvalidUsageError("no token given; use --with-token to read it from stdin")
    else:
        token = typer.prompt("Paste your Bitbucket access token", hide_input=True).strip()

    if not token:
        raise InvalidUsageError("token must not be empty")

    with make_client(ctx, token=token) as client:
        user = get_current_user(client)

    name = username or user.username or user.account_id
    if not name:
        raise AuthError("could not determine the account name; pass --username")

    CredentialStore(host, name).save(CredentialEntry(token=token, host=host, user=name))
    hosts = load_hosts()
    hosts.set_active_user(host, name)
    save_hosts(hosts)

    success(f"Logged in to {host} as {name}")


@auth_app.command("logout")
def auth_logout(
    ctx: typer.Context,
    host: str = typer.Option(DEFAULT_HOST, "--host", help="Bitbucket host."),
) -> None:
    """Remove the stored token of the active account on *host*.

    Example::

        bb auth logout
        bb auth logout --force
    """
    from bbcli.auth import CredentialStore
    from bbcli.config import load_hosts, save_hosts

    hosts = load_hosts()
    user = hosts.get_active_user(host)
    if not user:
        info(f"Not logged in to {host}.")
        return

    confirm(ctx, f"Log out of {host} as {user}?")

    CredentialStore(host, user).clear()
    hosts.remove_user(host, user)
    save_hosts(hosts)
    success(f"Logged out of {host} ({user})")


@auth_app.command("status")
def auth_status(
    ctx: typer.Context,
    host: str = typer.Option(DEFAULT_HOST, "--host", help="Bitbucket host."),
    show_token: bool = typer.Option(False, "--show-token", "-t", help="Display the full token."),
) -> None:
    """Show which account is authenticated and where the token comes from.

    Verifies the token with ``GET /user``.

    Raises:
        AuthError: If no token is configured for *host*.
    """
    from bbcli.api.users import get_current_user
    from bbcli.config import resolve_token
    from bbcli.output import user_display_name

    resolved = resolve_token(host)
    if not resolved.token:
        suggest("Log in with: bb auth login")
        raise AuthError(f"not logged in to {host}")

    with make_client(ctx, token=resolved.token) as client:
        user = get_current_user(client)

    token_text = resolved.token if show_token else _mask(resolved.token)
    get_output().print_fields(
        {
            "host": host,
            "user": user.to_json(),
            "token_source": resolved.source,
        },
        [
            ("Host", host),
            ("Account", user.username or user.account_id or "-"),
            ("Name", user_display_name(user)),
            ("Token source", resolved.source),
            ("Token", token_text),
        ],
    )


@auth_app.command("token")
def auth_token(
    host: str = typer.Option(DEFAULT_HOST, "--host", help="Bitbucket host."),
) -> None:
    """Print the token bb would use for *host* to stdout.

    Example::

        curl -H "Authorization: Bearer $(bb auth token)" https://api.bitbucket.org/2.0/user
    """
    from bbcli.config import resolve_token

    resolved = resolve_token(host)
    if not resolved.token:
        raise AuthError(f"no token configured for {host}")
    print_data(resolved.token)
