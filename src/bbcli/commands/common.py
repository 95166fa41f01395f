"""Helpers shared by the ``bb`` sub-commands.

* :func:`make_client` -- build a :class:`~bbcli.client.Client` from the
  resolved token, ``BB_BASE_URL`` and the configured ``http_timeout``.
  With ``--verbose`` it installs httpx event hooks that trace every request
  on stderr.
* :func:`split_repo` -- parse the ``--repo WORKSPACE/REPO`` option.
* :func:`confirm` -- honour ``--force`` / ``--no-input`` for destructive
  commands.
* :func:`collect` -- gather up to ``--limit`` items across pages.
* :func:`check_choice` -- validate enumerated option values before any
  request is sent.

Shared state lives in ``ctx.obj`` (populated by
:func:`bbcli.app.main_callback`). Tests may place an ``httpx`` transport
under ``ctx.obj["transport"]`` to intercept traffic.
"""

from __future__ import annotations

from typing import Any, Optional, TypeVar

import httpx
import typer

from bbcli.client import Client, Paginated, iter_values
from bbcli.exceptions import InvalidUsageError
from bbcli.models import DEFAULT_HOST
from bbcli.output import debug, get_output, info

T = TypeVar("T")

DEFAULT_LIMIT = 30
MAX_PAGELEN = 50


def context_obj(ctx: Optional[typer.Context]) -> dict[str, Any]:
    if ctx is None or ctx.obj is None:
        return {}
    return ctx.obj


def _log_request(request: httpx.Request) -> None:
    debug(f"> {request.method} {request.url}")


def _log_response(response: httpx.Response) -> None:
    request = response.request
    debug(f"< {response.status_code} {request.method} {request.url}")


def make_client(ctx: Optional[typer.Context] = None, token: Optional[str] = None) -> Client:
    """Create an API client for the current invocation.

    Args:
        ctx: Typer context; ``ctx.obj`` may carry ``host`` and ``transport``.
        token: Explicit token (used by ``bb auth login`` to verify a new
            token). ``None`` resolves it via :func:`~bbcli.config.resolve_token`.

    Returns:
        A client the caller is responsible for closing (use ``with``).
    """
    from bbcli.config import get_base_url, load_global_config, resolve_token

    obj = context_obj(ctx)
    if token is None:
        resolved = resolve_token(obj.get("host") or DEFAULT_HOST)
        token = resolved.token
        if resolved.source:
            debug(f"Using token from {resolved.source}")
        else:
            debug("No token configured, sending anonymous requests")

    config = load_global_config()
    hooks = None
    if get_output().is_verbose:
        hooks = {"request": [_log_request], "response": [_log_response]}

    return Client(
        base_url=get_base_url(),
        token=token,
        timeout=float(config.http_timeout),
        transport=obj.get("transport"),
        event_hooks=hooks,
    )


def split_repo(value: str) -> tuple[str, str]:
    """Split ``WORKSPACE/REPO`` into its two parts.

    Raises:
        InvalidUsageError: If *value* is not of that form.
    """
    workspace, sep, slug = value.strip().partition("/")
    if not sep or not workspace or not slug or "/" in slug:
        raise InvalidUsageError(f"invalid repository '{value}': expected WORKSPACE/REPO")
    return workspace, slug


def prompts_disabled(ctx: Optional[typer.Context]) -> bool:
    """True when ``--no-input`` is set or ``prompt: disabled`` is configured."""
    from bbcli.config import load_global_config

    if context_obj(ctx).get("no_input"):
        return True
    return load_global_config().prompt == "disabled"


def confirm(ctx: Optional[typer.Context], question: str) -> None:
    """Ask *question* unless ``--force`` was given.

    Raises:
        InvalidUsageError: If prompting is disabled and ``--force`` is absent.
        typer.Exit: If the user declines.
    """
    if context_obj(ctx).get("force"):
        return
    if prompts_disabled(ctx):
        raise InvalidUsageError(f"{question} Pass --force to confirm without prompting.")
    if not typer.confirm(question):
        info("Cancelled.")
        raise typer.Exit()


def page_size(limit: int) -> int:
    """Return the ``pagelen`` to request for at most *limit* items."""
    if limit <= 0:
        raise InvalidUsageError("--limit must be a positive number")
    return min(limit, MAX_PAGELEN)


def check_choice(option: str, value: Optional[str], choices: tuple[str, ...]) -> None:
    """Reject *value* unless it is empty/``None`` or one of *choices*.

    Raises:
        InvalidUsageError: Naming the option and the accepted values.
    """
    if value and value not in choices:
        raise InvalidUsageError(f"invalid value '{value}' for {option}; expected one of: {', '.join(choices)}")


def collect(
    client: Client,
    first: Paginated[T],
    shape: type[Paginated[T]],
    limit: int,
) -> list[T]:
    """Return up to *limit* items starting with *first*, fetching more pages as needed."""
    return list(iter_values(client, first, shape, limit=limit))


def dump_models(items: list[Any]) -> list[dict[str, Any]]:
    return [item.to_json() for item in items]
