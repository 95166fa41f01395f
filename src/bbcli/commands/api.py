"""Raw API command -- send an authenticated request to any endpoint.

The response is decoded as arbitrary JSON (falling back to text) and
printed in the active output format, so ``bb api`` covers endpoints that
have no dedicated command.

Example::

    bb api /user
    bb api /repositories/acme/widgets/issues -q state=open -q pagelen=5
    bb api /repositories/acme/widgets/issues -X POST -f title="Broken link"
"""

from __future__ import annotations

import json
from typing import Any, Optional

import typer

from bbcli.commands.common import make_client
from bbcli.exceptions import DecodeError, InvalidUsageError
from bbcli.output import format_response, print_data


def _split_pairs(values: Optional[list[str]], flag: str) -> list[tuple[str, str]]:
    pairs = []
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise InvalidUsageError(f"{flag} expects key=value, got '{item}'")
        pairs.append((key, value))
    return pairs


def _field_value(raw: str) -> Any:
    """Interpret ``true``/``false``/``null``, numbers and JSON literals; otherwise keep the string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def api_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Endpoint path, e.g. /user, or a full URL."),
    method: Optional[str] = typer.Option(
        None, "--method", "-X", help="HTTP method (default GET, or POST when fields are given)."
    ),
    fields: Optional[list[str]] = typer.Option(
        None, "--field", "-f", help="Body field key=value; may be repeated."
    ),
    query: Optional[list[str]] = typer.Option(
        None, "--query", "-q", help="Query parameter key=value; may be repeated."
    ),
    headers: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Extra header key:value; may be repeated."
    ),
) -> None:
    """Make an authenticated request to the Bitbucket API.

    Relative paths are resolved against the API base URL. Field values are
    parsed as JSON literals where possible, so ``-f is_private=true`` sends
    a boolean.
    """
    from bbcli.client import JSONValue, Request, parse_response

    body_pairs = _split_pairs(fields, "--field")
    body = {key: _field_value(value) for key, value in body_pairs} if body_pairs else None
    verb = (method or ("POST" if body is not None else "GET")).upper()

    extra_headers: dict[str, str] = {}
    for item in headers or []:
        key, sep, value = item.partition(":")
        if not sep or not key.strip():
            raise InvalidUsageError(f"--header expects key:value, got '{item}'")
        extra_headers[key.strip()] = value.strip()

    if not path.startswith(("/", "http://", "https://")):
        path = "/" + path

    try:
        request = Request(verb, path, query=_split_pairs(query, "--query"), body=body, headers=extra_headers)
    except ValueError as exc:
        raise InvalidUsageError(str(exc)) from exc

    with make_client(ctx) as client:
        response = client.do(request)

    if not response.body:
        return
    try:
        format_response(parse_response(response, JSONValue))
    except DecodeError:
        print_data(response.text)
