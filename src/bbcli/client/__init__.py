"""Typed HTTP client for the Bitbucket Cloud REST API.

Every ``bb`` command talks to the API through this package:

* :class:`Client` / :class:`AsyncClient` -- one round trip per call, with
  uniform header injection and error classification.
* :class:`Request` / :class:`Response` -- the call description and its raw
  outcome.
* :class:`Paginated` and :func:`parse_response` -- typed decoding of
  response bodies, including the pagination envelope.

Example::

    from bbcli.client import Client, Paginated, parse_response

    with Client(token=token) as client:
        page = parse_response(client.get("/workspaces"), Paginated[Workspace])
"""

from bbcli.client.async_client import AsyncClient
from bbcli.client.base import DEFAULT_BASE_URL, USER_AGENT
from bbcli.client.pagination import iter_values
from bbcli.client.sync_client import Client
from bbcli.client.types import JSONValue, Paginated, Request, Response, parse_response

__all__ = [
    "AsyncClient",
    "Client",
    "DEFAULT_BASE_URL",
    "JSONValue",
    "Paginated",
    "Request",
    "Response",
    "USER_AGENT",
    "iter_values",
    "parse_response",
]
