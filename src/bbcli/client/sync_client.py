"""Synchronous Bitbucket API client.

This module provides :class:`Client`, the blocking client every ``bb``
command goes through. It wraps :class:`httpx.Client` and adds:

- **Header injection** -- ``Accept``, a fixed ``User-Agent`` that caller
  headers cannot replace and, when a token is
  configured, ``Authorization: Bearer <token>`` on every request.
- **Outcome classification** -- 2xx/3xx come back as a
  :class:`~bbcli.client.types.Response`; 4xx/5xx raise
  :class:`~bbcli.exceptions.APIError`; network failures raise
  :class:`~bbcli.exceptions.TransportError`.

There is no retry, cache or throttling layer: one call is one
round trip.

See Also:
    :class:`~bbcli.client.async_client.AsyncClient` for the
    equivalent non-blocking implementation.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

import httpx

from bbcli.client.base import DEFAULT_TIMEOUT, _BaseClient
from bbcli.client.types import Query, Request, Response


class Client(_BaseClient):
    """Blocking HTTP client for the Bitbucket API.

    Construction performs no network activity. The client may be used as a
    context manager so that the connection pool is closed on exit, and it is
    safe to share between threads because it holds no per-request state.

    Args:
        base_url: API root; ``None`` selects
            :data:`~bbcli.client.base.DEFAULT_BASE_URL`. A single trailing
            slash is stripped.
        token: Bearer token. Empty sends anonymous requests.
        timeout: Default deadline in seconds for each call.
        transport: Optional httpx transport (tests pass
            :class:`httpx.MockTransport`).
        event_hooks: Optional httpx event hooks (the CLI uses them for
            ``--verbose`` request tracing).

    Example::

        with Client(token="secret") as client:
            response = client.get("/repositories/acme", {"pagelen": "5"})
            page = parse_response(response, Paginated[Repository])
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: str = "",
        *,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
        event_hooks: Optional[dict[str, list[Callable[..., Any]]]] = None,
    ) -> None:
        super().__init__(base_url=base_url, token=token, timeout=timeout)
        self._client = httpx.Client(
            transport=transport,
            timeout=timeout,
            follow_redirects=True,
            event_hooks=event_hooks,
        )

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying connection pool."""
        self._client.close()

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def do(self, request: Request, *, timeout: Optional[float] = None) -> Response:
        """Perform one HTTP round trip.

        Args:
            request: What to send.
            timeout: Deadline in seconds for this call, overriding the
                client default.

        Returns:
            The :class:`~bbcli.client.types.Response` for status codes
            below 400.

        Raises:
            APIError: For status codes >= 400. The response is attached as
                ``exc.response``.
            TransportError: If the request body cannot be encoded or no
                response was obtained (DNS, refused connection, timeout).
        """
        prepared = self._prepare(request)
        try:
            raw = self._client.request(
                **prepared.as_kwargs(),
                timeout=self._timeout_for(timeout),
            )
        except httpx.HTTPError as exc:
            raise self._transport_error(prepared, exc) from exc
        return self._classify(raw)

    def get(self, path: str, query: Optional[Query] = None) -> Response:
        """Send a GET request to *path* with optional *query* parameters."""
        return self.do(Request("GET", path, query=query))

    def post(self, path: str, body: Any = None) -> Response:
        """Send a POST request with an optional JSON *body*."""
        return self.do(Request("POST", path, body=body))

    def put(self, path: str, body: Any = None) -> Response:
        """Send a PUT request with an optional JSON *body*."""
        return self.do(Request("PUT", path, body=body))

    def delete(self, path: str) -> Response:
        """Send a DELETE request."""
        return self.do(Request("DELETE", path))
