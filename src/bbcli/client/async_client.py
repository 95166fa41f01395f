"""Asynchronous Bitbucket API client -- mirrors :class:`~bbcli.client.sync_client.Client`.

:class:`AsyncClient` wraps :class:`httpx.AsyncClient` and shares request
building and outcome classification with the blocking client, so both
behave identically on the wire. Cancelling the awaiting task aborts the
in-flight request promptly; the resulting :class:`asyncio.CancelledError`
propagates untouched and is never reported as an
:class:`~bbcli.exceptions.APIError`.

See Also:
    :class:`~bbcli.client.sync_client.Client` for the blocking equivalent.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

import httpx

from bbcli.client.base import DEFAULT_TIMEOUT, _BaseClient
from bbcli.client.types import Query, Request, Response


class AsyncClient(_BaseClient):
    """Non-blocking HTTP client for the Bitbucket API.

    Takes the same arguments as :class:`~bbcli.client.sync_client.Client`,
    except that *transport* must be an :class:`httpx.AsyncBaseTransport`.

    Example::

        async with AsyncClient(token="secret") as client:
            response = await client.get("/user")
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: str = "",
        *,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        event_hooks: Optional[dict[str, list[Callable[..., Any]]]] = None,
    ) -> None:
        super().__init__(base_url=base_url, token=token, timeout=timeout)
        self._client = httpx.AsyncClient(
            transport=transport,
            timeout=timeout,
            follow_redirects=True,
            event_hooks=event_hooks,
        )

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def do(self, request: Request, *, timeout: Optional[float] = None) -> Response:
        """Perform one HTTP round trip without blocking the event loop.

        Behaves identically to :meth:`~bbcli.client.sync_client.Client.do`.

        Raises:
            APIError: For status codes >= 400.
            TransportError: If no response was obtained.
            asyncio.CancelledError: If the awaiting task is cancelled.
        """
        prepared = self._prepare(request)
        try:
            raw = await self._client.request(
                **prepared.as_kwargs(),
                timeout=self._timeout_for(timeout),
            )
        except httpx.HTTPError as exc:
            raise self._transport_error(prepared, exc) from exc
        return self._classify(raw)

    async def get(self, path: str, query: Optional[Query] = None) -> Response:
        """Send a GET request to *path* with optional *query* parameters."""
        return await self.do(Request("GET", path, query=query))

    async def post(self, path: str, body: Any = None) -> Response:
        """Send a POST request with an optional JSON *body*."""
        return await self.do(Request("POST", path, body=body))

    async def put(self, path: str, body: Any = None) -> Response:
        """Send a PUT request with an optional JSON *body*."""
        return await self.do(Request("PUT", path, body=body))

    async def delete(self, path: str) -> Response:
        """Send a DELETE request."""
        return await self.do(Request("DELETE", path))
