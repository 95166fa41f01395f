"""Configuration and request plumbing shared by :class:`Client` and :class:`AsyncClient`.

Both clients hold the same immutable configuration (base URL, token, user
agent, default timeout) and follow the same steps around the actual I/O:

1. :meth:`_BaseClient._prepare` turns a :class:`~bbcli.client.types.Request`
   into the URL, query pairs, headers and body bytes to send.
2. The concrete client performs the round trip.
3. :meth:`_BaseClient._classify` wraps the outcome in a
   :class:`~bbcli.client.types.Response` and raises
   :class:`~bbcli.exceptions.APIError` for status codes >= 400.
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import urlencode, urlsplit

import httpx

from bbcli import __version__
from bbcli.client.types import Request, Response
from bbcli.exceptions import APIError, TransportError

DEFAULT_BASE_URL = "https://api.bitbucket.org/2.0"
"""Bitbucket Cloud REST API root used when no base URL is configured."""

USER_AGENT = f"bbcli/{__version__}"
"""Fixed ``User-Agent`` sent with every request."""

DEFAULT_TIMEOUT = 30.0


class _PreparedRequest:
    """Everything needed to hand a request to httpx."""

    __slots__ = ("method", "url", "headers", "content")

    def __init__(
        self,
        method: str,
        url: str,
        headers: httpx.Headers,
        content: Optional[bytes],
    ) -> None:
        self.method = method
        self.url = url
        self.headers = headers
        self.content = content

    def as_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "method": self.method,
            "url": self.url,
            "headers": self.headers,
        }
        if self.content is not None:
            kwargs["content"] = self.content
        return kwargs


class _BaseClient:
    """Immutable client configuration plus request building and classification.

    Args:
        base_url: API root. ``None`` or empty selects :data:`DEFAULT_BASE_URL`.
            One trailing slash is stripped.
        token: Bearer token. Empty means anonymous requests.
        timeout: Default per-request deadline in seconds.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: str = "",
        timeout: Optional[float] = DEFAULT_TIMEOUT,
    ) -> None:
        url = base_url or DEFAULT_BASE_URL
        if url.endswith("/"):
            url = url[:-1]
        self._base_url = url
        self._token = token or ""
        self._timeout = timeout

    @property
    def base_url(self) -> str:
        """The normalised API root."""
        return self._base_url

    @property
    def token(self) -> str:
        """The bearer token, empty for anonymous clients."""
        return self._token

    def url_for(self, path: str) -> str:
        """Resolve *path* against the base URL unless it is already absolute."""
        if urlsplit(path).scheme:
            return path
        return f"{self._base_url}{path}"

    def _url_with_query(self, request: Request) -> str:
        # Caller order is kept on the wire; httpx params would regroup repeated keys.
        url = self.url_for(request.path)
        items = request.query_items()
        if not items:
            return url
        sep = "&" if urlsplit(url).query else "?"
        return f"{url}{sep}{urlencode(items)}"

    def _prepare(self, request: Request) -> _PreparedRequest:
        try:
            content = request.encode_body()
        except (TypeError, ValueError) as exc:
            raise TransportError(f"could not encode request body: {exc}") from exc

        headers = httpx.Headers({"Accept": "application/json"})
        if content is not None:
            headers["Content-Type"] = "application/json"
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        for key, value in request.headers.items():
            headers[key] = value
        headers["User-Agent"] = USER_AGENT

        return _PreparedRequest(
            method=request.method,
            url=self._url_with_query(request),
            headers=headers,
            content=content,
        )

    def _timeout_for(self, timeout: Optional[float]) -> Optional[float]:
        return self._timeout if timeout is None else timeout

    @staticmethod
    def _classify(raw: httpx.Response) -> Response:
        response = Response(
            status_code=raw.status_code,
            body=raw.content,
            headers=raw.headers,
        )
        if response.status_code >= 400:
            raise APIError.from_response(response)
        return response

    @staticmethod
    def _transport_error(prepared: _PreparedRequest, exc: httpx.HTTPError) -> TransportError:
        return TransportError(
            f"could not reach API ({prepared.method} {prepared.url}): {exc}"
        )
