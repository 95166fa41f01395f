"""Request / response model shared by the sync and async clients.

* :class:`Request` -- one outgoing call, built by a resource accessor
  immediately before it is sent.
* :class:`Response` -- the status code, raw bytes and headers of one call.
  Produced even when the call is rejected (the :class:`~bbcli.exceptions.APIError`
  carries it).
* :class:`Paginated` -- the list envelope returned by every collection
  endpoint.
* :func:`parse_response` -- decode a response body into a caller-chosen
  shape.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from bbcli.exceptions import DecodeError

T = TypeVar("T")

METHODS = ("GET", "POST", "PUT", "DELETE")

QueryValue = Union[str, Sequence[str]]
Query = Union[Mapping[str, QueryValue], Sequence[tuple[str, str]]]

JSONValue = Any
"""Shape for :func:`parse_response` that accepts any JSON document.

Only the raw ``bb api`` pass-through uses it; every other caller decodes
into a concrete model.
"""


@dataclass
class Request:
    """Description of a single API call.

    Attributes:
        method: One of ``GET``, ``POST``, ``PUT``, ``DELETE``.
        path: Path relative to the client's base URL, or an absolute URL
            (e.g. a ``next`` link from a previous page).
        query: Query parameters. Either a mapping from key to a value or a
            sequence of values, or a sequence of ``(key, value)`` pairs.
            Caller order is preserved on the wire.
        body: JSON-serialisable payload or pydantic model. ``None`` means
            no body is sent.
        headers: Extra headers; they override ``Accept``, ``Content-Type``
            and ``Authorization``. ``User-Agent`` cannot be replaced.
    """

    method: str
    path: str
    query: Optional[Query] = None
    body: Any = None
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        if self.method not in METHODS:
            raise ValueError(f"Unsupported HTTP method: {self.method}")
        if not self.path:
            raise ValueError("Request path must not be empty")

    def query_items(self) -> list[tuple[str, str]]:
        """Flatten :attr:`query` into ordered ``(key, value)`` pairs."""
        if not self.query:
            return []
        if isinstance(self.query, Mapping):
            items: list[tuple[str, str]] = []
            for key, value in self.query.items():
                if isinstance(value, str):
                    items.append((key, value))
                else:
                    items.extend((key, v) for v in value)
            return items
        return [(key, value) for key, value in self.query]

    def encode_body(self) -> Optional[bytes]:
        """Serialise :attr:`body` to JSON bytes, or ``None`` when absent.

        Raises:
            TypeError, ValueError: If the body is not JSON-serialisable.
        """
        if self.body is None:
            return None
        payload = self.body
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(mode="json", by_alias=True, exclude_unset=True)
        return json.dumps(payload).encode("utf-8")


@dataclass
class Response:
    """Outcome of one HTTP round trip, fully read into memory."""

    status_code: int
    body: bytes
    headers: httpx.Headers = field(default_factory=httpx.Headers)

    @property
    def text(self) -> str:
        """The body decoded as UTF-8 (invalid bytes replaced)."""
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Decode the body as JSON without any shape checking."""
        return json.loads(self.body)


class Paginated(BaseModel, Generic[T]):
    """Bitbucket pagination envelope.

    ``next`` and ``previous`` are opaque absolute URLs and are empty when
    there is no page in that direction. ``values`` keeps the server's order
    and is never ``None``.
    """

    model_config = ConfigDict(populate_by_name=True)

    size: int = 0
    page: int = 0
    page_len: int = Field(default=0, alias="pagelen")
    next: str = ""
    previous: str = ""
    values: list[T] = Field(default_factory=list)

    @field_validator("size", "page", "page_len", mode="before")
    @classmethod
    def _null_count(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("next", "previous", mode="before")
    @classmethod
    def _null_link(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("values", mode="before")
    @classmethod
    def _null_values(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def has_next(self) -> bool:
        """Whether the server advertised another page."""
        return bool(self.next)


_adapters: dict[Any, TypeAdapter[Any]] = {}


def _adapter(shape: Any) -> TypeAdapter[Any]:
    try:
        return _adapters[shape]
    except KeyError:
        adapter = _adapters[shape] = TypeAdapter(shape)
        return adapter
    except TypeError:
        # Unhashable shapes are simply not cached.
        return TypeAdapter(shape)


def parse_response(response: Response, shape: type[T]) -> T:
    """Decode ``response.body`` as JSON into *shape*.

    No status-code inspection happens here; call it only after the client
    returned without raising.

    Args:
        response: A successful response.
        shape: Target type -- a pydantic model, ``Paginated[Model]``,
            ``list[...]``, a scalar type, or :data:`JSONValue`.

    Returns:
        The decoded value.

    Raises:
        DecodeError: If the body is not valid JSON or does not match *shape*.
    """
    try:
        return _adapter(shape).validate_json(response.body)
    except ValidationError as exc:
        raise DecodeError(f"Unexpected response from API: {exc}") from exc
