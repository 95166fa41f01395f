"""Caller-driven pagination helpers.

List accessors always return a single :class:`~bbcli.client.types.Paginated`
page. When a command needs more than one page it walks the ``next`` links
itself with :func:`iter_values`, one sequential request per page.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Optional, TypeVar

from bbcli.client.sync_client import Client
from bbcli.client.types import Paginated, parse_response

T = TypeVar("T")


def iter_values(
    client: Client,
    first: Paginated[T],
    shape: type[Paginated[T]],
    limit: Optional[int] = None,
) -> Iterator[T]:
    """Yield items from *first* and the pages after it.

    Args:
        client: Client used to fetch the following pages.
        first: The page already fetched by an accessor.
        shape: The concrete ``Paginated[Model]`` type to decode later pages
            into.
        limit: Stop after this many items. ``None`` follows every ``next``
            link until the last page.

    Yields:
        Items in server order.
    """
    page: Paginated[T] = first
    count = 0
    while True:
        for item in page.values:
            if limit is not None and count >= limit:
                return
            yield item
            count += 1
        if not page.next or (limit is not None and count >= limit):
            return
        page = parse_response(client.get(page.next), shape)
