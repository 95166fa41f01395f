"""Tests for following ``next`` links across pages."""

from __future__ import annotations

from pydantic import BaseModel

from bbcli.client import Paginated, iter_values, parse_response


class _Item(BaseModel):
    id: int


PAGE_SHAPE = Paginated[_Item]


def _pages(api) -> None:
    api.add(
        "GET",
        "/things",
        json={"values": [{"id": 1}, {"id": 2}], "next": "https://api.example.com/2.0/things?page=2"},
    )
    api.add(
        "GET",
        "/things",
        json={"values": [{"id": 3}, {"id": 4}], "next": "https://api.example.com/2.0/things?page=3"},
    )
    api.add("GET", "/things", json={"values": [{"id": 5}]})


class TestIterValues:
    def test_follows_every_page_without_limit(self, api) -> None:
        _pages(api)
        with api.client() as client:
            first = parse_response(client.get("/things"), PAGE_SHAPE)
            ids = [item.id for item in iter_values(client, first, PAGE_SHAPE)]
        assert ids == [1, 2, 3, 4, 5]
        assert len(api.requests) == 3
        assert api.requests[1].url.params["page"] == "2"
        assert api.requests[2].url.params["page"] == "3"

    def test_limit_stops_without_fetching_more(self, api) -> None:
        _pages(api)
        with api.client() as client:
            first = parse_response(client.get("/things"), PAGE_SHAPE)
            ids = [item.id for item in iter_values(client, first, PAGE_SHAPE, limit=2)]
        assert ids == [1, 2]
        assert len(api.requests) == 1

    def test_limit_within_second_page(self, api) -> None:
        _pages(api)
        with api.client() as client:
            first = parse_response(client.get("/things"), PAGE_SHAPE)
            ids = [item.id for item in iter_values(client, first, PAGE_SHAPE, limit=3)]
        assert ids == [1, 2, 3]
        assert len(api.requests) == 2

    def test_single_page(self, api) -> None:
        with api.client() as client:
            first = PAGE_SHAPE(values=[_Item(id=9)])
            assert [item.id for item in iter_values(client, first, PAGE_SHAPE)] == [9]
        assert api.requests == []

    def test_next_link_reuses_authorization(self, api) -> None:
        _pages(api)
        with api.client(token="tok") as client:
            first = parse_response(client.get("/things"), PAGE_SHAPE)
            list(iter_values(client, first, PAGE_SHAPE))
        assert all(r.headers["Authorization"] == "Bearer tok" for r in api.requests)
