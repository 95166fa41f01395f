"""Tests for the issue tracker accessors."""

from __future__ import annotations

import json

import pytest

from bbcli.api.issues import (
    IssueCreateOptions,
    IssueListOptions,
    IssueUpdateOptions,
    build_issue_query,
    create_issue,
    create_issue_comment,
    delete_issue,
    get_issue,
    list_issue_comments,
    list_issues,
    update_issue,
)
from bbcli.exceptions import APIError


ISSUES = "/repositories/acme/widgets/issues"

ISSUE = {
    "type": "issue",
    "id": 42,
    "title": "Crash on start",
    "state": "open",
    "kind": "bug",
    "priority": "major",
    "content": {"raw": "It crashes", "markup": "markdown", "html": "<p>It crashes</p>"},
    "assignee": {"display_name": "Alice", "username": "alice", "uuid": "{a1}"},
    "links": {"html": {"href": "https://bitbucket.org/acme/widgets/issues/42"}},
    "watches": 3,
}


# ---------------------------------------------------------------------------
# Query composition
# ---------------------------------------------------------------------------


class TestBuildIssueQuery:
    def test_empty(self) -> None:
        assert build_issue_query(IssueListOptions()) == ""

    def test_single_filter(self) -> None:
        assert build_issue_query(IssueListOptions(state="open")) == 'state="open"'

    def test_filters_joined_in_order(self) -> None:
        opts = IssueListOptions(state="new", kind="bug", priority="major", assignee="alice")
        assert build_issue_query(opts) == (
            'state="new" AND kind="bug" AND priority="major" AND assignee.username="alice"'
        )

    def test_raw_query_wins(self) -> None:
        opts = IssueListOptions(state="open", q='title ~ "crash"')
        assert build_issue_query(opts) == 'title ~ "crash"'


# ---------------------------------------------------------------------------
# Accessors
# ---------------------------------------------------------------------------


class TestListIssues:
    def test_without_options_sends_no_query(self, api) -> None:
        api.add("GET", ISSUES, json={"values": [ISSUE], "size": 1})
        with api.client() as client:
            page = list_issues(client, "acme", "widgets")
        assert api.last.url.query == b""
        assert page.values[0].id == 42
        assert page.values[0].assignee.display_name == "Alice"

    def test_query_parameters(self, api) -> None:
        api.add("GET", ISSUES, json={"values": []})
        opts = IssueListOptions(state="open", kind="bug", sort="-updated_on", page=2, pagelen=10)
        with api.client() as client:
            list_issues(client, "acme", "widgets", opts)
        params = api.last.url.params
        assert params["q"] == 'state="open" AND kind="bug"'
        assert params["sort"] == "-updated_on"
        assert params["page"] == "2"
        assert params["pagelen"] == "10"
        assert list(params.keys()) == ["q", "sort", "page", "pagelen"]

    def test_unknown_fields_kept(self, api) -> None:
        api.add("GET", ISSUES, json={"values": [ISSUE]})
        with api.client() as client:
            issue = list_issues(client, "acme", "widgets").values[0]
        assert issue.to_json()["watches"] == 3


class TestGetIssue:
    def test_get(self, api) -> None:
        api.add("GET", f"{ISSUES}/42", json=ISSUE)
        with api.client() as client:
            issue = get_issue(client, "acme", "widgets", 42)
        assert issue.title == "Crash on start"
        assert issue.content.raw == "It crashes"

    def test_not_found(self, api) -> None:
        api.add("GET", f"{ISSUES}/9", json={"error": {"message": "Issue not found"}}, status=404)
        with api.client() as client:
            with pytest.raises(APIError) as exc_info:
                get_issue(client, "acme", "widgets", 9)
        assert exc_info.value.status_code == 404


class TestCreateIssue:
    def test_minimal_body(self, api) -> None:
        api.add("POST", ISSUES, json=ISSUE, status=201)
        with api.client() as client:
            create_issue(client, "acme", "widgets", IssueCreateOptions(title="Crash on start"))
        assert json.loads(api.last.content) == {"title": "Crash on start"}

    def test_full_body(self, api) -> None:
        api.add("POST", ISSUES, json=ISSUE, status=201)
        opts = IssueCreateOptions(
            title="Crash on start",
            content="It crashes",
            kind="bug",
            priority="major",
            assignee_uuid="{a1}",
        )
        with api.client() as client:
            issue = create_issue(client, "acme", "widgets", opts)
        assert json.loads(api.last.content) == {
            "title": "Crash on start",
            "content": {"raw": "It crashes"},
            "kind": "bug",
            "priority": "major",
            "assignee": {"uuid": "{a1}"},
        }
        assert issue.id == 42


class TestUpdateIssue:
    def test_only_set_fields_sent(self, api) -> None:
        api.add("PUT", f"{ISSUES}/42", json=ISSUE)
        with api.client() as client:
            update_issue(client, "acme", "widgets", 42, IssueUpdateOptions(state="resolved"))
        assert json.loads(api.last.content) == {"state": "resolved"}

    def test_empty_string_is_sent(self, api) -> None:
        api.add("PUT", f"{ISSUES}/42", json=ISSUE)
        opts = IssueUpdateOptions(content="", assignee_uuid="{b2}")
        with api.client() as client:
            update_issue(client, "acme", "widgets", 42, opts)
        assert json.loads(api.last.content) == {
            "content": {"raw": ""},
            "assignee": {"uuid": "{b2}"},
        }


class TestDeleteAndComments:
    def test_delete(self, api) -> None:
        api.add("DELETE", f"{ISSUES}/42", status=204)
        with api.client() as client:
            assert delete_issue(client, "acme", "widgets", 42) is None
        assert api.last.method == "DELETE"

    def test_list_comments(self, api) -> None:
        api.add(
            "GET",
            f"{ISSUES}/42/comments",
            json={"values": [{"id": 1, "content": {"raw": "me too"}, "user": {"display_name": "Bob"}}]},
        )
        with api.client() as client:
            page = list_issue_comments(client, "acme", "widgets", 42, pagelen=50)
        assert api.last.url.params["pagelen"] == "50"
        assert page.values[0].content.raw == "me too"

    def test_create_comment(self, api) -> None:
        api.add("POST", f"{ISSUES}/42/comments", json={"id": 5, "content": {"raw": "fixed"}}, status=201)
        with api.client() as client:
            comment = create_issue_comment(client, "acme", "widgets", 42, "fixed")
        assert json.loads(api.last.content) == {"content": {"raw": "fixed"}}
        assert comment.id == 5
