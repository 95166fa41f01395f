"""Issue tracker accessors.

Filters passed to :func:`list_issues` are translated into Bitbucket's
query language: each set filter becomes a ``field="value"`` clause and the
clauses are joined with ``" AND "``. An explicit raw query replaces the
composition entirely.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from bbcli.api.common import APIModel, Content, Links, RepositoryRef, User, page_query, repo_path
from bbcli.client import Client, Paginated, parse_response

ISSUE_STATES = ("new", "open", "resolved", "on hold", "invalid", "duplicate", "wontfix", "closed")
ISSUE_KINDS = ("bug", "enhancement", "proposal", "task")
ISSUE_PRIORITIES = ("trivial", "minor", "major", "critical", "blocker")


class Issue(APIModel):
    type: str = ""
    id: int = 0
    title: str = ""
    content: Optional[Content] = None
    state: str = ""
    kind: str = ""
    priority: str = ""
    reporter: Optional[User] = None
    assignee: Optional[User] = None
    repository: Optional[RepositoryRef] = None
    created_on: Optional[datetime] = None
    updated_on: Optional[datetime] = None
    votes: int = 0
    links: Optional[Links] = None


class IssueComment(APIModel):
    id: int = 0
    content: Optional[Content] = None
    user: Optional[User] = None
    created_on: Optional[datetime] = None
    updated_on: Optional[datetime] = None
    links: Optional[Links] = None


class IssueListOptions(BaseModel):
    """Filters for :func:`list_issues`. Empty strings mean "no filter"."""

    state: str = ""
    kind: str = ""
    priority: str = ""
    assignee: str = ""
    q: str = Field(default="", description="Raw query; bypasses the other filters")
    sort: str = ""
    page: int = 0
    pagelen: int = 0


class IssueCreateOptions(BaseModel):
    title: str
    content: str = ""
    kind: str = ""
    priority: str = ""
    assignee_uuid: str = ""


class IssueUpdateOptions(BaseModel):
    """Partial update: only fields passed to the constructor are sent."""

    title: Optional[str] = None
    content: Optional[str] = None
    state: Optional[str] = None
    kind: Optional[str] = None
    priority: Optional[str] = None
    assignee_uuid: Optional[str] = None


def build_issue_query(opts: IssueListOptions) -> str:
    """Compose the ``q`` parameter for *opts*.

    >>> build_issue_query(IssueListOptions(state="open", kind="bug"))
    'state="open" AND kind="bug"'
    """
    if opts.q:
        return opts.q
    clauses = []
    for field, value in (
        ("state", opts.state),
        ("kind", opts.kind),
        ("priority", opts.priority),
        ("assignee.username", opts.assignee),
    ):
        if value:
            clauses.append(f'{field}="{value}"')
    return " AND ".join(clauses)


def list_issues(
    client: Client,
    workspace: str,
    repo_slug: str,
    opts: Optional[IssueListOptions] = None,
) -> Paginated[Issue]:
    """List one page of issues for a repository."""
    query: list[tuple[str, str]] = []
    if opts is not None:
        q = build_issue_query(opts)
        if q:
            query.append(("q", q))
        if opts.sort:
            query.append(("sort", opts.sort))
        query = page_query(query, opts.page, opts.pagelen)

    response = client.get(repo_path(workspace, repo_slug, "issues"), query)
    return parse_response(response, Paginated[Issue])


def get_issue(client: Client, workspace: str, repo_slug: str, issue_id: int) -> Issue:
    response = client.get(repo_path(workspace, repo_slug, "issues", str(issue_id)))
    return parse_response(response, Issue)


def create_issue(
    client: Client,
    workspace: str,
    repo_slug: str,
    opts: IssueCreateOptions,
) -> Issue:
    """Create an issue. Optional fields are only sent when non-empty."""
    body: dict[str, object] = {"title": opts.title}
    if opts.content:
        body["content"] = {"raw": opts.content}
    if opts.kind:
        body["kind"] = opts.kind
    if opts.priority:
        body["priority"] = opts.priority
    if opts.assignee_uuid:
        body["assignee"] = {"uuid": opts.assignee_uuid}

    response = client.post(repo_path(workspace, repo_slug, "issues"), body)
    return parse_response(response, Issue)


def update_issue(
    client: Client,
    workspace: str,
    repo_slug: str,
    issue_id: int,
    opts: IssueUpdateOptions,
) -> Issue:
    """Update only the fields explicitly set on *opts*."""
    body: dict[str, object] = {}
    for name in ("title", "state", "kind", "priority"):
        if name in opts.model_fields_set:
            body[name] = getattr(opts, name)
    if "content" in opts.model_fields_set:
        body["content"] = {"raw": opts.content}
    if "assignee_uuid" in opts.model_fields_set:
        body["assignee"] = {"uuid": opts.assignee_uuid}

    response = client.put(repo_path(workspace, repo_slug, "issues", str(issue_id)), body)
    return parse_response(response, Issue)


def delete_issue(client: Client, workspace: str, repo_slug: str, issue_id: int) -> None:
    client.delete(repo_path(workspace, repo_slug, "issues", str(issue_id)))


def list_issue_comments(
    client: Client,
    workspace: str,
    repo_slug: str,
    issue_id: int,
    page: int = 0,
    pagelen: int = 0,
) -> Paginated[IssueComment]:
    response = client.get(
        repo_path(workspace, repo_slug, "issues", str(issue_id), "comments"),
        page_query(page=page, pagelen=pagelen),
    )
    return parse_response(response, Paginated[IssueComment])


def create_issue_comment(
    client: Client,
    workspace: str,
    repo_slug: str,
    issue_id: int,
    body: str,
) -> IssueComment:
    response = client.post(
        repo_path(workspace, repo_slug, "issues", str(issue_id), "comments"),
        {"content": {"raw": body}},
    )
    return parse_response(response, IssueComment)
