"""Pull request accessors."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from bbcli.api.common import APIModel, Commit, Content, Links, RepositoryRef, User, page_query, repo_path
from bbcli.client import Client, Paginated, Request, parse_response

PR_STATES = ("OPEN", "MERGED", "DECLINED", "SUPERSEDED")
MERGE_STRATEGIES = ("merge_commit", "squash", "fast_forward")


class BranchRef(APIModel):
    name: str = ""


class PullRequestEndpoint(APIModel):
    """Source or destination side of a pull request."""

    branch: Optional[BranchRef] = None
    commit: Optional[Commit] = None
    repository: Optional[RepositoryRef] = None


class Participant(APIModel):
    user: Optional[User] = None
    role: str = ""
    approved: bool = False
    state: Optional[str] = None


class PullRequest(APIModel):
    type: str = ""
    id: int = 0
    title: str = ""
    description: str = ""
    state: str = ""
    author: Optional[User] = None
    source: Optional[PullRequestEndpoint] = None
    destination: Optional[PullRequestEndpoint] = None
    merge_commit: Optional[Commit] = None
    close_source_branch: bool = False
    reviewers: list[User] = Field(default_factory=list)
    participants: list[Participant] = Field(default_factory=list)
    comment_count: int = 0
    task_count: int = 0
    created_on: Optional[datetime] = None
    updated_on: Optional[datetime] = None
    links: Optional[Links] = None


class PullRequestComment(APIModel):
    id: int = 0
    content: Optional[Content] = None
    user: Optional[User] = None
    created_on: Optional[datetime] = None
    links: Optional[Links] = None


class PullRequestListOptions(BaseModel):
    state: str = ""
    page: int = 0
    pagelen: int = 0


class PullRequestCreateOptions(BaseModel):
    title: str
    source_branch: str
    destination_branch: str = ""
    description: str = ""
    close_source_branch: bool = False
    reviewer_uuids: list[str] = Field(default_factory=list)


class PullRequestUpdateOptions(BaseModel):
    """Partial update: only fields passed to the constructor are sent."""

    title: Optional[str] = None
    description: Optional[str] = None
    destination_branch: Optional[str] = None


class MergeOptions(BaseModel):
    merge_strategy: str = ""
    message: str = ""
    close_source_branch: Optional[bool] = None


def list_pull_requests(
    client: Client,
    workspace: str,
    repo_slug: str,
    opts: Optional[PullRequestListOptions] = None,
) -> Paginated[PullRequest]:
    query: list[tuple[str, str]] = []
    if opts is not None:
        if opts.state:
            query.append(("state", opts.state.upper()))
        query = page_query(query, opts.page, opts.pagelen)

    response = client.get(repo_path(workspace, repo_slug, "pullrequests"), query)
    return parse_response(response, Paginated[PullRequest])


def get_pull_request(client: Client, workspace: str, repo_slug: str, pr_id: int) -> PullRequest:
    response = client.get(repo_path(workspace, repo_slug, "pullrequests", str(pr_id)))
    return parse_response(response, PullRequest)


def create_pull_request(
    client: Client,
    workspace: str,
    repo_slug: str,
    opts: PullRequestCreateOptions,
) -> PullRequest:
    """Open a pull request from ``opts.source_branch``.

    When ``opts.destination_branch`` is empty the server picks the
    repository's main branch.
    """
    body: dict[str, object] = {
        "title": opts.title,
        "source": {"branch": {"name": opts.source_branch}},
        "close_source_branch": opts.close_source_branch,
    }
    if opts.destination_branch:
        body["destination"] = {"branch": {"name": opts.destination_branch}}
    if opts.description:
        body["description"] = opts.description
    if opts.reviewer_uuids:
        body["reviewers"] = [{"uuid": uuid} for uuid in opts.reviewer_uuids]

    response = client.post(repo_path(workspace, repo_slug, "pullrequests"), body)
    return parse_response(response, PullRequest)


def update_pull_request(
    client: Client,
    workspace: str,
    repo_slug: str,
    pr_id: int,
    opts: PullRequestUpdateOptions,
) -> PullRequest:
    body: dict[str, object] = {}
    for name in ("title", "description"):
        if name in opts.model_fields_set:
            body[name] = getattr(opts, name)
    if "destination_branch" in opts.model_fields_set:
        body["destination"] = {"branch": {"name": opts.destination_branch}}

    response = client.put(repo_path(workspace, repo_slug, "pullrequests", str(pr_id)), body)
    return parse_response(response, PullRequest)


def merge_pull_request(
    client: Client,
    workspace: str,
    repo_slug: str,
    pr_id: int,
    opts: Optional[MergeOptions] = None,
) -> PullRequest:
    body: dict[str, object] = {}
    if opts is not None:
        if opts.merge_strategy:
            body["merge_strategy"] = opts.merge_strategy
        if opts.message:
            body["message"] = opts.message
        if opts.close_source_branch is not None:
            body["close_source_branch"] = opts.close_source_branch

    response = client.post(repo_path(workspace, repo_slug, "pullrequests", str(pr_id), "merge"), body)
    return parse_response(response, PullRequest)


def decline_pull_request(client: Client, workspace: str, repo_slug: str, pr_id: int) -> PullRequest:
    response = client.post(repo_path(workspace, repo_slug, "pullrequests", str(pr_id), "decline"))
    return parse_response(response, PullRequest)


def approve_pull_request(client: Client, workspace: str, repo_slug: str, pr_id: int) -> Participant:
    response = client.post(repo_path(workspace, repo_slug, "pullrequests", str(pr_id), "approve"))
    return parse_response(response, Participant)


def unapprove_pull_request(client: Client, workspace: str, repo_slug: str, pr_id: int) -> None:
    client.delete(repo_path(workspace, repo_slug, "pullrequests", str(pr_id), "approve"))


def list_pull_request_comments(
    client: Client,
    workspace: str,
    repo_slug: str,
    pr_id: int,
    page: int = 0,
    pagelen: int = 0,
) -> Paginated[PullRequestComment]:
    response = client.get(
        repo_path(workspace, repo_slug, "pullrequests", str(pr_id), "comments"),
        page_query(page=page, pagelen=pagelen),
    )
    return parse_response(response, Paginated[PullRequestComment])


def create_pull_request_comment(
    client: Client,
    workspace: str,
    repo_slug: str,
    pr_id: int,
    body: str,
) -> PullRequestComment:
    response = client.post(
        repo_path(workspace, repo_slug, "pullrequests", str(pr_id), "comments"),
        {"content": {"raw": body}},
    )
    return parse_response(response, PullRequestComment)


def get_pull_request_diff(client: Client, workspace: str, repo_slug: str, pr_id: int) -> str:
    """Return the unified diff of a pull request.

    The endpoint answers with a redirect to the diff of the underlying
    commits, which the client follows.
    """
    path = repo_path(workspace, repo_slug, "pullrequests", str(pr_id), "diff")
    response = client.do(Request("GET", path, headers={"Accept": "text/plain"}))
    return response.text
