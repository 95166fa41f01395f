"""Branch accessors (``refs/branches``)."""

from __future__ import annotations

from typing import Optional

from bbcli.api.common import APIModel, Commit, Links, page_query, repo_path, segment
from bbcli.client import Client, Paginated, parse_response


class Branch(APIModel):
    type: str = ""
    name: str = ""
    target: Optional[Commit] = None
    links: Optional[Links] = None


def list_branches(
    client: Client,
    workspace: str,
    repo_slug: str,
    q: str = "",
    sort: str = "",
    page: int = 0,
    pagelen: int = 0,
) -> Paginated[Branch]:
    query: list[tuple[str, str]] = []
    if q:
        query.append(("q", q))
    if sort:
        query.append(("sort", sort))
    response = client.get(
        repo_path(workspace, repo_slug, "refs", "branches"),
        page_query(query, page, pagelen),
    )
    return parse_response(response, Paginated[Branch])


def get_branch(client: Client, workspace: str, repo_slug: str, name: str) -> Branch:
    response = client.get(repo_path(workspace, repo_slug, "refs", "branches", segment(name)))
    return parse_response(response, Branch)


def create_branch(client: Client, workspace: str, repo_slug: str, name: str, target_hash: str) -> Branch:
    """Create branch *name* pointing at commit (or branch) *target_hash*."""
    body = {"name": name, "target": {"hash": target_hash}}
    response = client.post(repo_path(workspace, repo_slug, "refs", "branches"), body)
    return parse_response(response, Branch)


def delete_branch(client: Client, workspace: str, repo_slug: str, name: str) -> None:
    client.delete(repo_path(workspace, repo_slug, "refs", "branches", segment(name)))
