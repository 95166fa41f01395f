"""Repository accessors."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from bbcli.api.common import APIModel, Links, User, page_query, repo_path, segment, set_fields
from bbcli.client import Client, Paginated, parse_response

REPOSITORY_ROLES = ("owner", "admin", "contributor", "member")


class ProjectRef(APIModel):
    key: str = ""
    name: str = ""
    uuid: str = ""


class MainBranch(APIModel):
    name: str = ""
    type: str = ""


class Repository(APIModel):
    type: str = ""
    uuid: str = ""
    name: str = ""
    full_name: str = ""
    slug: str = ""
    description: str = ""
    is_private: bool = False
    scm: str = ""
    language: str = ""
    size: int = 0
    fork_policy: str = ""
    has_issues: bool = False
    has_wiki: bool = False
    owner: Optional[User] = None
    project: Optional[ProjectRef] = None
    mainbranch: Optional[MainBranch] = None
    parent: Optional[Repository] = None
    created_on: Optional[datetime] = None
    updated_on: Optional[datetime] = None
    links: Optional[Links] = None

    def clone_url(self, protocol: str = "ssh") -> str:
        """Return the clone URL for *protocol* (``ssh`` or ``https``), or ``""``."""
        if self.links is None:
            return ""
        for entry in (self.links.model_extra or {}).get("clone") or []:
            if isinstance(entry, dict) and entry.get("name") == protocol:
                return str(entry.get("href", ""))
        return ""


class RepositoryListOptions(BaseModel):
    role: str = ""
    q: str = ""
    sort: str = ""
    page: int = 0
    pagelen: int = 0


class RepositoryCreateOptions(BaseModel):
    """Body of a repository creation; only fields passed are sent."""

    name: Optional[str] = None
    description: Optional[str] = None
    is_private: Optional[bool] = None
    language: Optional[str] = None
    has_issues: Optional[bool] = None
    has_wiki: Optional[bool] = None
    fork_policy: Optional[str] = None
    project_key: Optional[str] = None


def list_repositories(
    client: Client,
    workspace: str,
    opts: Optional[RepositoryListOptions] = None,
) -> Paginated[Repository]:
    query: list[tuple[str, str]] = []
    if opts is not None:
        for name in ("role", "q", "sort"):
            value = getattr(opts, name)
            if value:
                query.append((name, value))
        query = page_query(query, opts.page, opts.pagelen)

    response = client.get(f"/repositories/{segment(workspace)}", query)
    return parse_response(response, Paginated[Repository])


def get_repository(client: Client, workspace: str, repo_slug: str) -> Repository:
    response = client.get(repo_path(workspace, repo_slug))
    return parse_response(response, Repository)


def create_repository(
    client: Client,
    workspace: str,
    repo_slug: str,
    opts: Optional[RepositoryCreateOptions] = None,
) -> Repository:
    """Create ``workspace/repo_slug``.

    Bitbucket requires ``scm``; it is always ``git``. ``project_key`` is sent
    as ``{"project": {"key": ...}}``.
    """
    body: dict[str, object] = {"scm": "git"}
    if opts is not None:
        fields = set_fields(opts)
        project_key = fields.pop("project_key", None)
        body.update(fields)
        if project_key:
            body["project"] = {"key": project_key}

    response = client.post(repo_path(workspace, repo_slug), body)
    return parse_response(response, Repository)


def delete_repository(client: Client, workspace: str, repo_slug: str) -> None:
    client.delete(repo_path(workspace, repo_slug))


def list_forks(
    client: Client,
    workspace: str,
    repo_slug: str,
    page: int = 0,
    pagelen: int = 0,
) -> Paginated[Repository]:
    response = client.get(repo_path(workspace, repo_slug, "forks"), page_query(page=page, pagelen=pagelen))
    return parse_response(response, Paginated[Repository])
