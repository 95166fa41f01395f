"""Workspace accessors."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from bbcli.api.common import APIModel, Links, User, page_query, segment
from bbcli.client import Client, Paginated, parse_response


class Workspace(APIModel):
    type: str = ""
    uuid: str = ""
    slug: str = ""
    name: str = ""
    is_private: bool = False
    created_on: Optional[datetime] = None
    links: Optional[Links] = None


class WorkspaceMembership(APIModel):
    type: str = ""
    user: Optional[User] = None
    workspace: Optional[Workspace] = None


def list_workspaces(
    client: Client,
    role: str = "",
    page: int = 0,
    pagelen: int = 0,
) -> Paginated[Workspace]:
    """List the workspaces the authenticated user can access."""
    query = [("role", role)] if role else []
    response = client.get("/workspaces", page_query(query, page, pagelen))
    return parse_response(response, Paginated[Workspace])


def get_workspace(client: Client, workspace: str) -> Workspace:
    response = client.get(f"/workspaces/{segment(workspace)}")
    return parse_response(response, Workspace)


def list_workspace_members(
    client: Client,
    workspace: str,
    page: int = 0,
    pagelen: int = 0,
) -> Paginated[WorkspaceMembership]:
    response = client.get(
        f"/workspaces/{segment(workspace)}/members",
        page_query(page=page, pagelen=pagelen),
    )
    return parse_response(response, Paginated[WorkspaceMembership])
