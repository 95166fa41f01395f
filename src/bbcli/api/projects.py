"""Workspace project accessors."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from bbcli.api.common import APIModel, Links, page_query, segment
from bbcli.client import Client, Paginated, parse_response


class Project(APIModel):
    type: str = ""
    uuid: str = ""
    key: str = ""
    name: str = ""
    description: str = ""
    is_private: bool = False
    created_on: Optional[datetime] = None
    updated_on: Optional[datetime] = None
    links: Optional[Links] = None


def _projects_path(workspace: str, *parts: str) -> str:
    path = f"/workspaces/{segment(workspace)}/projects"
    for part in parts:
        path += f"/{part}"
    return path


def list_projects(client: Client, workspace: str, page: int = 0, pagelen: int = 0) -> Paginated[Project]:
    response = client.get(_projects_path(workspace), page_query(page=page, pagelen=pagelen))
    return parse_response(response, Paginated[Project])


def get_project(client: Client, workspace: str, key: str) -> Project:
    response = client.get(_projects_path(workspace, segment(key)))
    return parse_response(response, Project)


def create_project(
    client: Client,
    workspace: str,
    key: str,
    name: str,
    description: str = "",
    is_private: bool = True,
) -> Project:
    body: dict[str, object] = {"key": key, "name": name, "is_private": is_private}
    if description:
        body["description"] = description
    response = client.post(_projects_path(workspace), body)
    return parse_response(response, Project)
