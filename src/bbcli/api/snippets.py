"""Snippet accessors.

Only the JSON API is used: snippets are created with metadata, not file
uploads.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from bbcli.api.common import APIModel, Links, User, page_query, segment
from bbcli.client import Client, Paginated, parse_response


class Snippet(APIModel):
    type: str = ""
    id: str = ""
    title: str = ""
    is_private: bool = False
    scm: str = ""
    owner: Optional[User] = None
    creator: Optional[User] = None
    files: dict[str, object] = Field(default_factory=dict)
    created_on: Optional[datetime] = None
    updated_on: Optional[datetime] = None
    links: Optional[Links] = None


def _snippet_path(workspace: str, snippet_id: str) -> str:
    return f"/snippets/{segment(workspace)}/{segment(snippet_id)}"


def list_snippets(
    client: Client,
    workspace: str = "",
    role: str = "",
    page: int = 0,
    pagelen: int = 0,
) -> Paginated[Snippet]:
    """List snippets, across all workspaces when *workspace* is empty."""
    path = f"/snippets/{segment(workspace)}" if workspace else "/snippets"
    query = [("role", role)] if role else []
    response = client.get(path, page_query(query, page, pagelen))
    return parse_response(response, Paginated[Snippet])


def get_snippet(client: Client, workspace: str, snippet_id: str) -> Snippet:
    response = client.get(_snippet_path(workspace, snippet_id))
    return parse_response(response, Snippet)


def create_snippet(client: Client, workspace: str, title: str, is_private: bool = True) -> Snippet:
    body = {"title": title, "is_private": is_private}
    response = client.post(f"/snippets/{segment(workspace)}", body)
    return parse_response(response, Snippet)


def delete_snippet(client: Client, workspace: str, snippet_id: str) -> None:
    client.delete(_snippet_path(workspace, snippet_id))
