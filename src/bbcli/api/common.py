"""Models and helpers shared by every resource accessor.

All resource models derive from :class:`APIModel`, which keeps unknown
fields (``extra="allow"``) so that ``--json`` output shows the complete
payload the server sent, not just the fields bbcli knows about.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, model_validator


class APIModel(BaseModel):
    """Base class for Bitbucket resource models."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _null_means_default(cls, data: Any) -> Any:
        """Treat ``null`` for a declared field as absent so its default applies."""
        if not isinstance(data, dict):
            return data
        declared = set(cls.model_fields)
        declared.update(f.alias for f in cls.model_fields.values() if f.alias)
        return {k: v for k, v in data.items() if v is not None or k not in declared}

    def to_json(self) -> dict[str, Any]:
        """Return the model as JSON-compatible data using wire field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Link(APIModel):
    href: str = ""
    name: str = ""


class Links(APIModel):
    """The ``links`` object found on most resources.

    Only the common relations are typed; others (``clone``, ``avatar``,
    ``diff``...) are kept as extra fields.
    """

    self_: Optional[Link] = Field(default=None, alias="self")
    html: Optional[Link] = None


class Content(APIModel):
    """Rendered text with its raw source."""

    raw: str = ""
    markup: str = ""
    html: str = ""


class User(APIModel):
    type: str = ""
    uuid: str = ""
    username: str = ""
    nickname: str = ""
    display_name: str = ""
    account_id: str = ""
    links: Optional[Links] = None


class RepositoryRef(APIModel):
    """Minimal repository reference embedded in other resources."""

    type: str = ""
    uuid: str = ""
    name: str = ""
    full_name: str = ""


class Commit(APIModel):
    type: str = ""
    hash: str = ""
    message: str = ""
    date: Optional[datetime] = None


def html_url(links: Optional[Links]) -> str:
    """Return the web URL from a ``links`` object, or an empty string."""
    if links is None or links.html is None:
        return ""
    return links.html.href


def segment(value: str) -> str:
    """Quote one path segment (workspace, slug, branch name, UUID...)."""
    return quote(value, safe="{}")


def repo_path(workspace: str, repo_slug: str, *parts: str) -> str:
    """Build ``/repositories/{workspace}/{repo_slug}/...``."""
    path = f"/repositories/{segment(workspace)}/{segment(repo_slug)}"
    for part in parts:
        path += f"/{part}"
    return path


def page_query(
    query: Optional[list[tuple[str, str]]] = None,
    page: Optional[int] = None,
    pagelen: Optional[int] = None,
) -> list[tuple[str, str]]:
    """Append ``page`` / ``pagelen`` to *query* when they are positive."""
    items = list(query or [])
    if page is not None and page > 0:
        items.append(("page", str(page)))
    if pagelen is not None and pagelen > 0:
        items.append(("pagelen", str(pagelen)))
    return items


def set_fields(model: BaseModel) -> dict[str, Any]:
    """Return only the fields the caller explicitly set, in wire form.

    Partial-update option models rely on this so that an unset field is
    left untouched on the server while a field set to ``""`` is sent.
    """
    return model.model_dump(mode="json", by_alias=True, exclude_unset=True)
