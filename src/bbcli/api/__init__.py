"""Resource accessors for the Bitbucket Cloud REST API.

Each submodule groups plain functions for one resource. They take a
:class:`~bbcli.client.Client` first, build the request, and decode the
response into pydantic models with :func:`~bbcli.client.parse_response`.
List functions return exactly one :class:`~bbcli.client.Paginated` page.
"""

from bbcli.api.common import APIModel, Commit, Content, Link, Links, RepositoryRef, User, html_url

__all__ = [
    "APIModel",
    "Commit",
    "Content",
    "Link",
    "Links",
    "RepositoryRef",
    "User",
    "html_url",
]
