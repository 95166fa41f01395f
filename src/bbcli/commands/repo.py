"""Repository commands.

Example::

    bb repo list acme
    bb repo view --repo acme/widgets
    bb repo create --repo acme/gadgets --private --project CORE
"""

from __future__ import annotations

from typing import Optional

import typer

from bbcli.commands.common import (
    DEFAULT_LIMIT,
    check_choice,
    collect,
    confirm,
    dump_models,
    make_client,
    page_size,
    split_repo,
)
from bbcli.output import OutputFormat, get_output, info, success, time_ago


repo_app = typer.Typer(no_args_is_help=True)


def _print_repositories(repos: list, title: str) -> None:
    output = get_output()
    rows = [
        [
            r.full_name,
            r.description or "-",
            "private" if r.is_private else "public",
            r.language or "-",
            time_ago(r.updated_on),
        ]
        for r in repos
    ]
    output.print_listing(
        dump_models(repos),
        ["Name", "Description", "Visibility", "Language", "Updated"],
        rows,
        title=title,
    )


@repo_app.command("list")
def repo_list(
    ctx: typer.Context,
    workspace: str = typer.Argument(help="Workspace slug."),
    role: str = typer.Option("", "--role", help="owner, admin, contributor or member."),
    query: str = typer.Option("", "--query", help="Bitbucket query, e.g. 'name ~ \"api\"'."),
    sort: str = typer.Option("-updated_on", "--sort", help="Sort field."),
    limit: int = typer.Option(DEFAULT_LIMIT, "--limit", "-L", help="Maximum number of repositories."),
) -> None:
    """List repositories in a workspace."""
    from bbcli.api.repositories import REPOSITORY_ROLES, Repository, RepositoryListOptions, list_repositories
    from bbcli.client import Paginated

    check_choice("--role", role, REPOSITORY_ROLES)
    opts = RepositoryListOptions(role=role, q=query, sort=sort, pagelen=page_size(limit))
    with make_client(ctx) as client:
        first = list_repositories(client, workspace, opts)
        repos = collect(client, first, Paginated[Repository], limit)

    if not repos:
        info(f"No repositories found in {workspace}.")
        return
    _print_repositories(repos, f"Repositories in {workspace}")


@repo_app.command("view")
def repo_view(
    ctx: typer.Context,
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
) -> None:
    """Show repository details and clone URLs."""
    from bbcli.api.common import html_url
    from bbcli.api.repositories import get_repository
    from bbcli.config import load_global_config, load_hosts
    from bbcli.models import DEFAULT_HOST

    workspace, slug = split_repo(repo)
    with make_client(ctx) as client:
        repository = get_repository(client, workspace, slug)

    # A per-host protocol wins over the global setting.
    host_entry = load_hosts().get(DEFAULT_HOST)
    protocol = (host_entry.git_protocol if host_entry else "") or load_global_config().git_protocol

    fields = [
        ("Repository", repository.full_name),
        ("Description", repository.description or "-"),
        ("Visibility", "private" if repository.is_private else "public"),
        ("Language", repository.language or "-"),
        ("Main branch", repository.mainbranch.name if repository.mainbranch else "-"),
        ("Project", repository.project.name if repository.project else "-"),
        ("Updated", time_ago(repository.updated_on)),
        ("Clone", repository.clone_url(protocol) or "-"),
        ("URL", html_url(repository.links) or "-"),
    ]
    get_output().print_fields(repository.to_json(), fields)


@repo_app.command("create")
def repo_create(
    ctx: typer.Context,
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Short description."),
    private: Optional[bool] = typer.Option(None, "--private/--public", help="Repository visibility."),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Project key."),
    language: Optional[str] = typer.Option(None, "--language", help="Main language."),
) -> None:
    """Create a repository. Options left out use the workspace defaults."""
    from bbcli.api.common import html_url
    from bbcli.api.repositories import RepositoryCreateOptions, create_repository

    workspace, slug = split_repo(repo)
    values = {
        "description": description,
        "is_private": private,
        "project_key": project,
        "language": language,
    }
    opts = RepositoryCreateOptions(**{k: v for k, v in values.items() if v is not None})
    with make_client(ctx) as client:
        repository = create_repository(client, workspace, slug, opts)

    success(f"Created repository {repository.full_name or repo}")
    output = get_output()
    if output.format == OutputFormat.JSON:
        output.format_response(repository.to_json())
    elif html_url(repository.links):
        output.print_data(html_url(repository.links))


@repo_app.command("delete")
def repo_delete(
    ctx: typer.Context,
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
) -> None:
    """Delete a repository. This cannot be undone."""
    from bbcli.api.repositories import delete_repository

    workspace, slug = split_repo(repo)
    confirm(ctx, f"Permanently delete {repo}?")
    with make_client(ctx) as client:
        delete_repository(client, workspace, slug)
    success(f"Deleted repository {repo}")


@repo_app.command("forks")
def repo_forks(
    ctx: typer.Context,
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
    limit: int = typer.Option(DEFAULT_LIMIT, "--limit", "-L", help="Maximum number of forks."),
) -> None:
    """List forks of a repository."""
    from bbcli.api.repositories import Repository, list_forks
    from bbcli.client import Paginated

    workspace, slug = split_repo(repo)
    with make_client(ctx) as client:
        first = list_forks(client, workspace, slug, pagelen=page_size(limit))
        forks = collect(client, first, Paginated[Repository], limit)

    if not forks:
        info(f"{repo} has no forks.")
        return
    _print_repositories(forks, f"Forks of {repo}")
