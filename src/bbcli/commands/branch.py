"""Branch commands."""

from __future__ import annotations

import typer

from bbcli.commands.common import DEFAULT_LIMIT, collect, confirm, dump_models, make_client, page_size, split_repo
from bbcli.output import get_output, info, short_hash, success, time_ago


branch_app = typer.Typer(no_args_is_help=True)


@branch_app.command("list")
def branch_list(
    ctx: typer.Context,
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
    query: str = typer.Option("", "--query", help="Bitbucket query, e.g. 'name ~ \"release\"'."),
    limit: int = typer.Option(DEFAULT_LIMIT, "--limit", "-L", help="Maximum number of branches."),
) -> None:
    """List branches with their head commit."""
    from bbcli.api.branches import Branch, list_branches
    from bbcli.client import Paginated

    workspace, slug = split_repo(repo)
    with make_client(ctx) as client:
        first = list_branches(client, workspace, slug, q=query, pagelen=page_size(limit))
        branches = collect(client, first, Paginated[Branch], limit)

    if not branches:
        info(f"No branches found in {repo}.")
        return

    rows = []
    for branch in branches:
        head = branch.target
        rows.append(
            [
                branch.name,
                short_hash(head.hash) if head else "-",
                (head.message.splitlines() or [""])[0] if head else "",
                time_ago(head.date) if head else "-",
            ]
        )
    get_output().print_listing(
        dump_models(branches),
        ["Branch", "Commit", "Message", "Updated"],
        rows,
        title=f"Branches in {repo}",
    )


@branch_app.command("create")
def branch_create(
    ctx: typer.Context,
    name: str = typer.Argument(help="New branch name."),
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
    target: str = typer.Option(..., "--target", "-t", help="Commit hash or branch to start from."),
) -> None:
    """Create a branch.

    Example::

        bb branch create release/2.0 --repo acme/widgets --target main
    """
    from bbcli.api.branches import create_branch

    workspace, slug = split_repo(repo)
    with make_client(ctx) as client:
        branch = create_branch(client, workspace, slug, name, target)
    head = short_hash(branch.target.hash) if branch.target else target
    success(f"Created branch {branch.name or name} at {head}")


@branch_app.command("delete")
def branch_delete(
    ctx: typer.Context,
    name: str = typer.Argument(help="Branch name."),
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
) -> None:
    """Delete a branch."""
    from bbcli.api.branches import delete_branch

    workspace, slug = split_repo(repo)
    confirm(ctx, f"Delete branch {name} in {repo}?")
    with make_client(ctx) as client:
        delete_branch(client, workspace, slug, name)
    success(f"Deleted branch {name}")
