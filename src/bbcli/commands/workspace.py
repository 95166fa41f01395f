"""Workspace commands."""

from __future__ import annotations

import typer

from bbcli.commands.common import DEFAULT_LIMIT, collect, dump_models, make_client, page_size
from bbcli.output import get_output, info, time_ago, user_display_name


workspace_app = typer.Typer(no_args_is_help=True)


@workspace_app.command("list")
def workspace_list(
    ctx: typer.Context,
    role: str = typer.Option("", "--role", help="owner, collaborator or member."),
    limit: int = typer.Option(DEFAULT_LIMIT, "--limit", "-L", help="Maximum number of workspaces."),
) -> None:
    """List workspaces you have access to."""
    from bbcli.api.workspaces import Workspace, list_workspaces
    from bbcli.client import Paginated

    with make_client(ctx) as client:
        first = list_workspaces(client, role=role, pagelen=page_size(limit))
        workspaces = collect(client, first, Paginated[Workspace], limit)

    if not workspaces:
        info("No workspaces found.")
        return

    rows = [[w.slug, w.name, "private" if w.is_private else "public"] for w in workspaces]
    get_output().print_listing(
        dump_models(workspaces),
        ["Slug", "Name", "Visibility"],
        rows,
        title="Workspaces",
    )


@workspace_app.command("view")
def workspace_view(
    ctx: typer.Context,
    workspace: str = typer.Argument(help="Workspace slug."),
) -> None:
    """Show one workspace."""
    from bbcli.api.common import html_url
    from bbcli.api.workspaces import get_workspace

    with make_client(ctx) as client:
        ws = get_workspace(client, workspace)

    get_output().print_fields(
        ws.to_json(),
        [
            ("Workspace", ws.slug),
            ("Name", ws.name),
            ("Visibility", "private" if ws.is_private else "public"),
            ("Created", time_ago(ws.created_on)),
            ("URL", html_url(ws.links) or "-"),
        ],
    )


@workspace_app.command("members")
def workspace_members(
    ctx: typer.Context,
    workspace: str = typer.Argument(help="Workspace slug."),
    limit: int = typer.Option(DEFAULT_LIMIT, "--limit", "-L", help="Maximum number of members."),
) -> None:
    """List members of a workspace."""
    from bbcli.api.workspaces import WorkspaceMembership, list_workspace_members
    from bbcli.client import Paginated

    with make_client(ctx) as client:
        first = list_workspace_members(client, workspace, pagelen=page_size(limit))
        members = collect(client, first, Paginated[WorkspaceMembership], limit)

    if not members:
        info(f"No members found in {workspace}.")
        return

    rows = [
        [user_display_name(m.user), m.user.account_id if m.user else "-", m.user.uuid if m.user else "-"]
        for m in members
    ]
    get_output().print_listing(
        dump_models(members),
        ["Name", "Account ID", "UUID"],
        rows,
        title=f"Members of {workspace}",
    )
