"""Snippet commands."""

from __future__ import annotations

import typer

from bbcli.commands.common import DEFAULT_LIMIT, collect, confirm, dump_models, make_client, page_size
from bbcli.output import get_output, info, success, time_ago, user_display_name


snippet_app = typer.Typer(no_args_is_help=True)


@snippet_app.command("list")
def snippet_list(
    ctx: typer.Context,
    workspace: str = typer.Option("", "--workspace", "-w", help="Only snippets in this workspace."),
    role: str = typer.Option("", "--role", help="owner, contributor or member."),
    limit: int = typer.Option(DEFAULT_LIMIT, "--limit", "-L", help="Maximum number of snippets."),
) -> None:
    """List snippets visible to the current user."""
    from bbcli.api.snippets import Snippet, list_snippets
    from bbcli.client import Paginated

    with make_client(ctx) as client:
        first = list_snippets(client, workspace, role=role, pagelen=page_size(limit))
        snippets = collect(client, first, Paginated[Snippet], limit)

    if not snippets:
        info("No snippets found.")
        return

    rows = [
        [
            s.id,
            s.title or "-",
            "private" if s.is_private else "public",
            user_display_name(s.owner),
            time_ago(s.updated_on),
        ]
        for s in snippets
    ]
    get_output().print_listing(
        dump_models(snippets),
        ["ID", "Title", "Visibility", "Owner", "Updated"],
        rows,
        title="Snippets",
    )


@snippet_app.command("view")
def snippet_view(
    ctx: typer.Context,
    workspace: str = typer.Argument(help="Workspace slug."),
    snippet_id: str = typer.Argument(help="Snippet ID."),
) -> None:
    """Show one snippet and its file names."""
    from bbcli.api.common import html_url
    from bbcli.api.snippets import get_snippet

    with make_client(ctx) as client:
        snippet = get_snippet(client, workspace, snippet_id)

    get_output().print_fields(
        snippet.to_json(),
        [
            ("Snippet", f"{snippet.id} {snippet.title}"),
            ("Visibility", "private" if snippet.is_private else "public"),
            ("Owner", user_display_name(snippet.owner)),
            ("Files", ", ".join(sorted(snippet.files)) or "-"),
            ("Created", time_ago(snippet.created_on)),
            ("URL", html_url(snippet.links) or "-"),
        ],
    )


@snippet_app.command("create")
def snippet_create(
    ctx: typer.Context,
    workspace: str = typer.Argument(help="Workspace slug."),
    title: str = typer.Option(..., "--title", "-t", help="Snippet title."),
    private: bool = typer.Option(True, "--private/--public", help="Snippet visibility."),
) -> None:
    """Create an empty snippet."""
    from bbcli.api.snippets import create_snippet

    with make_client(ctx) as client:
        snippet = create_snippet(client, workspace, title, is_private=private)
    success(f"Created snippet {snippet.id}: {snippet.title or title}")


@snippet_app.command("delete")
def snippet_delete(
    ctx: typer.Context,
    workspace: str = typer.Argument(help="Workspace slug."),
    snippet_id: str = typer.Argument(help="Snippet ID."),
) -> None:
    """Delete a snippet."""
    from bbcli.api.snippets import delete_snippet

    confirm(ctx, f"Delete snippet {snippet_id}?")
    with make_client(ctx) as client:
        delete_snippet(client, workspace, snippet_id)
    success(f"Deleted snippet {snippet_id}")
