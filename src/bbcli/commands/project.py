"""Project commands."""

from __future__ import annotations

import typer

from bbcli.commands.common import DEFAULT_LIMIT, collect, dump_models, make_client, page_size
from bbcli.output import get_output, info, success, time_ago


project_app = typer.Typer(no_args_is_help=True)


@project_app.command("list")
def project_list(
    ctx: typer.Context,
    workspace: str = typer.Argument(help="Workspace slug."),
    limit: int = typer.Option(DEFAULT_LIMIT, "--limit", "-L", help="Maximum number of projects."),
) -> None:
    """List projects in a workspace."""
    from bbcli.api.projects import Project, list_projects
    from bbcli.client import Paginated

    with make_client(ctx) as client:
        first = list_projects(client, workspace, pagelen=page_size(limit))
        projects = collect(client, first, Paginated[Project], limit)

    if not projects:
        info(f"No projects found in {workspace}.")
        return

    rows = [
        [p.key, p.name, "private" if p.is_private else "public", time_ago(p.updated_on)]
        for p in projects
    ]
    get_output().print_listing(
        dump_models(projects),
        ["Key", "Name", "Visibility", "Updated"],
        rows,
        title=f"Projects in {workspace}",
    )


@project_app.command("view")
def project_view(
    ctx: typer.Context,
    workspace: str = typer.Argument(help="Workspace slug."),
    key: str = typer.Argument(help="Project key."),
) -> None:
    """Show one project."""
    from bbcli.api.common import html_url
    from bbcli.api.projects import get_project

    with make_client(ctx) as client:
        project = get_project(client, workspace, key)

    get_output().print_fields(
        project.to_json(),
        [
            ("Project", f"{project.key} {project.name}"),
            ("Description", project.description or "-"),
            ("Visibility", "private" if project.is_private else "public"),
            ("Created", time_ago(project.created_on)),
            ("URL", html_url(project.links) or "-"),
        ],
    )


@project_app.command("create")
def project_create(
    ctx: typer.Context,
    workspace: str = typer.Argument(help="Workspace slug."),
    key: str = typer.Option(..., "--key", "-k", help="Project key, e.g. CORE."),
    name: str = typer.Option(..., "--name", "-n", help="Project name."),
    description: str = typer.Option("", "--description", "-d", help="Short description."),
    private: bool = typer.Option(True, "--private/--public", help="Project visibility."),
) -> None:
    """Create a project in a workspace."""
    from bbcli.api.projects import create_project

    with make_client(ctx) as client:
        project = create_project(client, workspace, key, name, description=description, is_private=private)
    success(f"Created project {project.key or key} in {workspace}")
