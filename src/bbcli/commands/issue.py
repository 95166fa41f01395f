"""Issue commands -- work with a repository's issue tracker.

Every command takes ``--repo WORKSPACE/REPO``.

Example::

    bb issue list --repo acme/widgets --state open --kind bug
    bb issue create --repo acme/widgets --title "Crash on start"
    bb issue edit 12 --repo acme/widgets --state resolved
"""

from __future__ import annotations

from typing import Any, Optional

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
from bbcli.output import OutputFormat, get_output, info, success, time_ago, user_display_name


issue_app = typer.Typer(no_args_is_help=True)

_STATE_STYLES = {
    "new": "cyan",
    "open": "green",
    "resolved": "magenta",
    "closed": "dim",
    "on hold": "yellow",
}


def _issue_fields(issue: Any) -> list[tuple[str, str]]:
    from bbcli.api.common import html_url

    fields = [
        ("Issue", f"#{issue.id} {issue.title}"),
        ("State", issue.state),
        ("Kind", issue.kind),
        ("Priority", issue.priority),
        ("Reporter", user_display_name(issue.reporter)),
        ("Assignee", user_display_name(issue.assignee)),
        ("Created", time_ago(issue.created_on)),
        ("Updated", time_ago(issue.updated_on)),
    ]
    url = html_url(issue.links)
    if url:
        fields.append(("URL", url))
    if issue.content is not None and issue.content.raw:
        fields.append(("Description", issue.content.raw))
    return fields


@issue_app.command("list")
def issue_list(
    ctx: typer.Context,
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
    state: str = typer.Option("", "--state", "-s", help="Filter by state (new, open, resolved...)."),
    kind: str = typer.Option("", "--kind", "-k", help="Filter by kind (bug, enhancement, proposal, task)."),
    priority: str = typer.Option("", "--priority", "-p", help="Filter by priority."),
    assignee: str = typer.Option("", "--assignee", "-a", help="Filter by assignee username."),
    query: str = typer.Option("", "--query", help="Raw Bitbucket query; overrides the filters above."),
    sort: str = typer.Option("", "--sort", help="Sort field, e.g. '-updated_on'."),
    limit: int = typer.Option(DEFAULT_LIMIT, "--limit", "-L", help="Maximum number of issues."),
) -> None:
    """List issues in a repository.

    Example::

        bb issue list --repo acme/widgets --state open --assignee alice
        bb issue list --repo acme/widgets --query 'title ~ "crash"'
    """
    from bbcli.api.issues import ISSUE_KINDS, ISSUE_PRIORITIES, ISSUE_STATES, Issue, IssueListOptions, list_issues
    from bbcli.client import Paginated

    workspace, slug = split_repo(repo)
    check_choice("--state", state, ISSUE_STATES)
    check_choice("--kind", kind, ISSUE_KINDS)
    check_choice("--priority", priority, ISSUE_PRIORITIES)
    opts = IssueListOptions(
        state=state,
        kind=kind,
        priority=priority,
        assignee=assignee,
        q=query,
        sort=sort,
        pagelen=page_size(limit),
    )

    with make_client(ctx) as client:
        first = list_issues(client, workspace, slug, opts)
        issues = collect(client, first, Paginated[Issue], limit)

    if not issues:
        info(f"No issues match in {repo}.")
        return

    output = get_output()
    rows = [
        [
            f"#{issue.id}",
            issue.title,
            output.style(issue.state, _STATE_STYLES.get(issue.state, "")),
            issue.kind,
            issue.priority,
            user_display_name(issue.assignee),
            time_ago(issue.updated_on),
        ]
        for issue in issues
    ]
    output.print_listing(
        dump_models(issues),
        ["ID", "Title", "State", "Kind", "Priority", "Assignee", "Updated"],
        rows,
        title=f"Issues in {repo}",
    )


@issue_app.command("view")
def issue_view(
    ctx: typer.Context,
    issue_id: int = typer.Argument(help="Issue number."),
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
    comments: bool = typer.Option(False, "--comments", "-c", help="Also show comments."),
) -> None:
    """Show one issue, optionally with its comments."""
    from bbcli.api.issues import get_issue, list_issue_comments

    workspace, slug = split_repo(repo)
    with make_client(ctx) as client:
        issue = get_issue(client, workspace, slug, issue_id)
        notes = list_issue_comments(client, workspace, slug, issue_id).values if comments else []

    output = get_output()
    data = issue.to_json()
    if comments:
        data["comments"] = dump_models(notes)
    output.print_fields(data, _issue_fields(issue))

    if comments and output.format != OutputFormat.JSON:
        for note in notes:
            output.print_data("")
            output.print_data(f"{user_display_name(note.user)} commented {time_ago(note.created_on)}:")
            output.print_data(note.content.raw if note.content is not None else "")


@issue_app.command("create")
def issue_create(
    ctx: typer.Context,
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
    title: str = typer.Option(..., "--title", "-t", help="Issue title."),
    body: str = typer.Option("", "--body", "-b", help="Issue description (Markdown)."),
    kind: str = typer.Option("", "--kind", "-k", help="bug, enhancement, proposal or task."),
    priority: str = typer.Option("", "--priority", "-p", help="trivial, minor, major, critical or blocker."),
    assignee_uuid: str = typer.Option("", "--assignee-uuid", help="UUID of the user to assign."),
) -> None:
    """Create an issue.

    Example::

        bb issue create --repo acme/widgets --title "Crash on start" --kind bug
    """
    from bbcli.api.common import html_url
    from bbcli.api.issues import ISSUE_KINDS, ISSUE_PRIORITIES, IssueCreateOptions, create_issue

    workspace, slug = split_repo(repo)
    check_choice("--kind", kind, ISSUE_KINDS)
    check_choice("--priority", priority, ISSUE_PRIORITIES)
    opts = IssueCreateOptions(
        title=title,
        content=body,
        kind=kind,
        priority=priority,
        assignee_uuid=assignee_uuid,
    )
    with make_client(ctx) as client:
        issue = create_issue(client, workspace, slug, opts)

    success(f"Created issue #{issue.id}: {issue.title}")
    url = html_url(issue.links)
    output = get_output()
    if output.format == OutputFormat.JSON:
        output.format_response(issue.to_json())
    elif url:
        output.print_data(url)


@issue_app.command("edit")
def issue_edit(
    ctx: typer.Context,
    issue_id: int = typer.Argument(help="Issue number."),
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="New title."),
    body: Optional[str] = typer.Option(None, "--body", "-b", help="New description."),
    state: Optional[str] = typer.Option(None, "--state", "-s", help="New state."),
    kind: Optional[str] = typer.Option(None, "--kind", "-k", help="New kind."),
    priority: Optional[str] = typer.Option(None, "--priority", "-p", help="New priority."),
    assignee_uuid: Optional[str] = typer.Option(None, "--assignee-uuid", help="UUID of the new assignee."),
) -> None:
    """Change fields of an issue. Only the options given are sent.

    Example::

        bb issue edit 12 --repo acme/widgets --state resolved
    """
    from bbcli.api.issues import ISSUE_KINDS, ISSUE_PRIORITIES, ISSUE_STATES, IssueUpdateOptions, update_issue
    from bbcli.exceptions import InvalidUsageError

    check_choice("--state", state, ISSUE_STATES)
    check_choice("--kind", kind, ISSUE_KINDS)
    check_choice("--priority", priority, ISSUE_PRIORITIES)

    changes = {
        "title": title,
        "content": body,
        "state": state,
        "kind": kind,
        "priority": priority,
        "assignee_uuid": assignee_uuid,
    }
    opts = IssueUpdateOptions(**{k: v for k, v in changes.items() if v is not None})
    if not opts.model_fields_set:
        raise InvalidUsageError("nothing to change; pass at least one field option")

    workspace, slug = split_repo(repo)
    with make_client(ctx) as client:
        issue = update_issue(client, workspace, slug, issue_id, opts)

    success(f"Updated issue #{issue.id}")


@issue_app.command("delete")
def issue_delete(
    ctx: typer.Context,
    issue_id: int = typer.Argument(help="Issue number."),
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
) -> None:
    """Delete an issue. Asks for confirmation unless ``--force`` is given."""
    from bbcli.api.issues import delete_issue

    workspace, slug = split_repo(repo)
    confirm(ctx, f"Delete issue #{issue_id} in {repo}?")
    with make_client(ctx) as client:
        delete_issue(client, workspace, slug, issue_id)
    success(f"Deleted issue #{issue_id}")


@issue_app.command("comment")
def issue_comment(
    ctx: typer.Context,
    issue_id: int = typer.Argument(help="Issue number."),
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
    body: str = typer.Option(..., "--body", "-b", help="Comment text (Markdown)."),
) -> None:
    """Add a comment to an issue."""
    from bbcli.api.issues import create_issue_comment

    workspace, slug = split_repo(repo)
    with make_client(ctx) as client:
        note = create_issue_comment(client, workspace, slug, issue_id, body)
    success(f"Added comment {note.id} to issue #{issue_id}")
