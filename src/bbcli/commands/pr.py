"""Pull request commands.

Example::

    bb pr list --repo acme/widgets
    bb pr create --repo acme/widgets --title "Add retries" --source feature/retries
    bb pr merge 7 --repo acme/widgets --strategy squash
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


pr_app = typer.Typer(no_args_is_help=True)

_STATE_STYLES = {
    "OPEN": "green",
    "MERGED": "magenta",
    "DECLINED": "red",
    "SUPERSEDED": "dim",
}


def _branch(endpoint: Any) -> str:
    if endpoint is None or endpoint.branch is None:
        return "-"
    return endpoint.branch.name


def _emit_created(pr: Any) -> None:
    from bbcli.api.common import html_url

    output = get_output()
    if output.format == OutputFormat.JSON:
        output.format_response(pr.to_json())
        return
    url = html_url(pr.links)
    if url:
        output.print_data(url)


@pr_app.command("list")
def pr_list(
    ctx: typer.Context,
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
    state: str = typer.Option("OPEN", "--state", "-s", help="OPEN, MERGED, DECLINED or SUPERSEDED."),
    limit: int = typer.Option(DEFAULT_LIMIT, "--limit", "-L", help="Maximum number of pull requests."),
) -> None:
    """List pull requests in a repository."""
    from bbcli.api.pullrequests import PR_STATES, PullRequest, PullRequestListOptions, list_pull_requests
    from bbcli.client import Paginated

    workspace, slug = split_repo(repo)
    check_choice("--state", state.upper(), PR_STATES)
    opts = PullRequestListOptions(state=state, pagelen=page_size(limit))
    with make_client(ctx) as client:
        first = list_pull_requests(client, workspace, slug, opts)
        prs = collect(client, first, Paginated[PullRequest], limit)

    if not prs:
        info(f"No {state.lower()} pull requests in {repo}.")
        return

    output = get_output()
    rows = [
        [
            f"#{pr.id}",
            pr.title,
            f"{_branch(pr.source)} → {_branch(pr.destination)}",
            user_display_name(pr.author),
            output.style(pr.state, _STATE_STYLES.get(pr.state, "")),
            time_ago(pr.updated_on),
        ]
        for pr in prs
    ]
    output.print_listing(
        dump_models(prs),
        ["ID", "Title", "Branches", "Author", "State", "Updated"],
        rows,
        title=f"Pull requests in {repo}",
    )


@pr_app.command("view")
def pr_view(
    ctx: typer.Context,
    pr_id: int = typer.Argument(help="Pull request number."),
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
) -> None:
    """Show one pull request."""
    from bbcli.api.common import html_url
    from bbcli.api.pullrequests import get_pull_request

    workspace, slug = split_repo(repo)
    with make_client(ctx) as client:
        pr = get_pull_request(client, workspace, slug, pr_id)

    approvals = [user_display_name(p.user) for p in pr.participants if p.approved]
    fields = [
        ("Pull request", f"#{pr.id} {pr.title}"),
        ("State", pr.state),
        ("Author", user_display_name(pr.author)),
        ("Branches", f"{_branch(pr.source)} → {_branch(pr.destination)}"),
        ("Reviewers", ", ".join(user_display_name(r) for r in pr.reviewers) or "-"),
        ("Approved by", ", ".join(approvals) or "-"),
        ("Comments", str(pr.comment_count)),
        ("Created", time_ago(pr.created_on)),
        ("Updated", time_ago(pr.updated_on)),
    ]
    url = html_url(pr.links)
    if url:
        fields.append(("URL", url))
    if pr.description:
        fields.append(("Description", pr.description))
    get_output().print_fields(pr.to_json(), fields)


@pr_app.command("create")
def pr_create(
    ctx: typer.Context,
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
    title: str = typer.Option(..., "--title", "-t", help="Pull request title."),
    source: str = typer.Option(..., "--source", "-s", help="Source branch."),
    destination: str = typer.Option("", "--destination", "-d", help="Destination branch (default: main branch)."),
    body: str = typer.Option("", "--body", "-b", help="Description (Markdown)."),
    close_source_branch: bool = typer.Option(
        False, "--close-source-branch", help="Delete the source branch after merging."
    ),
    reviewers: Optional[list[str]] = typer.Option(
        None, "--reviewer", "-r", help="Reviewer UUID; may be repeated."
    ),
) -> None:
    """Open a pull request.

    Example::

        bb pr create --repo acme/widgets -t "Add retries" -s feature/retries -r "{a1b2...}"
    """
    from bbcli.api.pullrequests import PullRequestCreateOptions, create_pull_request

    workspace, slug = split_repo(repo)
    opts = PullRequestCreateOptions(
        title=title,
        source_branch=source,
        destination_branch=destination,
        description=body,
        close_source_branch=close_source_branch,
        reviewer_uuids=reviewers or [],
    )
    with make_client(ctx) as client:
        pr = create_pull_request(client, workspace, slug, opts)

    success(f"Created pull request #{pr.id}: {pr.title}")
    _emit_created(pr)


@pr_app.command("merge")
def pr_merge(
    ctx: typer.Context,
    pr_id: int = typer.Argument(help="Pull request number."),
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
    strategy: str = typer.Option("", "--strategy", help="merge_commit, squash or fast_forward."),
    message: str = typer.Option("", "--message", "-m", help="Merge commit message."),
    close_source_branch: Optional[bool] = typer.Option(
        None,
        "--close-source-branch/--keep-source-branch",
        help="Override whether the source branch is deleted.",
    ),
) -> None:
    """Merge a pull request."""
    from bbcli.api.pullrequests import MERGE_STRATEGIES, MergeOptions, merge_pull_request

    workspace, slug = split_repo(repo)
    check_choice("--strategy", strategy, MERGE_STRATEGIES)
    confirm(ctx, f"Merge pull request #{pr_id} in {repo}?")
    opts = MergeOptions(merge_strategy=strategy, message=message, close_source_branch=close_source_branch)
    with make_client(ctx) as client:
        pr = merge_pull_request(client, workspace, slug, pr_id, opts)
    success(f"Merged pull request #{pr.id} ({pr.state})")


@pr_app.command("decline")
def pr_decline(
    ctx: typer.Context,
    pr_id: int = typer.Argument(help="Pull request number."),
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
) -> None:
    """Decline a pull request."""
    from bbcli.api.pullrequests import decline_pull_request

    workspace, slug = split_repo(repo)
    confirm(ctx, f"Decline pull request #{pr_id} in {repo}?")
    with make_client(ctx) as client:
        decline_pull_request(client, workspace, slug, pr_id)
    success(f"Declined pull request #{pr_id}")


@pr_app.command("approve")
def pr_approve(
    ctx: typer.Context,
    pr_id: int = typer.Argument(help="Pull request number."),
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
    undo: bool = typer.Option(False, "--undo", help="Withdraw a previous approval."),
) -> None:
    """Approve a pull request (or withdraw the approval with ``--undo``)."""
    from bbcli.api.pullrequests import approve_pull_request, unapprove_pull_request

    workspace, slug = split_repo(repo)
    with make_client(ctx) as client:
        if undo:
            unapprove_pull_request(client, workspace, slug, pr_id)
        else:
            approve_pull_request(client, workspace, slug, pr_id)
    success(f"{'Withdrew approval of' if undo else 'Approved'} pull request #{pr_id}")


@pr_app.command("diff")
def pr_diff(
    ctx: typer.Context,
    pr_id: int = typer.Argument(help="Pull request number."),
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
) -> None:
    """Show the diff of a pull request through the pager."""
    from bbcli.api.pullrequests import get_pull_request_diff

    workspace, slug = split_repo(repo)
    with make_client(ctx) as client:
        diff = get_pull_request_diff(client, workspace, slug, pr_id)
    get_output().paged_output(diff)


@pr_app.command("comment")
def pr_comment(
    ctx: typer.Context,
    pr_id: int = typer.Argument(help="Pull request number."),
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
    body: str = typer.Option(..., "--body", "-b", help="Comment text (Markdown)."),
) -> None:
    """Add a comment to a pull request."""
    from bbcli.api.pullrequests import create_pull_request_comment

    workspace, slug = split_repo(repo)
    with make_client(ctx) as client:
        note = create_pull_request_comment(client, workspace, slug, pr_id, body)
    success(f"Added comment {note.id} to pull request #{pr_id}")
