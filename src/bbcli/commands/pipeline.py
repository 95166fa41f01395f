"""Pipeline commands -- inspect and control Bitbucket Pipelines runs.

Pipelines can be referred to by build number (``42``) or UUID
(``{1b2c...}``, braces optional).

Example::

    bb pipeline list --repo acme/widgets --status FAILED
    bb pipeline run --repo acme/widgets --branch main --custom deploy
    bb pipeline logs 42 --repo acme/widgets
"""

from __future__ import annotations

from typing import Any, Optional

import typer

from bbcli.commands.common import DEFAULT_LIMIT, collect, confirm, dump_models, make_client, page_size, split_repo
from bbcli.output import (
    OutputFormat,
    format_duration,
    get_output,
    info,
    short_hash,
    success,
    time_ago,
    user_display_name,
)


pipeline_app = typer.Typer(no_args_is_help=True)

_RESULT_STYLES = {
    "SUCCESSFUL": "green",
    "FAILED": "red",
    "ERROR": "red",
    "STOPPED": "yellow",
    "IN_PROGRESS": "yellow",
    "PENDING": "cyan",
}


def _state_cell(state: Any) -> Any:
    from bbcli.api.pipelines import state_label

    label = state_label(state)
    return get_output().style(label, _RESULT_STYLES.get(label, ""))


def _target_text(pipeline: Any) -> str:
    target = pipeline.target
    if target is None:
        return "-"
    if target.ref_name:
        return target.ref_name
    if target.commit is not None:
        return short_hash(target.commit.hash)
    return "-"


@pipeline_app.command("list")
def pipeline_list(
    ctx: typer.Context,
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
    status: str = typer.Option("", "--status", help="Filter by status, e.g. PENDING or FAILED."),
    sort: str = typer.Option("-created_on", "--sort", help="Sort field."),
    limit: int = typer.Option(DEFAULT_LIMIT, "--limit", "-L", help="Maximum number of pipelines."),
) -> None:
    """List recent pipeline runs, newest first."""
    from bbcli.api.pipelines import Pipeline, PipelineListOptions, list_pipelines, trigger_label
    from bbcli.client import Paginated

    workspace, slug = split_repo(repo)
    opts = PipelineListOptions(status=status, sort=sort, pagelen=page_size(limit))
    with make_client(ctx) as client:
        first = list_pipelines(client, workspace, slug, opts)
        pipelines = collect(client, first, Paginated[Pipeline], limit)

    if not pipelines:
        info(f"No pipelines found in {repo}.")
        return

    rows = [
        [
            f"#{p.build_number}",
            _state_cell(p.state),
            _target_text(p),
            trigger_label(p.trigger),
            format_duration(p.build_seconds_used),
            time_ago(p.created_on),
        ]
        for p in pipelines
    ]
    get_output().print_listing(
        dump_models(pipelines),
        ["Build", "Status", "Target", "Trigger", "Duration", "Started"],
        rows,
        title=f"Pipelines in {repo}",
    )


@pipeline_app.command("view")
def pipeline_view(
    ctx: typer.Context,
    pipeline: str = typer.Argument(help="Build number or UUID."),
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
) -> None:
    """Show one pipeline run."""
    from bbcli.api.pipelines import get_pipeline, resolve_pipeline_uuid, state_label, trigger_label

    workspace, slug = split_repo(repo)
    with make_client(ctx) as client:
        uuid = resolve_pipeline_uuid(client, workspace, slug, pipeline)
        run = get_pipeline(client, workspace, slug, uuid)

    get_output().print_fields(
        run.to_json(),
        [
            ("Build", f"#{run.build_number}"),
            ("UUID", run.uuid),
            ("Status", state_label(run.state)),
            ("Target", _target_text(run)),
            ("Trigger", trigger_label(run.trigger)),
            ("Creator", user_display_name(run.creator)),
            ("Started", time_ago(run.created_on)),
            ("Duration", format_duration(run.build_seconds_used)),
        ],
    )


@pipeline_app.command("run")
def pipeline_run(
    ctx: typer.Context,
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
    branch: str = typer.Option("", "--branch", "-b", help="Branch to build."),
    commit: str = typer.Option("", "--commit", "-c", help="Commit hash to build."),
    custom: str = typer.Option("", "--custom", help="Name of a custom pipeline to run."),
) -> None:
    """Trigger a new pipeline run on a branch or commit.

    Example::

        bb pipeline run --repo acme/widgets --branch main
        bb pipeline run --repo acme/widgets --commit 1a2b3c4 --custom nightly
    """
    from bbcli.api.pipelines import branch_target, commit_target, run_pipeline
    from bbcli.exceptions import InvalidUsageError

    if not branch and not commit:
        raise InvalidUsageError("pass --branch or --commit to choose what to build")

    workspace, slug = split_repo(repo)
    if commit:
        target = commit_target(commit, branch=branch, selector=custom)
    else:
        target = branch_target(branch, selector=custom)

    with make_client(ctx) as client:
        run = run_pipeline(client, workspace, slug, target)

    success(f"Started pipeline #{run.build_number} on {branch or short_hash(commit)}")
    output = get_output()
    if output.format == OutputFormat.JSON:
        output.format_response(run.to_json())


@pipeline_app.command("stop")
def pipeline_stop(
    ctx: typer.Context,
    pipeline: str = typer.Argument(help="Build number or UUID."),
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
) -> None:
    """Stop a running pipeline."""
    from bbcli.api.pipelines import resolve_pipeline_uuid, stop_pipeline

    workspace, slug = split_repo(repo)
    confirm(ctx, f"Stop pipeline {pipeline} in {repo}?")
    with make_client(ctx) as client:
        uuid = resolve_pipeline_uuid(client, workspace, slug, pipeline)
        stop_pipeline(client, workspace, slug, uuid)
    success(f"Stop requested for pipeline {pipeline}")


@pipeline_app.command("steps")
def pipeline_steps(
    ctx: typer.Context,
    pipeline: str = typer.Argument(help="Build number or UUID."),
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
) -> None:
    """List the steps of a pipeline run."""
    from bbcli.api.pipelines import list_pipeline_steps, resolve_pipeline_uuid

    workspace, slug = split_repo(repo)
    with make_client(ctx) as client:
        uuid = resolve_pipeline_uuid(client, workspace, slug, pipeline)
        steps = list_pipeline_steps(client, workspace, slug, uuid).values

    rows = [
        [
            step.name or "-",
            _state_cell(step.state),
            step.image.name if step.image is not None else "-",
            time_ago(step.started_on),
            step.uuid,
        ]
        for step in steps
    ]
    get_output().print_listing(
        dump_models(steps),
        ["Step", "Status", "Image", "Started", "UUID"],
        rows,
        title=f"Steps of pipeline {pipeline}",
    )


@pipeline_app.command("logs")
def pipeline_logs(
    ctx: typer.Context,
    pipeline: str = typer.Argument(help="Build number or UUID."),
    repo: str = typer.Option(..., "--repo", "-R", help="Repository as WORKSPACE/REPO."),
    step: Optional[str] = typer.Option(None, "--step", "-s", help="Step UUID; all steps when omitted."),
) -> None:
    """Print the log of one step, or of every step in order.

    Logs are plain text and go through the pager when stdout is a terminal.
    """
    from bbcli.api.pipelines import get_pipeline_step_log, list_pipeline_steps, resolve_pipeline_uuid, wrap_uuid

    workspace, slug = split_repo(repo)
    chunks: list[str] = []
    with make_client(ctx) as client:
        uuid = resolve_pipeline_uuid(client, workspace, slug, pipeline)
        if step:
            chunks.append(get_pipeline_step_log(client, workspace, slug, uuid, wrap_uuid(step)))
        else:
            for item in list_pipeline_steps(client, workspace, slug, uuid).values:
                chunks.append(f"=== {item.name or item.uuid} ===")
                chunks.append(get_pipeline_step_log(client, workspace, slug, uuid, item.uuid))

    get_output().paged_output("\n".join(chunks))
