"""Bitbucket Pipelines accessors.

Pipelines are addressed by UUID (``{...}``) on the wire, while users usually
refer to them by build number. :func:`resolve_pipeline_uuid` bridges the two.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from bbcli.api.common import APIModel, Link, RepositoryRef, User, page_query, repo_path, segment
from bbcli.client import Client, Paginated, Request, parse_response
from bbcli.exceptions import BBError, InvalidUsageError
from bbcli.exit_codes import EXIT_NOT_FOUND

REF_TARGET = "pipeline_ref_target"
COMMIT_TARGET = "pipeline_commit_target"

_TRIGGER_NAMES = {
    "pipeline_trigger_push": "push",
    "pipeline_trigger_pull_request": "pr",
    "pipeline_trigger_manual": "manual",
    "pipeline_trigger_schedule": "schedule",
}


class PipelineCommit(APIModel):
    type: str = "commit"
    hash: str = ""


class PipelineSelector(APIModel):
    """Selects a pipeline definition (``branches``, ``tags``, ``custom``...)."""

    type: str = ""
    pattern: str = ""


class PipelineTarget(APIModel):
    type: str = ""
    ref_type: Optional[str] = None
    ref_name: Optional[str] = None
    commit: Optional[PipelineCommit] = None
    selector: Optional[PipelineSelector] = None


class PipelineTrigger(APIModel):
    type: str = ""


class PipelineStateResult(APIModel):
    type: str = ""
    name: str = ""


class PipelineState(APIModel):
    type: str = ""
    name: str = ""
    result: Optional[PipelineStateResult] = None


class PipelineLinks(APIModel):
    steps: Optional[Link] = None


class Pipeline(APIModel):
    type: str = ""
    uuid: str = ""
    build_number: int = 0
    creator: Optional[User] = None
    repository: Optional[RepositoryRef] = None
    target: Optional[PipelineTarget] = None
    trigger: Optional[PipelineTrigger] = None
    state: Optional[PipelineState] = None
    created_on: Optional[datetime] = None
    completed_on: Optional[datetime] = None
    build_seconds_used: int = 0
    links: Optional[PipelineLinks] = None


class PipelineImage(APIModel):
    name: str = ""


class PipelineStep(APIModel):
    type: str = ""
    uuid: str = ""
    name: str = ""
    started_on: Optional[datetime] = None
    completed_on: Optional[datetime] = None
    state: Optional[PipelineState] = None
    image: Optional[PipelineImage] = None


class PipelineListOptions(BaseModel):
    status: str = ""
    sort: str = ""
    page: int = 0
    pagelen: int = 0


def state_label(state: Optional[PipelineState]) -> str:
    """Return the result name when finished, else the state name."""
    if state is None:
        return "UNKNOWN"
    if state.result is not None and state.result.name:
        return state.result.name
    return state.name or "UNKNOWN"


def trigger_label(trigger: Optional[PipelineTrigger]) -> str:
    if trigger is None:
        return "unknown"
    return _TRIGGER_NAMES.get(trigger.type, trigger.type.removeprefix("pipeline_trigger_"))


def branch_target(branch: str, selector: str = "") -> PipelineTarget:
    """Build a run target for the head of *branch*.

    Args:
        branch: Branch name.
        selector: Optional custom pipeline name from ``bitbucket-pipelines.yml``.
    """
    target = PipelineTarget(type=REF_TARGET, ref_type="branch", ref_name=branch)
    if selector:
        target.selector = PipelineSelector(type="custom", pattern=selector)
    return target


def commit_target(commit: str, branch: str = "", selector: str = "") -> PipelineTarget:
    """Build a run target for a specific commit, optionally on *branch*."""
    if branch:
        target = PipelineTarget(type=REF_TARGET, ref_type="branch", ref_name=branch)
    else:
        target = PipelineTarget(type=COMMIT_TARGET)
    target.commit = PipelineCommit(hash=commit)
    if selector:
        target.selector = PipelineSelector(type="custom", pattern=selector)
    return target


def list_pipelines(
    client: Client,
    workspace: str,
    repo_slug: str,
    opts: Optional[PipelineListOptions] = None,
) -> Paginated[Pipeline]:
    query: list[tuple[str, str]] = []
    if opts is not None:
        if opts.status:
            query.append(("status", opts.status))
        if opts.sort:
            query.append(("sort", opts.sort))
        query = page_query(query, opts.page, opts.pagelen)

    response = client.get(repo_path(workspace, repo_slug, "pipelines"), query)
    return parse_response(response, Paginated[Pipeline])


def get_pipeline(client: Client, workspace: str, repo_slug: str, pipeline_uuid: str) -> Pipeline:
    response = client.get(repo_path(workspace, repo_slug, "pipelines", segment(pipeline_uuid)))
    return parse_response(response, Pipeline)


def run_pipeline(
    client: Client,
    workspace: str,
    repo_slug: str,
    target: PipelineTarget,
) -> Pipeline:
    """Trigger a new pipeline run.

    Args:
        target: What to build; see :func:`branch_target` and
            :func:`commit_target`.

    Returns:
        The newly created pipeline, normally in the ``PENDING`` state.
    """
    body = {"target": target.to_json()}
    response = client.post(repo_path(workspace, repo_slug, "pipelines"), body)
    return parse_response(response, Pipeline)


def stop_pipeline(client: Client, workspace: str, repo_slug: str, pipeline_uuid: str) -> None:
    client.post(repo_path(workspace, repo_slug, "pipelines", segment(pipeline_uuid), "stopPipeline"))


def list_pipeline_steps(
    client: Client,
    workspace: str,
    repo_slug: str,
    pipeline_uuid: str,
) -> Paginated[PipelineStep]:
    response = client.get(repo_path(workspace, repo_slug, "pipelines", segment(pipeline_uuid), "steps"))
    return parse_response(response, Paginated[PipelineStep])


def get_pipeline_step_log(
    client: Client,
    workspace: str,
    repo_slug: str,
    pipeline_uuid: str,
    step_uuid: str,
) -> str:
    """Return the raw log of one step as text."""
    path = repo_path(
        workspace, repo_slug, "pipelines", segment(pipeline_uuid), "steps", segment(step_uuid), "log"
    )
    response = client.do(Request("GET", path, headers={"Accept": "text/plain"}))
    return response.text


def wrap_uuid(value: str) -> str:
    """Return *value* with exactly one pair of surrounding braces."""
    return "{" + value.strip("{}") + "}"


def resolve_pipeline_uuid(client: Client, workspace: str, repo_slug: str, identifier: str) -> str:
    """Turn a build number or UUID into a pipeline UUID.

    A numeric *identifier* is treated as a build number and looked up in the
    newest-first pipeline list (first page only). Anything else is taken to
    be a UUID and wrapped in braces.

    Raises:
        InvalidUsageError: If *identifier* is empty.
        BBError: If no pipeline with that build number is on the first page.
    """
    identifier = identifier.strip()
    if not identifier:
        raise InvalidUsageError("pipeline build number or UUID is required")
    if not identifier.isdigit():
        return wrap_uuid(identifier)

    build_number = int(identifier)
    page = list_pipelines(client, workspace, repo_slug, PipelineListOptions(sort="-created_on"))
    for pipeline in page.values:
        if pipeline.build_number == build_number:
            return pipeline.uuid
    raise BBError(f"pipeline #{build_number} not found", exit_code=EXIT_NOT_FOUND)
