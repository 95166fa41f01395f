"""Tests for the Pipelines accessors and build-number resolution."""

from __future__ import annotations

import json

import pytest

from bbcli.api.pipelines import (
    PipelineListOptions,
    PipelineState,
    PipelineStateResult,
    PipelineTrigger,
    branch_target,
    commit_target,
    get_pipeline,
    get_pipeline_step_log,
    list_pipeline_steps,
    list_pipelines,
    resolve_pipeline_uuid,
    run_pipeline,
    state_label,
    stop_pipeline,
    trigger_label,
    wrap_uuid,
)
from bbcli.exceptions import BBError, InvalidUsageError
from bbcli.exit_codes import EXIT_NOT_FOUND


PIPELINES = "/repositories/acme/widgets/pipelines"


def _pipeline(number: int, uuid: str) -> dict:
    return {
        "type": "pipeline",
        "uuid": uuid,
        "build_number": number,
        "state": {"name": "COMPLETED", "result": {"name": "SUCCESSFUL"}},
        "target": {"type": "pipeline_ref_target", "ref_type": "branch", "ref_name": "main"},
        "trigger": {"type": "pipeline_trigger_push"},
    }


# ---------------------------------------------------------------------------
# Labels and targets
# ---------------------------------------------------------------------------


class TestLabels:
    def test_state_label_prefers_result(self) -> None:
        state = PipelineState(name="COMPLETED", result=PipelineStateResult(name="FAILED"))
        assert state_label(state) == "FAILED"

    def test_state_label_in_progress(self) -> None:
        assert state_label(PipelineState(name="IN_PROGRESS")) == "IN_PROGRESS"

    def test_state_label_missing(self) -> None:
        assert state_label(None) == "UNKNOWN"

    def test_trigger_label(self) -> None:
        assert trigger_label(PipelineTrigger(type="pipeline_trigger_manual")) == "manual"
        assert trigger_label(PipelineTrigger(type="pipeline_trigger_webhook")) == "webhook"
        assert trigger_label(None) == "unknown"


class TestTargets:
    def test_branch_target(self) -> None:
        assert branch_target("main").to_json() == {
            "type": "pipeline_ref_target",
            "ref_type": "branch",
            "ref_name": "main",
        }

    def test_branch_target_with_custom_selector(self) -> None:
        data = branch_target("main", selector="deploy").to_json()
        assert data["selector"] == {"type": "custom", "pattern": "deploy"}

    def test_commit_target_without_branch(self) -> None:
        assert commit_target("abc123").to_json() == {
            "type": "pipeline_commit_target",
            "commit": {"type": "commit", "hash": "abc123"},
        }

    def test_commit_target_on_branch(self) -> None:
        data = commit_target("abc123", branch="release").to_json()
        assert data["type"] == "pipeline_ref_target"
        assert data["ref_name"] == "release"
        assert data["commit"]["hash"] == "abc123"


# ---------------------------------------------------------------------------
# Accessors
# ---------------------------------------------------------------------------


class TestPipelineAccessors:
    def test_list_with_options(self, api) -> None:
        api.add("GET", PIPELINES, json={"values": [_pipeline(7, "{p7}")]})
        opts = PipelineListOptions(status="FAILED", sort="-created_on", pagelen=5)
        with api.client() as client:
            page = list_pipelines(client, "acme", "widgets", opts)
        params = api.last.url.params
        assert params["status"] == "FAILED"
        assert params["sort"] == "-created_on"
        assert params["pagelen"] == "5"
        assert page.values[0].build_number == 7
        assert state_label(page.values[0].state) == "SUCCESSFUL"

    def test_get_uses_braced_uuid(self, api) -> None:
        api.add("GET", f"{PIPELINES}/{{p7}}", json=_pipeline(7, "{p7}"))
        with api.client() as client:
            pipeline = get_pipeline(client, "acme", "widgets", "{p7}")
        assert pipeline.uuid == "{p7}"

    def test_run_posts_target(self, api) -> None:
        api.add("POST", PIPELINES, json=_pipeline(8, "{p8}"), status=201)
        with api.client() as client:
            pipeline = run_pipeline(client, "acme", "widgets", branch_target("main"))
        assert json.loads(api.last.content) == {
            "target": {"type": "pipeline_ref_target", "ref_type": "branch", "ref_name": "main"}
        }
        assert pipeline.build_number == 8

    def test_stop(self, api) -> None:
        api.add("POST", f"{PIPELINES}/{{p7}}/stopPipeline", status=204)
        with api.client() as client:
            stop_pipeline(client, "acme", "widgets", "{p7}")
        assert api.last.method == "POST"
        assert api.last.content == b""

    def test_steps(self, api) -> None:
        api.add(
            "GET",
            f"{PIPELINES}/{{p7}}/steps",
            json={"values": [{"uuid": "{s1}", "name": "Build", "state": {"name": "COMPLETED"}}]},
        )
        with api.client() as client:
            steps = list_pipeline_steps(client, "acme", "widgets", "{p7}")
        assert steps.values[0].name == "Build"

    def test_step_log_is_plain_text(self, api) -> None:
        api.add("GET", f"{PIPELINES}/{{p7}}/steps/{{s1}}/log", text="+ make\nok\n")
        with api.client() as client:
            log = get_pipeline_step_log(client, "acme", "widgets", "{p7}", "{s1}")
        assert log == "+ make\nok\n"
        assert api.last.headers["Accept"] == "text/plain"


# ---------------------------------------------------------------------------
# Build number resolution
# ---------------------------------------------------------------------------


class TestResolvePipelineUUID:
    @pytest.mark.parametrize("value", ["abc", "{abc}", "{{abc}}"])
    def test_wrap_uuid(self, value: str) -> None:
        assert wrap_uuid(value) == "{abc}"

    def test_uuid_is_wrapped_without_request(self, api) -> None:
        with api.client() as client:
            assert resolve_pipeline_uuid(client, "acme", "widgets", "abc-def") == "{abc-def}"
        assert api.requests == []

    def test_build_number_looked_up(self, api) -> None:
        api.add("GET", PIPELINES, json={"values": [_pipeline(12, "{p12}"), _pipeline(11, "{p11}")]})
        with api.client() as client:
            assert resolve_pipeline_uuid(client, "acme", "widgets", "11") == "{p11}"
        assert api.last.url.params["sort"] == "-created_on"

    def test_build_number_missing(self, api) -> None:
        api.add("GET", PIPELINES, json={"values": [_pipeline(12, "{p12}")]})
        with api.client() as client:
            with pytest.raises(BBError, match="pipeline #3 not found") as exc_info:
                resolve_pipeline_uuid(client, "acme", "widgets", "3")
        assert exc_info.value.exit_code == EXIT_NOT_FOUND

    def test_empty_identifier(self, api) -> None:
        with api.client() as client:
            with pytest.raises(InvalidUsageError):
                resolve_pipeline_uuid(client, "acme", "widgets", "  ")
