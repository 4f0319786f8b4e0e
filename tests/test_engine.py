"""
Tests for the engine executor — run_steps and run_batch.
"""

import pytest

from kubefs.core.engine.executor import BatchReport, run_batch, run_steps
from kubefs.core.errors import ExternalFailureError, NotFoundError


class TestRunSteps:
    def test_runs_in_order(self, mock_registry, mock_adapter):
        receipts = run_steps(mock_registry, ["one", "two"], entity="svc", prefix="deploy")
        assert [r.action_id for r in receipts] == ["deploy:svc:1", "deploy:svc:2"]
        assert mock_adapter.commands == ["one", "two"]

    def test_first_failure_aborts(self, mock_registry, mock_adapter):
        mock_adapter.fail_when("two", "boom")
        with pytest.raises(ExternalFailureError) as exc_info:
            run_steps(mock_registry, ["one", "two", "three"])
        assert exc_info.value.command == "two"
        assert exc_info.value.output == "boom"
        assert mock_adapter.commands == ["one", "two"]

    def test_cwd_and_stream_forwarded(self, mock_registry, mock_adapter):
        run_steps(mock_registry, ["npm run dev"], entity="web", cwd="web", stream=True)
        action = mock_adapter.call_log[0].action
        assert action.cwd == "web"
        assert action.stream is True
        assert action.for_entity == "web"

    def test_dry_run(self, mock_registry, mock_adapter):
        receipts = run_steps(mock_registry, ["one"], dry_run=True)
        assert receipts[0].status == "skipped"
        assert mock_adapter.call_count == 0


class TestRunBatch:
    def test_best_effort(self):
        def step(name):
            if name == "b":
                raise NotFoundError("no b")
            return []

        report = run_batch("deploy", ["a", "b", "c"], step)
        assert report.succeeded == ["a", "c"]
        assert report.failed == ["b"]
        assert report.status == "partial"
        assert report.get("b").error_kind == "NotFoundError"

    def test_unexpected_errors_propagate(self):
        def step(name):
            raise RuntimeError("bug")

        with pytest.raises(RuntimeError):
            run_batch("deploy", ["a"], step)

    def test_external_output_recorded(self):
        def step(name):
            raise ExternalFailureError("Command failed: helm", output="Error: timeout")

        report = run_batch("deploy", ["a"], step)
        assert report.status == "failed"
        assert report.get("a").output == "Error: timeout"


class TestBatchReport:
    def test_empty_is_ok(self):
        assert BatchReport().status == "ok"

    def test_to_dict(self):
        report = BatchReport(operation="deploy")
        report.record_success("a")
        data = report.to_dict()
        assert data["operation"] == "deploy"
        assert data["succeeded"] == ["a"]
        assert data["operation_id"].startswith("op-")
