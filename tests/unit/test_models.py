"""Unit tests for data models."""

from pathlib import Path

import pytest

from client_deployer.models.deployment import (
    DeploymentPlan,
    DeploymentReport,
    DeploymentTarget,
    ReconcileMode,
    UploadSummary,
)
from client_deployer.models.invocation import InvocationContext
from client_deployer.models.run import DeploymentRun, DeploymentRunResponse, RunStatus


def make_target(region: str, site: str = "client") -> DeploymentTarget:
    return DeploymentTarget(
        bucket_name=f"svc-{site}-dev-{region}",
        region=region,
        stage="dev",
        source_directory=Path("/tmp/site"),
        site=site,
    )


class TestDeploymentModels:
    """Tests for deployment models."""

    def test_target_requires_bucket_name(self):
        with pytest.raises(ValueError):
            DeploymentTarget(
                bucket_name="",
                region="us-east-1",
                stage="dev",
                source_directory=Path("/tmp"),
            )

    def test_reconcile_mode_values(self):
        assert ReconcileMode("clean_slate") is ReconcileMode.CLEAN_SLATE
        assert ReconcileMode("update_in_place") is ReconcileMode.UPDATE_IN_PLACE

    def test_upload_summary_succeeded(self):
        assert UploadSummary(uploaded=["index.html"]).succeeded
        summary = UploadSummary.model_validate(
            {"failed": [{"object_key": "a.js", "local_path": "/tmp/a.js", "error": "boom"}]}
        )
        assert not summary.succeeded

    def test_plan_groups_targets_by_region_in_order(self):
        targets = [
            make_target("us-east-1", "web"),
            make_target("eu-west-1", "web"),
            make_target("us-east-1", "admin"),
        ]

        plan = DeploymentPlan.from_targets(targets)

        assert list(plan.regions) == ["us-east-1", "eu-west-1"]
        assert [t.site for t in plan.regions["us-east-1"]] == ["web", "admin"]
        assert len(plan.targets) == 3


class TestDeploymentReport:
    """Tests for the aggregated report."""

    def test_empty_report_is_success(self):
        report = DeploymentReport()
        assert report.success
        assert report.deployed == {}
        assert report.failed == {}

    def test_records_success_and_failure_per_region(self):
        report = DeploymentReport()
        report.record_success("us-east-1", "web")
        report.record_failure("eu-west-1", "web", "AccessDenied")
        report.record_success("eu-west-1", "admin")

        assert not report.success
        assert report.deployed == {"us-east-1": ["web"], "eu-west-1": ["admin"]}
        assert list(report.failed) == ["eu-west-1"]
        assert report.failed["eu-west-1"][0].site == "web"
        assert report.failed["eu-west-1"][0].error == "AccessDenied"

    def test_serialized_report_includes_views(self):
        report = DeploymentReport()
        report.record_success("us-east-1", "client")

        data = report.model_dump(mode="json")

        assert data["deployed"] == {"us-east-1": ["client"]}
        assert data["failed"] == {}
        assert data["results"]["us-east-1"]["succeeded"] == ["client"]

    def test_report_round_trips_through_dump(self):
        report = DeploymentReport()
        report.record_failure("us-east-1", "client", "boom")

        restored = DeploymentReport.model_validate(report.model_dump(mode="json"))

        assert restored.failed["us-east-1"][0].error == "boom"


class TestDeploymentRun:
    """Tests for tracked runs."""

    @pytest.fixture
    def context(self, tmp_path: Path) -> InvocationContext:
        return InvocationContext(
            service_name="svc", stage="prod", regions=["us-east-1"], service_path=tmp_path
        )

    def test_new_run_is_pending(self, context: InvocationContext):
        run = DeploymentRun(context=context)

        assert run.status == RunStatus.PENDING
        assert not run.is_terminal
        assert run.completed_at is None

    def test_finish_sets_terminal_state(self, context: InvocationContext):
        run = DeploymentRun(context=context)
        report = DeploymentReport()
        report.record_success("us-east-1", "client")

        run.finish(RunStatus.COMPLETED, report=report)

        assert run.is_terminal
        assert run.completed_at is not None
        assert run.report is report
        assert run.error is None

    def test_response_from_run(self, context: InvocationContext):
        run = DeploymentRun(context=context)
        run.finish(RunStatus.FAILED, error="Please specify a stage.")

        response = DeploymentRunResponse.from_run(run)

        assert response.run_id == run.id
        assert response.status == RunStatus.FAILED
        assert response.service_name == "svc"
        assert response.stage == "prod"
        assert response.regions == ["us-east-1"]
        assert response.error == "Please specify a stage."
