"""Deployment Orchestrator.

Runs bucket reconciliation and directory upload for every (site, region)
pair of a plan and aggregates the outcomes into a per-region report.
"""

import asyncio
from uuid import UUID

from client_deployer.config import settings
from client_deployer.core.events import EventBus, get_event_bus
from client_deployer.core.exceptions import (
    ClientDeployerError,
    DeploymentCancelledError,
    UploadFailedError,
)
from client_deployer.core.reconciler import BucketReconciler
from client_deployer.core.storage import StorageClient, StorageClientFactory
from client_deployer.core.uploader import DirectoryUploader
from client_deployer.models.deployment import (
    DeploymentPlan,
    DeploymentReport,
    DeploymentTarget,
    DeployOptions,
    ReconcileMode,
    UploadSummary,
)
from client_deployer.utils.logging import get_logger


def default_options() -> DeployOptions:
    """Deploy options taken from application settings."""
    return DeployOptions(
        reconcile_mode=ReconcileMode(settings.reconcile_mode),
        index_document=settings.index_document,
        error_document=settings.error_document,
        partition=settings.aws_partition,
        upload_concurrency=settings.upload_concurrency,
        site_concurrency=settings.site_concurrency,
    )


class DeploymentOrchestrator:
    """Fans a deployment plan out across regions.

    Regions are processed one at a time, each with its own storage client;
    sites within a region run with bounded concurrency. A failing pair is
    recorded in the report and never aborts the others.
    """

    def __init__(
        self,
        storage_factory: StorageClientFactory | None = None,
        events: EventBus | None = None,
        options: DeployOptions | None = None,
    ):
        self.storage_factory = storage_factory or StorageClientFactory()
        self.events = events or get_event_bus()
        self.options = options or default_options()
        self.logger = get_logger("orchestrator")

    async def deploy_target(
        self,
        target: DeploymentTarget,
        storage: StorageClient | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> UploadSummary:
        """Reconcile the bucket and upload the tree for a single target.

        Errors propagate to the caller.

        Raises:
            ProviderError: If reconciliation fails
            UploadFailedError: If any file could not be uploaded
            DeploymentCancelledError: If cancelled part way
        """
        storage = storage or self.storage_factory.for_region(target.region)

        reconciler = BucketReconciler(
            storage,
            mode=self.options.reconcile_mode,
            index_document=self.options.index_document,
            error_document=self.options.error_document,
            partition=self.options.partition,
            cancel_event=cancel_event,
        )
        await reconciler.reconcile(target)

        uploader = DirectoryUploader(
            storage,
            concurrency=self.options.upload_concurrency,
            cancel_event=cancel_event,
        )
        summary = await uploader.upload(target.source_directory, target.bucket_name)

        if summary.failed:
            raise UploadFailedError(
                target.bucket_name,
                {failure.object_key: failure.error for failure in summary.failed},
                uploaded=len(summary.uploaded),
            )
        return summary

    async def run(
        self,
        plan: DeploymentPlan,
        run_id: UUID | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> DeploymentReport:
        """Deploy every target in the plan.

        Returns:
            The per-region report

        Raises:
            DeploymentCancelledError: If cancelled before every target ran to
                completion; in-flight work settles first and the partial
                report is attached under `report`
        """
        report = DeploymentReport()
        # Targets that ran to completion, successfully or not
        settled: list[DeploymentTarget] = []

        def cancelled() -> bool:
            return cancel_event is not None and cancel_event.is_set()

        for region, targets in plan.regions.items():
            if cancelled():
                break

            self.logger.info(
                "orchestrator.region.started",
                region=region,
                sites=[t.site for t in targets],
            )
            report.result_for(region)
            if run_id:
                await self.events.publish_region_started(run_id, region, [t.site for t in targets])

            storage = self.storage_factory.for_region(region)
            semaphore = asyncio.Semaphore(self.options.site_concurrency)

            async with asyncio.TaskGroup() as group:
                for target in targets:
                    group.create_task(
                        self._deploy_and_record(
                            target, storage, report, semaphore, run_id, cancel_event, settled
                        )
                    )

        if cancelled() and len(settled) < len(plan.targets):
            self.logger.warning("orchestrator.cancelled")
            if run_id:
                await self.events.publish_cancelled(run_id)
            raise DeploymentCancelledError(
                details={"report": report.model_dump(mode="json")},
            )

        self.logger.info(
            "orchestrator.completed",
            deployed=report.deployed,
            failed={r: [f.site for f in fs] for r, fs in report.failed.items()},
        )
        if run_id:
            await self.events.publish_deployment_complete(
                run_id,
                report.deployed,
                {r: [f.site for f in fs] for r, fs in report.failed.items()},
            )
        return report

    async def _deploy_and_record(
        self,
        target: DeploymentTarget,
        storage: StorageClient,
        report: DeploymentReport,
        semaphore: asyncio.Semaphore,
        run_id: UUID | None,
        cancel_event: asyncio.Event | None,
        settled: list[DeploymentTarget],
    ) -> None:
        async with semaphore:
            # Not started, so the bucket is untouched and nothing is reported
            if cancel_event is not None and cancel_event.is_set():
                return

            self.logger.info(
                "orchestrator.site.started",
                site=target.site,
                region=target.region,
                stage=target.stage,
                bucket=target.bucket_name,
            )
            try:
                summary = await self.deploy_target(target, storage, cancel_event)
            except DeploymentCancelledError as e:
                # The bucket may be torn down or partly uploaded by now
                await self._record_failure(target, report, run_id, e.message)
                return
            except ClientDeployerError as e:
                settled.append(target)
                await self._record_failure(target, report, run_id, e.message)
                return
            except Exception as e:
                settled.append(target)
                self.logger.exception("orchestrator.site.exception", site=target.site)
                await self._record_failure(target, report, run_id, str(e))
                return

            settled.append(target)
            report.record_success(target.region, target.site)
            self.logger.info(
                "orchestrator.site.deployed",
                site=target.site,
                region=target.region,
                bucket=target.bucket_name,
                uploaded=len(summary.uploaded),
            )
            if run_id:
                await self.events.publish_site_deployed(
                    run_id, target.region, target.site, target.bucket_name, len(summary.uploaded)
                )

    async def _record_failure(
        self,
        target: DeploymentTarget,
        report: DeploymentReport,
        run_id: UUID | None,
        error: str,
    ) -> None:
        report.record_failure(target.region, target.site, error)
        self.logger.error(
            "orchestrator.site.failed",
            site=target.site,
            region=target.region,
            bucket=target.bucket_name,
            error=error,
        )
        if run_id:
            await self.events.publish_site_failed(run_id, target.region, target.site, error)
