"""Client actions.

`client deploy` uploads the built client of a service to one website bucket
per (site, region). Two project layouts are supported:

- single client: `<service>/client/dist`
- multiple clients: `<service>/clients/<name>` for each name listed in
  `custom.client.clients`
"""

import asyncio
from pathlib import Path
from uuid import UUID

from pydantic import BaseModel, Field

from client_deployer.actions.base import BaseAction
from client_deployer.config import settings
from client_deployer.core.events import EventBus
from client_deployer.core.exceptions import ConfigurationError
from client_deployer.core.orchestrator import DeploymentOrchestrator, default_options
from client_deployer.core.storage import StorageClientFactory
from client_deployer.models.deployment import (
    DeploymentPlan,
    DeploymentReport,
    DeploymentTarget,
    DeployOptions,
)
from client_deployer.models.invocation import ClientSettings, InvocationContext

SINGLE_CLIENT_SITE = "client"


def derive_bucket_name(service_name: str, site: str, stage: str, region: str) -> str:
    """Bucket name derived from service, site, stage and region."""
    return f"{service_name}-{site}-{stage}-{region}".lower()


class ClientUsageOutput(BaseModel):
    usage: str
    commands: list[str] = Field(default_factory=list)


class ClientDeployOutput(BaseModel):
    """Output from the client deploy action."""

    report: DeploymentReport
    success: bool = True


class ClientUsageAction(BaseAction[InvocationContext, ClientUsageOutput]):
    """Bare `client` command: prints usage."""

    @property
    def command(self) -> str:
        return "client"

    @property
    def description(self) -> str:
        return "Generate and deploy clients"

    @property
    def lifecycle_events(self) -> list[str]:
        return ["client", "deploy"]

    async def execute(self, input_data: InvocationContext) -> ClientUsageOutput:
        self.logger.info("client.usage", usage=self.usage)
        return ClientUsageOutput(usage=self.usage, commands=["deploy"])


class ClientDeployAction(BaseAction[InvocationContext, ClientDeployOutput]):
    """Deploys serverless client code to S3 website buckets.

    This action:
    1. Validates the invocation context and project layout
    2. Derives one deployment target per (site, region)
    3. Runs the orchestrator and returns the per-region report
    """

    def __init__(
        self,
        storage_factory: StorageClientFactory | None = None,
        events: EventBus | None = None,
    ):
        super().__init__()
        self.storage_factory = storage_factory
        self.events = events

    @property
    def command(self) -> str:
        return "client deploy"

    @property
    def description(self) -> str:
        return "Deploy serverless client code"

    def _client_settings(self, context: InvocationContext) -> ClientSettings:
        return context.custom.client or ClientSettings()

    def _source_directories(
        self, context: InvocationContext, client: ClientSettings
    ) -> dict[str, Path]:
        """Map site identifier to its build directory."""
        root = Path(context.service_path)

        if client.clients:
            sources = {}
            for name in client.clients:
                path = root / "clients" / name
                if not path.is_dir():
                    raise ConfigurationError(
                        f'Could not find "clients/{name}" folder in your project root.',
                        {"path": str(path)},
                    )
                sources[name] = path
            return sources

        path = root / "client" / "dist"
        if not path.is_dir():
            raise ConfigurationError(
                'Could not find "client/dist" folder in your project root.',
                {"path": str(path)},
            )
        return {SINGLE_CLIENT_SITE: path}

    def _options(self, client: ClientSettings) -> DeployOptions:
        options = default_options()
        updates = {}
        if client.reconcile_mode is not None:
            updates["reconcile_mode"] = client.reconcile_mode
        if client.index_document:
            updates["index_document"] = client.index_document
        if client.error_document:
            updates["error_document"] = client.error_document
        if not client.use_error_document:
            updates["error_document"] = None
        return options.model_copy(update=updates)

    def validate_and_prepare(
        self, context: InvocationContext
    ) -> tuple[list[DeploymentTarget], DeployOptions]:
        """Resolve deployment targets, failing fast on configuration errors.

        Raises:
            ConfigurationError: If the stage, regions, source directories or
                bucket name are missing or inconsistent
        """
        if not context.stage.strip():
            raise ConfigurationError("Please specify a stage.")

        # One target per bucket; a repeated region would race itself
        regions = list(dict.fromkeys(context.regions or settings.default_regions))
        if not regions:
            raise ConfigurationError("Please specify at least one region.")

        client = self._client_settings(context)
        sources = self._source_directories(context, client)

        if client.bucket_name is not None:
            if not client.bucket_name.strip():
                raise ConfigurationError(
                    "Please specify a bucket name for the client in serverless.yml."
                )
            if len(sources) > 1 or len(regions) > 1:
                raise ConfigurationError(
                    "An explicit bucket name only applies to a single client in a single region.",
                    {"sites": list(sources), "regions": regions},
                )

        targets = []
        for region in regions:
            for site, source in sources.items():
                bucket_name = client.bucket_name or derive_bucket_name(
                    context.service_name, site, context.stage, region
                )
                targets.append(
                    DeploymentTarget(
                        bucket_name=bucket_name,
                        region=region,
                        stage=context.stage,
                        source_directory=source,
                        site=site,
                    )
                )

        return targets, self._options(client)

    async def execute(
        self,
        input_data: InvocationContext,
        run_id: UUID | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> ClientDeployOutput:
        """Deploy every client to every requested region."""
        targets, options = await asyncio.to_thread(self.validate_and_prepare, input_data)
        plan = DeploymentPlan.from_targets(targets)

        self.logger.info(
            "client_deploy.started",
            service=input_data.service_name,
            stage=input_data.stage,
            regions=list(plan.regions),
            sites=sorted({t.site for t in targets}),
        )

        orchestrator = DeploymentOrchestrator(
            storage_factory=self.storage_factory,
            events=self.events,
            options=options,
        )
        report = await orchestrator.run(plan, run_id=run_id, cancel_event=cancel_event)

        self.logger.info(
            "client_deploy.completed",
            success=report.success,
            deployed=report.deployed,
        )
        return ClientDeployOutput(report=report, success=report.success)
