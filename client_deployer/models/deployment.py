"""Deployment data models."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, computed_field


class ReconcileMode(str, Enum):
    """How an existing bucket is brought to the target configuration."""

    CLEAN_SLATE = "clean_slate"
    UPDATE_IN_PLACE = "update_in_place"


class DeployOptions(BaseModel):
    """Knobs shared by every target in one invocation."""

    reconcile_mode: ReconcileMode = ReconcileMode.CLEAN_SLATE
    index_document: str = "index.html"
    error_document: str | None = "error.html"
    partition: str = "aws"
    upload_concurrency: int = Field(default=16, ge=1)
    site_concurrency: int = Field(default=2, ge=1)


class DeploymentTarget(BaseModel):
    """One (site, region) deployment unit."""

    bucket_name: str = Field(..., min_length=1)
    region: str = Field(..., min_length=1)
    stage: str = Field(..., min_length=1)
    source_directory: Path
    site: str = "client"


class BucketState(BaseModel):
    """Bucket state discovered at the start of a reconciliation."""

    exists: bool = False
    is_configured_for_website: bool = False
    has_public_read_policy: bool = False


class FileUploadUnit(BaseModel):
    """A single file to upload."""

    local_path: Path
    object_key: str
    content_type: str


class FileUploadFailure(BaseModel):
    """A file that could not be read or uploaded."""

    object_key: str
    local_path: Path
    error: str


class UploadSummary(BaseModel):
    """Outcome of uploading one directory tree."""

    uploaded: list[str] = Field(default_factory=list)
    failed: list[FileUploadFailure] = Field(default_factory=list)
    # Keys, or directory prefixes ending in `/`, never attempted because of a cancel
    skipped: list[str] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.failed


class SiteFailure(BaseModel):
    """A site that failed to deploy in a region."""

    site: str
    error: str


class DeploymentResult(BaseModel):
    """Per-region deployment outcome."""

    region: str
    succeeded: list[str] = Field(default_factory=list)
    failed: list[SiteFailure] = Field(default_factory=list)


class DeploymentReport(BaseModel):
    """Aggregated outcome of one invocation, keyed by region."""

    results: dict[str, DeploymentResult] = Field(default_factory=dict)

    def result_for(self, region: str) -> DeploymentResult:
        """Get or create the result entry for a region."""
        if region not in self.results:
            self.results[region] = DeploymentResult(region=region)
        return self.results[region]

    def record_success(self, region: str, site: str) -> None:
        self.result_for(region).succeeded.append(site)

    def record_failure(self, region: str, site: str, error: str) -> None:
        self.result_for(region).failed.append(SiteFailure(site=site, error=error))

    @computed_field  # type: ignore[misc]
    @property
    def deployed(self) -> dict[str, list[str]]:
        return {
            region: list(result.succeeded)
            for region, result in self.results.items()
            if result.succeeded
        }

    @computed_field  # type: ignore[misc]
    @property
    def failed(self) -> dict[str, list[SiteFailure]]:
        return {
            region: list(result.failed)
            for region, result in self.results.items()
            if result.failed
        }

    @property
    def success(self) -> bool:
        return not any(result.failed for result in self.results.values())


class DeploymentPlan(BaseModel):
    """Targets to deploy, grouped by region in processing order."""

    regions: dict[str, list[DeploymentTarget]] = Field(default_factory=dict)

    @classmethod
    def from_targets(cls, targets: list[DeploymentTarget]) -> "DeploymentPlan":
        regions: dict[str, list[DeploymentTarget]] = {}
        for target in targets:
            regions.setdefault(target.region, []).append(target)
        return cls(regions=regions)

    @property
    def targets(self) -> list[DeploymentTarget]:
        return [target for targets in self.regions.values() for target in targets]
