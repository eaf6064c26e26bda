"""Bucket Reconciler.

Drives a destination bucket to the public static-website configuration:
exists in the target region, serves `index.html`, and grants public
`GetObject` on every object.
"""

import asyncio
import json
from typing import Any

from client_deployer.core.exceptions import DeploymentCancelledError, ProviderError
from client_deployer.core.storage import StorageClient
from client_deployer.models.deployment import BucketState, DeploymentTarget, ReconcileMode
from client_deployer.utils.logging import get_logger

POLICY_VERSION = "2008-10-17"
POLICY_ID = "Policy1392681112290"
POLICY_STATEMENT_ID = "Stmt1392681101677"


def public_read_policy(bucket_name: str, partition: str = "aws") -> dict[str, Any]:
    """Build the public-read bucket policy document."""
    return {
        "Version": POLICY_VERSION,
        "Id": POLICY_ID,
        "Statement": [
            {
                "Sid": POLICY_STATEMENT_ID,
                "Effect": "Allow",
                "Principal": {"AWS": "*"},
                "Action": "s3:GetObject",
                "Resource": f"arn:{partition}:s3:::{bucket_name}/*",
            }
        ],
    }


class BucketReconciler:
    """Ensures a bucket exists and is configured for public website hosting.

    Steps run strictly in order; each one depends on the bucket existence or
    emptiness established by the previous one.
    """

    def __init__(
        self,
        storage: StorageClient,
        mode: ReconcileMode = ReconcileMode.CLEAN_SLATE,
        index_document: str = "index.html",
        error_document: str | None = "error.html",
        partition: str = "aws",
        cancel_event: asyncio.Event | None = None,
    ):
        self.storage = storage
        self.mode = mode
        self.index_document = index_document
        self.error_document = error_document
        self.partition = partition
        self.cancel_event = cancel_event
        self.logger = get_logger("reconciler")

    def _check_cancelled(self, target: DeploymentTarget) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise DeploymentCancelledError(
                f"Reconciliation of {target.bucket_name} cancelled",
                {"bucket": target.bucket_name, "region": target.region},
            )

    async def discover_state(self, target: DeploymentTarget) -> BucketState:
        """Check whether the bucket already exists."""
        names = await self.storage.list_buckets()
        exists = target.bucket_name in names
        if exists:
            self.logger.info("reconciler.bucket_exists", bucket=target.bucket_name)
        return BucketState(exists=exists)

    async def teardown(self, bucket_name: str) -> None:
        """Empty and delete a bucket. Absent buckets or objects are not an error."""
        try:
            self.logger.info("reconciler.listing_objects", bucket=bucket_name)
            keys = await self.storage.list_objects(bucket_name)

            if keys:
                self.logger.info(
                    "reconciler.deleting_objects", bucket=bucket_name, count=len(keys)
                )
                await self.storage.delete_objects(bucket_name, keys)

            self.logger.info("reconciler.deleting_bucket", bucket=bucket_name)
            await self.storage.delete_bucket(bucket_name)
        except ProviderError as e:
            if not e.is_not_found:
                raise
            self.logger.info(
                "reconciler.teardown_not_found", bucket=bucket_name, operation=e.operation
            )

    async def reconcile(self, target: DeploymentTarget) -> BucketState:
        """Bring the target bucket to the website configuration.

        Returns:
            The bucket state after reconciliation

        Raises:
            ProviderError: If any provider call other than a teardown
                not-found fails
            DeploymentCancelledError: If the cancel signal is set between steps
        """
        bucket = target.bucket_name

        self._check_cancelled(target)
        state = await self.discover_state(target)

        if state.exists and self.mode == ReconcileMode.CLEAN_SLATE:
            self._check_cancelled(target)
            await self.teardown(bucket)
            state.exists = False

        if not state.exists:
            self._check_cancelled(target)
            self.logger.info("reconciler.creating_bucket", bucket=bucket, region=target.region)
            await self.storage.create_bucket(bucket)
            state.exists = True

        self._check_cancelled(target)
        self.logger.info("reconciler.configuring_website", bucket=bucket)
        await self.storage.put_bucket_website(bucket, self.index_document, self.error_document)
        state.is_configured_for_website = True

        self._check_cancelled(target)
        self.logger.info("reconciler.configuring_policy", bucket=bucket)
        policy = public_read_policy(bucket, self.partition)
        await self.storage.put_bucket_policy(bucket, json.dumps(policy))
        state.has_public_read_policy = True

        return state
