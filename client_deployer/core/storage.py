"""S3 storage client.

Thin async wrapper over a boto3 S3 client bound to one region. Blocking SDK
calls run in worker threads so the event loop keeps dispatching uploads.
"""

import asyncio
from functools import partial
from typing import Any, Callable, TypeVar

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from client_deployer.config import Settings, get_settings
from client_deployer.core.exceptions import ProviderError
from client_deployer.utils.logging import get_logger

T = TypeVar("T")

# S3 caps delete requests to 1,000 keys.
DELETE_BATCH_SIZE = 1000

# Regions where CreateBucket must not carry a LocationConstraint
DEFAULT_LOCATION_REGIONS = frozenset({"us-east-1"})


def _chunks(items: list[str], size: int) -> list[list[str]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


class StorageClient:
    """Region-scoped S3 operations used by the reconciler and uploader."""

    def __init__(self, region: str, client: Any):
        self.region = region
        self._client = client
        self.logger = get_logger("storage").bind(region=region)

    async def _call(
        self, operation: str, func: Callable[..., T], bucket: str | None = None, **params: Any
    ) -> T:
        """Run a blocking SDK call in a thread, translating provider errors."""
        try:
            return await asyncio.to_thread(partial(func, **params))
        except ClientError as e:
            error = e.response.get("Error", {})
            raise ProviderError(
                operation,
                error.get("Message") or str(e),
                code=str(error.get("Code")) if error.get("Code") else None,
                bucket=bucket,
            ) from e
        except BotoCoreError as e:
            raise ProviderError(operation, str(e), bucket=bucket) from e

    async def list_buckets(self) -> list[str]:
        """List the names of all buckets reachable with the current credentials."""
        response = await self._call("list_buckets", self._client.list_buckets)
        return [bucket["Name"] for bucket in response.get("Buckets", [])]

    def _list_keys(self, bucket: str) -> list[str]:
        paginator = self._client.get_paginator("list_objects_v2")
        keys: list[str] = []
        for page in paginator.paginate(Bucket=bucket):
            keys.extend(obj["Key"] for obj in page.get("Contents", []))
        return keys

    async def list_objects(self, bucket: str) -> list[str]:
        """List every object key in a bucket."""
        return await self._call("list_objects", partial(self._list_keys, bucket), bucket=bucket)

    async def delete_objects(self, bucket: str, keys: list[str]) -> None:
        """Batch-delete objects; keys already gone are ignored."""
        for chunk in _chunks(keys, DELETE_BATCH_SIZE):
            response = await self._call(
                "delete_objects",
                self._client.delete_objects,
                bucket=bucket,
                Bucket=bucket,
                Delete={"Objects": [{"Key": key} for key in chunk], "Quiet": True},
            )
            errors = [
                err for err in response.get("Errors", []) if err.get("Code") != "NoSuchKey"
            ]
            if errors:
                first = errors[0]
                raise ProviderError(
                    "delete_objects",
                    f"{len(errors)} object(s) not deleted, first {first.get('Key')}: "
                    f"{first.get('Message')}",
                    code=first.get("Code"),
                    bucket=bucket,
                )

    async def delete_bucket(self, bucket: str) -> None:
        await self._call("delete_bucket", self._client.delete_bucket, bucket=bucket, Bucket=bucket)

    async def create_bucket(self, bucket: str) -> None:
        params: dict[str, Any] = {"Bucket": bucket}
        if self.region not in DEFAULT_LOCATION_REGIONS:
            params["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        await self._call("create_bucket", self._client.create_bucket, bucket=bucket, **params)

    async def put_bucket_website(
        self, bucket: str, index_document: str, error_document: str | None = None
    ) -> None:
        config: dict[str, Any] = {"IndexDocument": {"Suffix": index_document}}
        if error_document:
            config["ErrorDocument"] = {"Key": error_document}
        await self._call(
            "put_bucket_website",
            self._client.put_bucket_website,
            bucket=bucket,
            Bucket=bucket,
            WebsiteConfiguration=config,
        )

    async def put_bucket_policy(self, bucket: str, policy: str) -> None:
        await self._call(
            "put_bucket_policy",
            self._client.put_bucket_policy,
            bucket=bucket,
            Bucket=bucket,
            Policy=policy,
        )

    async def put_object(self, bucket: str, key: str, body: bytes, content_type: str) -> None:
        await self._call(
            "put_object",
            self._client.put_object,
            bucket=bucket,
            Bucket=bucket,
            Key=key,
            Body=body,
            ContentType=content_type,
        )


class StorageClientFactory:
    """Builds one storage client per region and reuses it."""

    def __init__(self, config: Settings | None = None):
        self.settings = config or get_settings()
        self._clients: dict[str, StorageClient] = {}

    def _session(self, region: str) -> boto3.session.Session:
        return boto3.session.Session(
            aws_access_key_id=self.settings.aws_access_key_id,
            aws_secret_access_key=self.settings.aws_secret_access_key,
            aws_session_token=self.settings.aws_session_token,
            profile_name=self.settings.aws_profile,
            region_name=region,
        )

    def for_region(self, region: str) -> StorageClient:
        """Get the client for a region, constructing it on first use."""
        if region not in self._clients:
            client = self._session(region).client(
                "s3",
                endpoint_url=self.settings.aws_endpoint_url,
                config=Config(signature_version="s3v4"),
            )
            self._clients[region] = StorageClient(region, client)
        return self._clients[region]
