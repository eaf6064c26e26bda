"""In-memory fakes shared by the test suite."""

import asyncio
from pathlib import Path
from typing import Callable

from client_deployer.core.exceptions import ProviderError


class FakeStorage:
    """In-memory stand-in for StorageClient with failure injection."""

    def __init__(self, region: str = "us-east-1"):
        self.region = region
        self.buckets: dict[str, dict[str, tuple[bytes, str]]] = {}
        self.websites: dict[str, dict[str, str | None]] = {}
        self.policies: dict[str, str] = {}
        self.calls: list[tuple[str, str | None]] = []
        self.failures: dict[str, ProviderError] = {}
        self.failing_keys: set[str] = set()
        # Names list_buckets reports although the bucket is already gone
        self.listed_only: set[str] = set()
        self.put_delay = 0.0
        # When set, puts block until the event fires
        self.put_gate: asyncio.Event | None = None
        self.on_put: Callable[[str], None] | None = None
        self.in_flight = 0
        self.max_in_flight = 0

    def fail(self, operation: str, code: str = "InternalError", message: str = "boom") -> None:
        """Make every call to `operation` raise a provider error."""
        self.failures[operation] = ProviderError(operation, message, code=code)

    def add_bucket(self, name: str, objects: dict[str, bytes] | None = None) -> None:
        self.buckets[name] = {
            key: (body, "application/octet-stream") for key, body in (objects or {}).items()
        }

    async def _record(self, operation: str, bucket: str | None = None) -> None:
        self.calls.append((operation, bucket))
        await asyncio.sleep(0)
        if operation in self.failures:
            raise self.failures[operation]

    def _require(self, operation: str, bucket: str) -> dict[str, tuple[bytes, str]]:
        if bucket not in self.buckets:
            raise ProviderError(
                operation, "The specified bucket does not exist", code="NoSuchBucket", bucket=bucket
            )
        return self.buckets[bucket]

    def operations(self) -> list[str]:
        return [operation for operation, _ in self.calls]

    async def list_buckets(self) -> list[str]:
        await self._record("list_buckets")
        return list(self.buckets) + sorted(self.listed_only - set(self.buckets))

    async def list_objects(self, bucket: str) -> list[str]:
        await self._record("list_objects", bucket)
        return list(self._require("list_objects", bucket))

    async def delete_objects(self, bucket: str, keys: list[str]) -> None:
        await self._record("delete_objects", bucket)
        objects = self._require("delete_objects", bucket)
        for key in keys:
            objects.pop(key, None)

    async def delete_bucket(self, bucket: str) -> None:
        await self._record("delete_bucket", bucket)
        if self._require("delete_bucket", bucket):
            raise ProviderError("delete_bucket", "The bucket is not empty", code="BucketNotEmpty")
        del self.buckets[bucket]
        self.websites.pop(bucket, None)
        self.policies.pop(bucket, None)

    async def create_bucket(self, bucket: str) -> None:
        await self._record("create_bucket", bucket)
        if bucket in self.buckets:
            raise ProviderError(
                "create_bucket", "Bucket already exists", code="BucketAlreadyOwnedByYou"
            )
        self.buckets[bucket] = {}

    async def put_bucket_website(
        self, bucket: str, index_document: str, error_document: str | None = None
    ) -> None:
        await self._record("put_bucket_website", bucket)
        self._require("put_bucket_website", bucket)
        self.websites[bucket] = {"index": index_document, "error": error_document}

    async def put_bucket_policy(self, bucket: str, policy: str) -> None:
        await self._record("put_bucket_policy", bucket)
        self._require("put_bucket_policy", bucket)
        self.policies[bucket] = policy

    async def put_object(self, bucket: str, key: str, body: bytes, content_type: str) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await self._record("put_object", bucket)
            if self.put_gate is not None:
                await self.put_gate.wait()
            if self.put_delay:
                await asyncio.sleep(self.put_delay)
            if key in self.failing_keys:
                raise ProviderError("put_object", "Access Denied", code="AccessDenied", bucket=bucket)
            self._require("put_object", bucket)[key] = (body, content_type)
            if self.on_put:
                self.on_put(key)
        finally:
            self.in_flight -= 1


class FakeStorageFactory:
    """Hands out one FakeStorage per region."""

    def __init__(self):
        self.clients: dict[str, FakeStorage] = {}
        self.constructed: list[str] = []

    def for_region(self, region: str) -> FakeStorage:
        if region not in self.clients:
            self.clients[region] = FakeStorage(region)
            self.constructed.append(region)
        return self.clients[region]


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Create files (relative path -> content) under root."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


SITE_FILES = {
    "index.html": "<html><body>hello</body></html>",
    "error.html": "<html><body>oops</body></html>",
    "assets/app.js": "console.log('hi');",
}
