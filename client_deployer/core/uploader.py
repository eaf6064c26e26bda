"""Directory Uploader.

Walks a local build tree and uploads every regular file to a bucket, keyed by
its path relative to the tree root.
"""

import asyncio
import mimetypes
import os
from pathlib import Path

from client_deployer.core.exceptions import (
    ConfigurationError,
    DeploymentCancelledError,
    ProviderError,
)
from client_deployer.core.storage import StorageClient
from client_deployer.models.deployment import FileUploadFailure, FileUploadUnit, UploadSummary
from client_deployer.utils.logging import get_logger

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Types the platform mimetypes table gets wrong or lacks on some systems
CONTENT_TYPE_OVERRIDES = {
    ".js": "application/javascript",
    ".mjs": "application/javascript",
    ".json": "application/json",
    ".map": "application/json",
    ".svg": "image/svg+xml",
    ".wasm": "application/wasm",
    ".webmanifest": "application/manifest+json",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
}


def guess_content_type(path: str | Path) -> str:
    """Infer a file's content type from its extension."""
    suffix = Path(path).suffix.lower()
    if suffix in CONTENT_TYPE_OVERRIDES:
        return CONTENT_TYPE_OVERRIDES[suffix]
    guessed, _ = mimetypes.guess_type(str(path))
    return guessed or DEFAULT_CONTENT_TYPE


def object_key_for(root: Path, path: Path) -> str:
    """Object key for a file: its path relative to root, `/`-separated."""
    return path.relative_to(root).as_posix()


def build_upload_unit(root: Path, path: Path) -> FileUploadUnit:
    return FileUploadUnit(
        local_path=path,
        object_key=object_key_for(root, path),
        content_type=guess_content_type(path),
    )


def _scan_directory(directory: Path) -> list[tuple[Path, bool, bool]]:
    """List (path, is_dir, is_file) for each entry. Symlinked directories are not followed."""
    with os.scandir(directory) as entries:
        return [
            (Path(entry.path), entry.is_dir(follow_symlinks=False), entry.is_file())
            for entry in entries
        ]


class DirectoryUploader:
    """Uploads a directory tree with bounded concurrency.

    Every directory waits on all of its children, files and subdirectories,
    before it resolves, so `upload()` returns only once every upload has
    settled. Per-file failures are collected, never raised.
    """

    def __init__(
        self,
        storage: StorageClient,
        concurrency: int = 16,
        cancel_event: asyncio.Event | None = None,
    ):
        self.storage = storage
        self.concurrency = concurrency
        self.cancel_event = cancel_event
        self.logger = get_logger("uploader")

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    async def upload(self, root: Path, bucket: str) -> UploadSummary:
        """Upload every regular file under root to bucket.

        Raises:
            ConfigurationError: If root is not a directory
            DeploymentCancelledError: If cancelled before every file was
                attempted; raised after in-flight uploads have settled
        """
        root = Path(root)
        if not await asyncio.to_thread(root.is_dir):
            raise ConfigurationError(
                f"Source directory not found: {root}", {"path": str(root)}
            )

        summary = UploadSummary()
        semaphore = asyncio.Semaphore(self.concurrency)

        self.logger.info("uploader.started", bucket=bucket, root=str(root))
        await self._upload_directory(root, root, bucket, summary, semaphore)

        if summary.skipped:
            raise DeploymentCancelledError(
                f"Upload to {bucket} cancelled",
                {
                    "bucket": bucket,
                    "uploaded": len(summary.uploaded),
                    "failed": len(summary.failed),
                    "skipped": len(summary.skipped),
                },
            )

        self.logger.info(
            "uploader.completed",
            bucket=bucket,
            uploaded=len(summary.uploaded),
            failed=len(summary.failed),
        )
        return summary

    async def _upload_directory(
        self,
        root: Path,
        directory: Path,
        bucket: str,
        summary: UploadSummary,
        semaphore: asyncio.Semaphore,
    ) -> None:
        if self.cancelled:
            summary.skipped.append(object_key_for(root, directory) + "/")
            return

        try:
            entries = await asyncio.to_thread(_scan_directory, directory)
        except OSError as e:
            self.logger.warning("uploader.list_failed", path=str(directory), error=str(e))
            summary.failed.append(
                FileUploadFailure(
                    object_key=object_key_for(root, directory) + "/",
                    local_path=directory,
                    error=str(e),
                )
            )
            return

        async with asyncio.TaskGroup() as group:
            for path, is_dir, is_file in entries:
                if is_dir:
                    group.create_task(
                        self._upload_directory(root, path, bucket, summary, semaphore)
                    )
                elif is_file:
                    group.create_task(
                        self._upload_file(build_upload_unit(root, path), bucket, summary, semaphore)
                    )

    async def _upload_file(
        self,
        unit: FileUploadUnit,
        bucket: str,
        summary: UploadSummary,
        semaphore: asyncio.Semaphore,
    ) -> None:
        async with semaphore:
            if self.cancelled:
                summary.skipped.append(unit.object_key)
                return

            self.logger.info("uploader.uploading_file", key=unit.object_key, bucket=bucket)
            try:
                body = await asyncio.to_thread(unit.local_path.read_bytes)
                await self.storage.put_object(bucket, unit.object_key, body, unit.content_type)
            except (OSError, ProviderError) as e:
                self.logger.warning(
                    "uploader.file_failed", key=unit.object_key, bucket=bucket, error=str(e)
                )
                summary.failed.append(
                    FileUploadFailure(
                        object_key=unit.object_key,
                        local_path=unit.local_path,
                        error=str(e),
                    )
                )
                return

            summary.uploaded.append(unit.object_key)
