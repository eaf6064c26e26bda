"""Custom exceptions for client_deployer."""

from typing import Any

NOT_FOUND_CODES = frozenset({"NoSuchBucket", "NoSuchKey", "NotFound", "404"})


class ClientDeployerError(Exception):
    """Base exception for client_deployer."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(ClientDeployerError):
    """Invalid or missing configuration, raised before any provider call."""

    pass


class ProviderError(ClientDeployerError):
    """A storage provider call failed."""

    def __init__(
        self,
        operation: str,
        message: str,
        code: str | None = None,
        bucket: str | None = None,
    ):
        details: dict[str, Any] = {"operation": operation}
        if code:
            details["code"] = code
        if bucket:
            details["bucket"] = bucket
        super().__init__(f"{operation} failed: {message}", details)
        self.operation = operation
        self.code = code
        self.bucket = bucket

    @property
    def is_not_found(self) -> bool:
        """Whether the provider reported the resource as absent."""
        return self.code in NOT_FOUND_CODES


class UploadFailedError(ClientDeployerError):
    """One or more files in a tree could not be uploaded."""

    def __init__(self, bucket: str, failures: dict[str, str], uploaded: int = 0):
        super().__init__(
            f"{len(failures)} file(s) failed to upload to {bucket}: "
            + ", ".join(sorted(failures)),
            {"bucket": bucket, "failures": failures, "uploaded": uploaded},
        )
        self.bucket = bucket
        self.failures = failures

    @property
    def failed_keys(self) -> list[str]:
        return sorted(self.failures)


class DeploymentCancelledError(ClientDeployerError):
    """The deployment was cancelled before it completed."""

    def __init__(self, message: str = "Deployment cancelled", details: dict[str, Any] | None = None):
        super().__init__(message, details)
