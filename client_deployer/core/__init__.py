"""Core functionality for client_deployer."""

from client_deployer.core.exceptions import (
    ClientDeployerError,
    ConfigurationError,
    DeploymentCancelledError,
    ProviderError,
    UploadFailedError,
)
from client_deployer.core.orchestrator import DeploymentOrchestrator
from client_deployer.core.reconciler import BucketReconciler, public_read_policy
from client_deployer.core.session import SessionManager, get_session_manager
from client_deployer.core.storage import StorageClient, StorageClientFactory
from client_deployer.core.uploader import DirectoryUploader, guess_content_type

__all__ = [
    "ClientDeployerError",
    "ConfigurationError",
    "DeploymentCancelledError",
    "ProviderError",
    "UploadFailedError",
    "DeploymentOrchestrator",
    "BucketReconciler",
    "public_read_policy",
    "SessionManager",
    "get_session_manager",
    "StorageClient",
    "StorageClientFactory",
    "DirectoryUploader",
    "guess_content_type",
]
