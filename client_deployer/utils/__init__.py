"""Utility functions for client_deployer."""

from client_deployer.utils.logging import (
    bind_run_context,
    clear_run_context,
    configure_logging,
    get_logger,
)

__all__ = [
    "bind_run_context",
    "clear_run_context",
    "configure_logging",
    "get_logger",
]
