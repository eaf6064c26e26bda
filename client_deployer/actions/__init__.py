"""Deployable actions exposed to the host."""

from client_deployer.actions.base import BaseAction
from client_deployer.actions.client_deploy import (
    ClientDeployAction,
    ClientDeployOutput,
    ClientUsageAction,
    ClientUsageOutput,
)
from client_deployer.actions.registry import ActionRegistry, get_action_registry, register_actions

__all__ = [
    "BaseAction",
    "ActionRegistry",
    "get_action_registry",
    "register_actions",
    "ClientDeployAction",
    "ClientDeployOutput",
    "ClientUsageAction",
    "ClientUsageOutput",
]
