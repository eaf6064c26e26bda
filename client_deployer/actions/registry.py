"""Action registry the host resolves commands against."""

from functools import lru_cache
from typing import Any

from client_deployer.actions.base import BaseAction
from client_deployer.utils.logging import get_logger

logger = get_logger(__name__)


class ActionRegistry:
    """Registry for deployable actions, keyed by command path."""

    def __init__(self):
        self._actions: dict[str, type[BaseAction[Any, Any]]] = {}

    def register(self, action_class: type[BaseAction[Any, Any]]) -> None:
        """Register an action class."""
        command = action_class().command

        if command in self._actions:
            logger.warning("registry.overwriting_action", command=command)

        self._actions[command] = action_class
        logger.info("registry.registered_action", command=command)

    def get(self, command: str) -> type[BaseAction[Any, Any]] | None:
        return self._actions.get(command)

    def create(self, command: str, **kwargs: Any) -> BaseAction[Any, Any] | None:
        """Create an action instance by command path."""
        action_class = self.get(command)
        if action_class:
            return action_class(**kwargs)
        return None

    def list_commands(self) -> list[str]:
        """List all registered command paths."""
        return list(self._actions.keys())

    def describe(self) -> list[dict[str, Any]]:
        return [action_class().describe() for action_class in self._actions.values()]


def register_actions(registry: ActionRegistry) -> ActionRegistry:
    """Register the built-in client actions."""
    from client_deployer.actions.client_deploy import ClientDeployAction, ClientUsageAction

    registry.register(ClientUsageAction)
    registry.register(ClientDeployAction)
    return registry


@lru_cache
def get_action_registry() -> ActionRegistry:
    """Get the action registry singleton with built-in actions registered."""
    return register_actions(ActionRegistry())
