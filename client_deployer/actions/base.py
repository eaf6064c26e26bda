"""Base class for deployable actions."""

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from client_deployer.utils.logging import get_logger

InputT = TypeVar("InputT", bound=BaseModel)
OutputT = TypeVar("OutputT", bound=BaseModel)


class BaseAction(ABC, Generic[InputT, OutputT]):
    """An action the host can register under a command and invoke.

    Subclasses implement:
    - command: Space-separated command path, e.g. "client deploy"
    - description: What the action does
    - execute(): Main execution logic
    """

    def __init__(self):
        self.logger = get_logger(f"action.{self.command.replace(' ', '.')}")

    @property
    @abstractmethod
    def command(self) -> str:
        """Command path the action is registered under."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of what this action does."""
        pass

    @property
    def usage(self) -> str:
        """One-line usage shown by the host."""
        return self.description

    @property
    def lifecycle_events(self) -> list[str]:
        """Lifecycle events the host fires for this command."""
        return [self.command.split()[-1]]

    def describe(self) -> dict[str, Any]:
        return {
            "command": self.command,
            "usage": self.usage,
            "lifecycle_events": self.lifecycle_events,
        }

    @abstractmethod
    async def execute(self, input_data: InputT) -> OutputT:
        """Execute the action.

        Args:
            input_data: Typed input for this action

        Returns:
            Typed output from this action
        """
        pass
