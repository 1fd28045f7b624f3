"""Abstract interface for supervised daemon processes."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable


class ProcessError(RuntimeError):
    """Raised when the supervisor fails to stop or reload a unit."""

    def __init__(self, unit: str, action: str, reason: str) -> None:
        super().__init__(f"{action} {unit} failed: {reason}")
        self.unit = unit
        self.action = action
        self.reason = reason


class ProcessHandle(ABC):
    """Handle on one supervised daemon instance identified by ``unit``."""

    unit: str

    @abstractmethod
    def stop(self) -> None:
        """Stop the daemon, raising :class:`ProcessError` on failure."""

    @abstractmethod
    def reload(self) -> None:
        """Make the daemon pick up new configuration, starting it if needed."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.unit!r})"


ProcessFactory = Callable[[str], ProcessHandle]
