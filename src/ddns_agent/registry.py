"""Fan a desired state out to the registered subsystems."""

from __future__ import annotations

import logging
from typing import Dict

from .config import DesiredState
from .subsystems import Subsystem

LOG = logging.getLogger(__name__)


class SubsystemRegistry:
    """Dispatch desired states to registered subsystems in registration order."""

    def __init__(self) -> None:
        self._subsystems: Dict[str, Subsystem] = {}

    def register(self, name: str, subsystem: Subsystem) -> None:
        if name in self._subsystems:
            raise ValueError(f"subsystem '{name}' already registered")
        self._subsystems[name] = subsystem

    def unregister(self, name: str) -> None:
        self._subsystems.pop(name, None)

    def get(self, name: str) -> Subsystem:
        return self._subsystems[name]

    def apply(self, state: DesiredState) -> None:
        for name, subsystem in self._subsystems.items():
            LOG.debug("applying desired state to %s", name)
            subsystem.apply(state)

    def shutdown(self) -> None:
        for subsystem in reversed(list(self._subsystems.values())):
            subsystem.shutdown()
