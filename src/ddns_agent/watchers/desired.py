"""File-based desired state watcher."""

from __future__ import annotations

import logging
from pathlib import Path
from threading import Event, Thread
from typing import Optional

import yaml

from ..config import DesiredState, load_desired_state
from ..registry import SubsystemRegistry

LOG = logging.getLogger(__name__)


class DesiredStateWatcher(Thread):
    """Poll the desired state YAML file and apply it when it changes."""

    def __init__(
        self,
        registry: SubsystemRegistry,
        path: Path,
        interval: float,
        stop_event: Event,
    ) -> None:
        super().__init__(daemon=True, name="desired-state-watcher")
        self._registry = registry
        self._path = Path(path)
        self._interval = interval
        self._stop_event = stop_event
        self._state: Optional[DesiredState] = None

    @property
    def state(self) -> Optional[DesiredState]:
        return self._state

    def run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.poll()
            except Exception:  # pragma: no cover - logged below
                LOG.exception("desired state watcher encountered an error")
            self._stop_event.wait(self._interval)

    def poll(self) -> bool:
        """Apply the file if its content differs from the last applied state."""

        if not self._path.exists():
            LOG.debug("desired state file %s does not exist yet", self._path)
            return False

        try:
            desired = load_desired_state(self._path)
        except yaml.YAMLError as exc:
            LOG.warning("failed to parse desired state %s: %s", self._path, exc)
            return False
        except ValueError as exc:
            LOG.warning("invalid desired state %s: %s", self._path, exc)
            return False

        if desired == self._state:
            return False

        LOG.info("desired state %s changed, applying", self._path)
        self._registry.apply(desired)
        self._state = desired
        return True
