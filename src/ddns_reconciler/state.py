"""Atomically published snapshots shared between the reconciler and readers."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from ddns_supervisor import ProcessHandle

from .config import DesiredConfig


class ConfigStore:
    """Hold the last applied snapshot and the running process map.

    Both values are immutable and replaced by reference, so a reader always
    sees one complete snapshot and never a mix of old and new entries.  The
    store itself does not serialise writers; the reconciler owns that.
    """

    def __init__(self) -> None:
        self._config = DesiredConfig()
        self._running: Mapping[str, ProcessHandle] = MappingProxyType({})

    @property
    def config(self) -> DesiredConfig:
        return self._config

    @property
    def running(self) -> Mapping[str, ProcessHandle]:
        return self._running

    def publish_config(self, config: DesiredConfig) -> None:
        self._config = config

    def publish_running(self, running: Mapping[str, ProcessHandle]) -> None:
        self._running = MappingProxyType(dict(running))
