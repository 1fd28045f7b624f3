"""DHCP nameserver forwarding configuration."""

from __future__ import annotations

import logging
import os
from threading import Lock
from typing import Callable, Optional, Sequence, Tuple

from ddns_supervisor import ProcessHandle

from .config import validate_interface_name
from .lease import LeaseWatcher

LOG = logging.getLogger(__name__)

WatcherFactory = Callable[..., LeaseWatcher]


class ForwardingConfig:
    """Keep one :class:`LeaseWatcher` in line with the forwarding interfaces.

    A change of the interface list never patches the running watcher: it is
    stopped, its generated files are removed and a fresh watcher is started
    for the new list.
    """

    def __init__(
        self,
        process: ProcessHandle,
        lease_file_fmt: str,
        conf_file_fmt: str,
        watcher_factory: WatcherFactory = LeaseWatcher,
    ) -> None:
        self._process = process
        self._lease_file_fmt = lease_file_fmt
        self._conf_file_fmt = conf_file_fmt
        self._watcher_factory = watcher_factory
        self._watcher: Optional[LeaseWatcher] = None
        self._interfaces: Tuple[str, ...] = ()
        self._lock = Lock()

    @property
    def watcher(self) -> Optional[LeaseWatcher]:
        return self._watcher

    def get(self) -> Tuple[str, ...]:
        return self._interfaces

    def set(self, interfaces: Sequence[str]) -> None:
        new = tuple(validate_interface_name(i) for i in interfaces)
        with self._lock:
            if self._watcher is not None:
                self._watcher.stop()
            self._remove_conf_files()
            self._watcher = None
            if new:
                self._watcher = self._watcher_factory(
                    new, self._process, self._lease_file_fmt, self._conf_file_fmt
                ).start()
            self._interfaces = new
        LOG.info("dhcp forwarding interfaces: %s", list(new))

    def close(self) -> None:
        self.set(())

    def stop(self) -> None:
        """Stop watching leases but keep the generated files in place."""

        with self._lock:
            if self._watcher is not None:
                self._watcher.stop()
            self._watcher = None

    def _remove_conf_files(self) -> None:
        for intf in self._interfaces:
            path = self._conf_file_fmt % intf
            try:
                os.remove(path)
            except FileNotFoundError:
                LOG.debug("%s already removed", path)
            except OSError as exc:
                LOG.warning("failed to remove %s: %s", path, exc)
