"""Turn DHCP lease nameserver files into forwarder configuration.

The DHCP client hook writes the nameservers of the current lease into one
file per interface.  :class:`LeaseWatcher` watches those files and, whenever
one is created or rewritten, regenerates the forwarder config for the
interface and asks the forwarder to reload.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from threading import Lock
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ddns_supervisor import ProcessError, ProcessHandle

from .render import render_forwarding_config

LOG = logging.getLogger(__name__)

NAMESERVER_MARKER = "new_domain_name_servers"
_FIELD_SEPARATOR = re.compile(r"[= ]")
_QUOTES = "'\""


def parse_nameservers(lines: Iterable[str]) -> List[str]:
    """Extract nameserver addresses from dhclient-style ``lines``.

    Order and duplicates are preserved.
    """

    nameservers: List[str] = []
    for line in lines:
        if NAMESERVER_MARKER not in line:
            continue
        fields = _FIELD_SEPARATOR.split(line.strip())
        try:
            start = fields.index(NAMESERVER_MARKER) + 1
        except ValueError:
            start = 1
        for token in fields[start:]:
            server = token.strip().strip(_QUOTES)
            if server:
                nameservers.append(server)
    return nameservers


class _LeaseEventHandler(FileSystemEventHandler):
    def __init__(self, watcher: "LeaseWatcher") -> None:
        super().__init__()
        self._watcher = watcher

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._watcher.handle_change(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._watcher.handle_change(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        # dhclient hooks commonly replace the file with a rename
        if not event.is_directory:
            self._watcher.handle_change(event.dest_path)


class LeaseWatcher:
    """Watch the lease files of ``interfaces`` and maintain forwarder config.

    Parameters
    ----------
    lease_file_fmt:
        printf-style pattern giving the lease file of an interface.
    conf_file_fmt:
        printf-style pattern giving the forwarder config file of an interface.
    observer_factory:
        Builds the watchdog observer; tests substitute a fake one.
    """

    def __init__(
        self,
        interfaces: Sequence[str],
        process: ProcessHandle,
        lease_file_fmt: str,
        conf_file_fmt: str,
        observer_factory: Callable[[], Observer] = Observer,
    ) -> None:
        self._process = process
        self._conf_file_fmt = conf_file_fmt
        self._observer_factory = observer_factory
        self._observer: Optional[Observer] = None
        self._lock = Lock()
        self._bindings: Dict[str, str] = {}
        for intf in interfaces:
            path = os.path.abspath(lease_file_fmt % intf)
            self._bindings[path] = intf

    @property
    def bindings(self) -> Dict[str, str]:
        return dict(self._bindings)

    @property
    def running(self) -> bool:
        return self._observer is not None

    def conf_file(self, interface: str) -> Path:
        return Path(self._conf_file_fmt % interface)

    def start(self) -> "LeaseWatcher":
        changed = False
        for path in self._bindings:
            if not os.path.exists(path):
                continue
            try:
                changed = self.regenerate(path) or changed
            except (OSError, ValueError) as exc:
                LOG.warning("failed to process lease file %s: %s", path, exc)
        if changed:
            self._reload()

        observer = self._observer_factory()
        handler = _LeaseEventHandler(self)
        for directory in sorted({os.path.dirname(p) for p in self._bindings}):
            try:
                os.makedirs(directory, exist_ok=True)
                observer.schedule(handler, directory, recursive=False)
            except OSError as exc:
                LOG.error("cannot watch lease directory %s: %s", directory, exc)
        observer.start()
        self._observer = observer
        LOG.info("watching lease files for %s", sorted(set(self._bindings.values())))
        return self

    def stop(self) -> None:
        with self._lock:
            observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join()
        LOG.debug("lease watcher stopped")

    def handle_change(self, path) -> None:
        path = os.path.abspath(os.fsdecode(path))
        if path not in self._bindings:
            return
        try:
            changed = self.regenerate(path)
        except (OSError, ValueError) as exc:
            LOG.warning("failed to process lease file %s: %s", path, exc)
            return
        if changed:
            self._reload()

    def regenerate(self, lease_file: str) -> bool:
        """Rewrite the forwarder config from ``lease_file``.

        Returns whether the config on disk changed.  A lease without
        nameservers leaves no config behind.  A blank lease file is the
        truncated state of a rewrite in progress and is skipped.
        """

        interface = self._bindings[lease_file]
        conf = self.conf_file(interface)
        with open(lease_file) as fh:
            content = fh.read()
        if not content.strip():
            LOG.debug("lease file %s is empty, waiting for content", lease_file)
            return False
        nameservers = parse_nameservers(content.splitlines())

        text = render_forwarding_config(interface, nameservers)
        if text is None:
            try:
                conf.unlink()
            except FileNotFoundError:
                LOG.debug("no nameservers in %s", lease_file)
                return False
            LOG.info("no nameservers for %s, removed %s", interface, conf)
            return True

        try:
            if conf.read_text() == text:
                return False
        except FileNotFoundError:
            pass
        conf.parent.mkdir(parents=True, exist_ok=True)
        conf.write_text(text)
        LOG.info("wrote %d nameserver(s) for %s to %s", len(nameservers), interface, conf)
        return True

    def _reload(self) -> None:
        try:
            self._process.reload()
        except (ProcessError, OSError) as exc:
            LOG.error("failed to reload %s: %s", self._process.unit, exc)
