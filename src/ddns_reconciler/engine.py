"""Reconcile ddclient instances against a desired dynamic DNS snapshot.

Each configured interface gets its own ``ddclient@<interface>.service``
instance with a generated config file and an environment file that the unit
reads before starting.  :meth:`DynamicDNSReconciler.set` diffs the new
snapshot against the previous one, tears down interfaces that disappeared,
rewrites and reloads interfaces whose configuration changed and leaves the
rest alone.

A pass is best effort: every file and process operation is tried
independently, failures are logged and collected in the returned
:class:`~ddns_reconciler.report.ReconcileReport`, and the new snapshot is
stored regardless so one broken interface never blocks the others.
"""

from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Callable, Dict, Mapping, Optional, Set

from ddns_supervisor import (
    DEFAULT_VRF,
    ProcessError,
    ProcessFactory,
    ProcessHandle,
    SystemdProcess,
    VRFChecker,
    VRFDependentProcess,
    VRFSubscriber,
)

from .config import DesiredConfig, InterfaceConfig
from .naming import DDClientSettings, interface_paths, unit_name
from .render import render_ddclient_config, render_env_file
from .report import Action, InterfaceResult, ReconcileReport
from .state import ConfigStore

LOG = logging.getLogger(__name__)

FILE_MODE = 0o644
DIR_MODE = 0o755


def _write_file(path: Path, text: str) -> None:
    path.write_text(text)
    path.chmod(FILE_MODE)


class DynamicDNSReconciler:
    """Own the ddclient running state for one routing instance."""

    def __init__(
        self,
        settings: Optional[DDClientSettings] = None,
        process_factory: ProcessFactory = SystemdProcess,
        *,
        vrf_subscriber: Optional[VRFSubscriber] = None,
        vrf_checker: Optional[VRFChecker] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._settings = settings or DDClientSettings()
        self._process_factory = process_factory
        self._vrf_subscriber = vrf_subscriber
        self._vrf_checker = vrf_checker
        self._clock = clock
        self._store = ConfigStore()
        self._lock = Lock()
        # Interfaces whose last update failed are rewritten on the next pass
        # even when their configuration did not change.
        self._failed: Set[str] = set()

    @property
    def settings(self) -> DDClientSettings:
        return self._settings

    # ------------------------------------------------------------------
    # Public contract
    # ------------------------------------------------------------------
    def get(self) -> DesiredConfig:
        return self._store.config

    def running(self) -> Mapping[str, ProcessHandle]:
        return self._store.running

    def set(self, new: Optional[DesiredConfig]) -> ReconcileReport:
        """Converge daemons and files to ``new``; ``None`` tears everything down."""

        with self._lock:
            return self._reconcile(new)

    # ------------------------------------------------------------------
    # Reconciliation pass
    # ------------------------------------------------------------------
    def _reconcile(self, new: Optional[DesiredConfig]) -> ReconcileReport:
        report = ReconcileReport()
        old_interfaces = self._store.config.by_name()
        new_interfaces = new.by_name() if new is not None else {}

        self._stop_inactive_interfaces(old_interfaces, new_interfaces, report)
        self._ensure_environment(report)
        self._update_active_interfaces(old_interfaces, new_interfaces, report)

        if new is not None:
            self._store.publish_config(new)
        else:
            self._cleanup_environment(report)
            self._store.publish_config(DesiredConfig())

        LOG.info(
            "dynamic dns reconciled: updated=%s stopped=%s unchanged=%d failed=%d",
            list(report.with_action(Action.UPDATED)),
            list(report.with_action(Action.STOPPED)),
            len(report.with_action(Action.UNCHANGED)),
            len(report.failed()),
        )
        return report

    def _new_process(self, unit: str) -> ProcessHandle:
        process = self._process_factory(unit)
        instance = self._settings.instance_name
        if (
            self._vrf_subscriber is not None
            and self._vrf_checker is not None
            and instance != DEFAULT_VRF
        ):
            return VRFDependentProcess(
                instance, self._vrf_subscriber, self._vrf_checker, process
            )
        return process

    def _stop_inactive_interfaces(
        self,
        old: Mapping[str, InterfaceConfig],
        new: Mapping[str, InterfaceConfig],
        report: ReconcileReport,
    ) -> None:
        running = self._store.running
        for name in old:
            if name in new:
                continue
            process = running.get(name)
            if process is None:
                process = self._new_process(unit_name(name))
            report.results.append(self._stop_interface(name, process))
            self._failed.discard(name)

    def _stop_interface(self, name: str, process: ProcessHandle) -> InterfaceResult:
        result = InterfaceResult(name, Action.STOPPED)
        try:
            process.stop()
        except (ProcessError, OSError) as exc:
            LOG.warning("failed to stop %s: %s", process.unit, exc)
            result.errors.append(str(exc))

        for path in interface_paths(name, self._settings).files():
            try:
                path.unlink()
            except FileNotFoundError:
                LOG.debug("%s already removed", path)
            except OSError as exc:
                LOG.warning("failed to remove %s: %s", path, exc)
                result.errors.append(f"remove {path}: {exc}")
        return result

    def _ensure_environment(self, report: ReconcileReport) -> None:
        for directory in self._settings.base_dirs():
            try:
                directory.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
            except OSError as exc:
                LOG.error("failed to create %s: %s", directory, exc)
                report.environment_errors.append(f"mkdir {directory}: {exc}")

    def _update_active_interfaces(
        self,
        old: Mapping[str, InterfaceConfig],
        new: Mapping[str, InterfaceConfig],
        report: ReconcileReport,
    ) -> None:
        known = self._store.running
        processes: Dict[str, ProcessHandle] = {}
        for name, intf in new.items():
            process = known.get(name)
            if process is None:
                process = self._new_process(unit_name(name))
            processes[name] = process

            if intf == old.get(name) and name not in self._failed:
                report.results.append(InterfaceResult(name, Action.UNCHANGED))
                continue

            result = self._update_interface(intf, process)
            if result.ok:
                self._failed.discard(name)
            else:
                self._failed.add(name)
            report.results.append(result)
        self._store.publish_running(processes)

    def _update_interface(
        self, intf: InterfaceConfig, process: ProcessHandle
    ) -> InterfaceResult:
        result = InterfaceResult(intf.name, Action.UPDATED)
        paths = interface_paths(intf.name, self._settings)
        now = self._clock() if self._clock else None

        try:
            _write_file(
                paths.conf_file,
                render_ddclient_config(intf, paths.pid_file, paths.cache_file, now),
            )
        except OSError as exc:
            LOG.error("failed to write %s: %s", paths.conf_file, exc)
            result.errors.append(f"write {paths.conf_file}: {exc}")
            return result

        try:
            paths.env_file.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
            _write_file(
                paths.env_file,
                render_env_file(self._settings.instance_name, paths.conf_file),
            )
        except OSError as exc:
            LOG.error("failed to write %s: %s", paths.env_file, exc)
            result.errors.append(f"write {paths.env_file}: {exc}")
            return result

        try:
            process.reload()
        except (ProcessError, OSError) as exc:
            LOG.error("failed to reload %s: %s", process.unit, exc)
            result.errors.append(str(exc))
        else:
            LOG.debug("reloaded %s for interface %s", process.unit, intf.name)
        return result

    def _cleanup_environment(self, report: ReconcileReport) -> None:
        for directory in (self._settings.run_dir, self._settings.cache_dir):
            try:
                shutil.rmtree(directory)
            except FileNotFoundError:
                LOG.debug("%s already removed", directory)
            except OSError as exc:
                LOG.warning("failed to remove %s: %s", directory, exc)
                report.environment_errors.append(f"rmtree {directory}: {exc}")
