"""Defer daemon start until the VRF it runs in exists."""

from __future__ import annotations

import logging
from threading import Event, Lock, Thread
from typing import Callable, Dict, List, Optional, Protocol

from pyroute2 import IPRoute

from .base import ProcessError, ProcessHandle

LOG = logging.getLogger(__name__)

DEFAULT_VRF = "default"

VRFCallback = Callable[[str], None]


class VRFChecker(Protocol):
    def exists(self, name: str) -> bool:
        ...


class VRFSubscriber(Protocol):
    def subscribe(self, name: str, callback: VRFCallback) -> None:
        ...

    def unsubscribe(self, name: str, callback: VRFCallback) -> None:
        ...


def _link_kind(msg) -> Optional[str]:
    linkinfo = msg.get_attr("IFLA_LINKINFO")
    if linkinfo is None:
        return None
    return linkinfo.get_attr("IFLA_INFO_KIND")


class NetlinkVRFMonitor:
    """Check for and watch VRF devices over rtnetlink.

    The monitor thread is started by the first :meth:`subscribe` call and
    reports every ``RTM_NEWLINK`` for a VRF device to the callbacks
    registered under its name.
    """

    def __init__(self) -> None:
        self._callbacks: Dict[str, List[VRFCallback]] = {}
        self._lock = Lock()
        self._stop_event = Event()
        self._ipr: Optional[IPRoute] = None
        self._thread: Optional[Thread] = None

    def exists(self, name: str) -> bool:
        with IPRoute() as ipr:
            indexes = ipr.link_lookup(ifname=name)
            if not indexes:
                return False
            links = ipr.get_links(indexes[0])
        return bool(links) and _link_kind(links[0]) == "vrf"

    def subscribe(self, name: str, callback: VRFCallback) -> None:
        with self._lock:
            self._callbacks.setdefault(name, []).append(callback)
            if self._thread is None:
                self._start()

    def unsubscribe(self, name: str, callback: VRFCallback) -> None:
        with self._lock:
            callbacks = self._callbacks.get(name, [])
            if callback in callbacks:
                callbacks.remove(callback)
            if not callbacks:
                self._callbacks.pop(name, None)

    def _start(self) -> None:
        self._stop_event.clear()
        self._ipr = IPRoute()
        self._ipr.bind()
        self._thread = Thread(target=self._run, name="vrf-monitor", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                messages = self._ipr.get()
            except Exception:
                if not self._stop_event.is_set():
                    LOG.exception("VRF monitor failed to read netlink messages")
                return
            for msg in messages:
                if msg.get("event") != "RTM_NEWLINK" or _link_kind(msg) != "vrf":
                    continue
                self.notify(msg.get_attr("IFLA_IFNAME"))

    def notify(self, name: str) -> None:
        with self._lock:
            callbacks = list(self._callbacks.get(name, []))
        for callback in callbacks:
            callback(name)

    def close(self) -> None:
        self._stop_event.set()
        if self._ipr is not None:
            self._ipr.close()
        if self._thread is not None:
            self._thread.join(timeout=5)
        self._ipr = None
        self._thread = None


class VRFDependentProcess(ProcessHandle):
    """Wrap ``process`` so it only starts once ``vrf`` is present.

    Reloads requested while the VRF is missing are remembered and replayed
    when the subscriber reports the VRF.  The ``default`` VRF always exists.
    """

    def __init__(
        self,
        vrf: str,
        subscriber: VRFSubscriber,
        checker: VRFChecker,
        process: ProcessHandle,
    ) -> None:
        self.unit = process.unit
        self._vrf = vrf
        self._subscriber = subscriber
        self._checker = checker
        self._process = process
        self._lock = Lock()
        self._pending = False
        self._subscribed = False

    @property
    def pending(self) -> bool:
        return self._pending

    def _vrf_ready(self) -> bool:
        if self._vrf == DEFAULT_VRF:
            return True
        try:
            return self._checker.exists(self._vrf)
        except Exception as exc:
            raise ProcessError(
                self.unit, "reload", f"cannot check VRF {self._vrf}: {exc}"
            ) from exc

    def reload(self) -> None:
        with self._lock:
            if not self._vrf_ready():
                LOG.info("VRF %s not present, deferring start of %s", self._vrf, self.unit)
                self._pending = True
                if not self._subscribed:
                    try:
                        self._subscriber.subscribe(self._vrf, self._on_vrf_ready)
                    except Exception as exc:
                        self._pending = False
                        raise ProcessError(
                            self.unit, "reload", f"cannot watch VRF {self._vrf}: {exc}"
                        ) from exc
                    self._subscribed = True
                return
            self._pending = False
        self._process.reload()

    def stop(self) -> None:
        error = None
        with self._lock:
            self._pending = False
            if self._subscribed:
                self._subscribed = False
                try:
                    self._subscriber.unsubscribe(self._vrf, self._on_vrf_ready)
                except Exception as exc:
                    error = exc
        self._process.stop()
        if error is not None:
            raise ProcessError(
                self.unit, "stop", f"cannot unwatch VRF {self._vrf}: {error}"
            ) from error

    def _on_vrf_ready(self, vrf: str) -> None:
        with self._lock:
            if not self._pending:
                return
            self._pending = False
        LOG.info("VRF %s appeared, starting %s", vrf, self.unit)
        try:
            self._process.reload()
        except ProcessError as exc:
            LOG.error("deferred start of %s failed: %s", self.unit, exc)
