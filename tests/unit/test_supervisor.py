import subprocess

import pytest

from ddns_supervisor import (
    NetlinkVRFMonitor,
    ProcessError,
    SystemdProcess,
    VRFDependentProcess,
)
from ddns_supervisor import systemd, vrf


class FakeRun:
    def __init__(self, returncode=0, stderr="", exc=None):
        self.returncode = returncode
        self.stderr = stderr
        self.exc = exc
        self.commands = []

    def __call__(self, cmd, **kwargs):
        self.commands.append(cmd)
        if self.exc is not None:
            raise self.exc
        return subprocess.CompletedProcess(cmd, self.returncode, "", self.stderr)


def test_systemd_reload_and_stop(monkeypatch):
    fake = FakeRun()
    monkeypatch.setattr(systemd.subprocess, "run", fake)
    process = SystemdProcess("ddclient@eth0.service")

    process.reload()
    process.stop()

    assert fake.commands == [
        ["systemctl", "reload-or-restart", "ddclient@eth0.service"],
        ["systemctl", "stop", "ddclient@eth0.service"],
    ]


def test_systemd_failure_raises(monkeypatch):
    monkeypatch.setattr(
        systemd.subprocess, "run", FakeRun(returncode=5, stderr="Unit not found.\n")
    )

    with pytest.raises(ProcessError) as excinfo:
        SystemdProcess("ddclient@eth0.service").stop()

    assert excinfo.value.unit == "ddclient@eth0.service"
    assert excinfo.value.reason == "Unit not found."


@pytest.mark.parametrize(
    "exc",
    [
        subprocess.TimeoutExpired(["systemctl"], 30),
        FileNotFoundError(2, "No such file or directory", "systemctl"),
    ],
)
def test_systemd_errors_become_process_errors(monkeypatch, exc):
    monkeypatch.setattr(systemd.subprocess, "run", FakeRun(exc=exc))

    with pytest.raises(ProcessError):
        SystemdProcess("dnsmasq.service").reload()


class FakeVRFs:
    def __init__(self, present=()):
        self.present = set(present)
        self.subscriptions = []

    def exists(self, name):
        return name in self.present

    def subscribe(self, name, callback):
        self.subscriptions.append((name, callback))

    def unsubscribe(self, name, callback):
        self.subscriptions.remove((name, callback))


def test_default_vrf_passes_through(processes):
    vrfs = FakeVRFs()
    inner = processes("ddclient@eth0.service")
    process = VRFDependentProcess("default", vrfs, vrfs, inner)

    process.reload()
    process.stop()

    assert inner.calls == ["reload", "stop"]
    assert vrfs.subscriptions == []
    assert process.unit == "ddclient@eth0.service"


def test_existing_vrf_passes_through(processes):
    vrfs = FakeVRFs(present={"red"})
    inner = processes("ddclient@eth0.service")

    VRFDependentProcess("red", vrfs, vrfs, inner).reload()

    assert inner.calls == ["reload"]


def test_missing_vrf_defers_reload(processes):
    vrfs = FakeVRFs()
    inner = processes("ddclient@eth0.service")
    process = VRFDependentProcess("red", vrfs, vrfs, inner)

    process.reload()
    process.reload()

    assert inner.calls == []
    assert process.pending
    assert len(vrfs.subscriptions) == 1

    name, callback = vrfs.subscriptions[0]
    callback(name)
    callback(name)

    assert inner.calls == ["reload"]
    assert not process.pending


def test_stop_cancels_deferred_reload(processes):
    vrfs = FakeVRFs()
    inner = processes("ddclient@eth0.service")
    process = VRFDependentProcess("red", vrfs, vrfs, inner)
    process.reload()
    _, callback = vrfs.subscriptions[0]

    process.stop()
    callback("red")

    assert inner.calls == ["stop"]
    assert vrfs.subscriptions == []


def test_deferred_reload_failure_is_logged(processes):
    processes.fail_reload.add("ddclient@eth0.service")
    vrfs = FakeVRFs()
    inner = processes("ddclient@eth0.service")
    process = VRFDependentProcess("red", vrfs, vrfs, inner)
    process.reload()

    vrfs.subscriptions[0][1]("red")

    assert inner.calls == ["reload"]


class BrokenVRFs(FakeVRFs):
    def __init__(self, fail_exists=False, fail_subscribe=False):
        super().__init__()
        self.fail_exists = fail_exists
        self.fail_subscribe = fail_subscribe

    def exists(self, name):
        if self.fail_exists:
            raise RuntimeError("netlink error")
        return False

    def subscribe(self, name, callback):
        if self.fail_subscribe:
            raise RuntimeError("netlink bind failed")
        super().subscribe(name, callback)


def test_vrf_lookup_failure_raises_process_error(processes):
    inner = processes("ddclient@eth0.service")
    process = VRFDependentProcess(
        "red", BrokenVRFs(), BrokenVRFs(fail_exists=True), inner
    )

    with pytest.raises(ProcessError) as excinfo:
        process.reload()

    assert excinfo.value.unit == "ddclient@eth0.service"
    assert "netlink error" in excinfo.value.reason
    assert inner.calls == []


def test_vrf_subscribe_failure_raises_process_error(processes):
    vrfs = BrokenVRFs(fail_subscribe=True)
    inner = processes("ddclient@eth0.service")
    process = VRFDependentProcess("red", vrfs, vrfs, inner)

    with pytest.raises(ProcessError):
        process.reload()

    assert not process.pending
    assert inner.calls == []


class FakeLinkInfo:
    def __init__(self, kind):
        self.kind = kind

    def get_attr(self, name):
        assert name == "IFLA_INFO_KIND"
        return self.kind


class FakeLink:
    def __init__(self, kind):
        self.kind = kind

    def get_attr(self, name):
        assert name == "IFLA_LINKINFO"
        return FakeLinkInfo(self.kind) if self.kind else None


class FakeIPRoute:
    links = {}

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def link_lookup(self, ifname):
        return [1] if ifname in self.links else []

    def get_links(self, index):
        return [next(iter(self.links.values()))]


def test_netlink_monitor_checks_link_kind(monkeypatch):
    monkeypatch.setattr(vrf, "IPRoute", FakeIPRoute)
    monitor = NetlinkVRFMonitor()

    FakeIPRoute.links = {"red": FakeLink("vrf")}
    assert monitor.exists("red")
    assert not monitor.exists("blue")

    FakeIPRoute.links = {"red": FakeLink("bridge")}
    assert not monitor.exists("red")

    FakeIPRoute.links = {"red": FakeLink(None)}
    assert not monitor.exists("red")


def test_netlink_monitor_notifies_subscribers():
    monitor = NetlinkVRFMonitor()
    seen = []
    # Registering directly avoids starting the netlink thread
    monitor._callbacks["red"] = [seen.append]

    monitor.notify("red")
    monitor.notify("blue")
    monitor.unsubscribe("red", seen.append)
    monitor.notify("red")

    assert seen == ["red"]
