from datetime import datetime, timezone

import pytest

from ddns_agent.config import DesiredState, parse_desired_state
from ddns_agent.registry import SubsystemRegistry
from ddns_agent.subsystems import DynamicDNSSubsystem, Subsystem
from ddns_reconciler import Action, DynamicDNSReconciler


class RecordingSubsystem(Subsystem):
    def __init__(self, name: str, journal: list):
        self.name = name
        self.journal = journal

    def apply(self, state):
        self.journal.append(("apply", self.name, state))

    def shutdown(self):
        self.journal.append(("shutdown", self.name))


def test_registry_dispatches_in_order():
    journal = []
    registry = SubsystemRegistry()
    registry.register("dynamic", RecordingSubsystem("dynamic", journal))
    registry.register("forwarding", RecordingSubsystem("forwarding", journal))
    state = DesiredState(forwarding=("eth1",))

    registry.apply(state)
    registry.shutdown()

    assert journal == [
        ("apply", "dynamic", state),
        ("apply", "forwarding", state),
        ("shutdown", "forwarding"),
        ("shutdown", "dynamic"),
    ]


def test_registry_rejects_duplicate_registration():
    registry = SubsystemRegistry()
    registry.register("dynamic", RecordingSubsystem("dynamic", []))

    with pytest.raises(ValueError):
        registry.register("dynamic", RecordingSubsystem("dynamic", []))


def test_unregister_drops_subsystem():
    journal = []
    registry = SubsystemRegistry()
    registry.register("dynamic", RecordingSubsystem("dynamic", journal))

    registry.unregister("dynamic")
    registry.unregister("dynamic")
    registry.apply(DesiredState())

    assert journal == []
    with pytest.raises(KeyError):
        registry.get("dynamic")


def test_dynamic_subsystem_drives_reconciler(settings, processes):
    reconciler = DynamicDNSReconciler(
        settings,
        processes,
        clock=lambda: datetime(2024, 3, 5, 9, 7, 3, tzinfo=timezone.utc),
    )
    subsystem = DynamicDNSSubsystem(reconciler)
    registry = SubsystemRegistry()
    registry.register("dynamic", subsystem)

    registry.apply(
        parse_desired_state(
            {
                "dynamic": {
                    "interface": [
                        {
                            "tagnode": "eth0",
                            "service": [{"tagnode": "dyndns", "host-name": "h"}],
                        }
                    ]
                }
            }
        )
    )

    assert subsystem.last_report.by_name()["eth0"].action is Action.UPDATED
    assert (settings.config_dir / "ddclient_eth0.conf").exists()
    assert processes.calls() == {"ddclient@eth0.service": ["reload"]}

    registry.apply(DesiredState())

    assert subsystem.last_report.by_name()["eth0"].action is Action.STOPPED
    assert not (settings.config_dir / "ddclient_eth0.conf").exists()
    assert reconciler.get().interfaces == ()
