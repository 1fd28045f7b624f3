"""Adapters between the agent's desired state and the reconcilers."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

from ddns_reconciler import DynamicDNSReconciler, ForwardingConfig, ReconcileReport

from .config import DesiredState

LOG = logging.getLogger(__name__)


class Subsystem(ABC):
    """Base class for subsystems managed by :class:`SubsystemRegistry`."""

    @abstractmethod
    def apply(self, state: DesiredState) -> None:
        """Converge to the part of ``state`` this subsystem owns."""

    def shutdown(self) -> None:
        """Release background resources; daemons are left running."""


class DynamicDNSSubsystem(Subsystem):
    """Feed the ``dynamic`` section to a :class:`DynamicDNSReconciler`."""

    def __init__(self, reconciler: DynamicDNSReconciler) -> None:
        self._reconciler = reconciler
        self.last_report: Optional[ReconcileReport] = None

    @property
    def reconciler(self) -> DynamicDNSReconciler:
        return self._reconciler

    def apply(self, state: DesiredState) -> None:
        report = self._reconciler.set(state.dynamic)
        self.last_report = report
        for result in report.failed():
            LOG.warning(
                "interface %s partially applied: %s",
                result.name,
                "; ".join(result.errors),
            )
        for error in report.environment_errors:
            LOG.warning("dynamic dns environment: %s", error)


class ForwardingSubsystem(Subsystem):
    """Feed the ``forwarding`` interface list to a :class:`ForwardingConfig`."""

    def __init__(self, forwarding: ForwardingConfig) -> None:
        self._forwarding = forwarding

    def apply(self, state: DesiredState) -> None:
        if tuple(state.forwarding) == self._forwarding.get():
            return
        self._forwarding.set(state.forwarding)

    def shutdown(self) -> None:
        self._forwarding.stop()
