"""Dynamic DNS and DHCP forwarding reconciliation.

This package converges per-interface ``ddclient`` instances and the DHCP
nameserver forwarding config to a desired snapshot:

* :class:`~ddns_reconciler.engine.DynamicDNSReconciler` diffs successive
  dynamic DNS snapshots, writes the ddclient and environment files of
  changed interfaces, reloads their units and tears down removed ones;
* :class:`~ddns_reconciler.forwarding.ForwardingConfig` keeps a
  :class:`~ddns_reconciler.lease.LeaseWatcher` bound to the forwarding
  interfaces so lease updates end up in the forwarder config.

Rendering is pure Python and all paths are configurable so the unit tests run
against a temporary directory without systemd or ddclient installed.
"""

from .config import (  # noqa: F401
    DesiredConfig,
    DuplicateInterfaceError,
    InterfaceConfig,
    InvalidInterfaceName,
    ServiceConfig,
)
from .engine import DynamicDNSReconciler  # noqa: F401
from .forwarding import ForwardingConfig  # noqa: F401
from .lease import LeaseWatcher, parse_nameservers  # noqa: F401
from .naming import DDClientSettings, InterfacePaths, interface_paths  # noqa: F401
from .report import Action, InterfaceResult, ReconcileReport  # noqa: F401

__all__ = [
    "Action",
    "DDClientSettings",
    "DesiredConfig",
    "DuplicateInterfaceError",
    "DynamicDNSReconciler",
    "ForwardingConfig",
    "InterfaceConfig",
    "InterfacePaths",
    "InterfaceResult",
    "InvalidInterfaceName",
    "LeaseWatcher",
    "ReconcileReport",
    "ServiceConfig",
    "interface_paths",
    "parse_nameservers",
]
