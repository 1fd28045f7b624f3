"""Process handles for the daemons managed by the dynamic DNS agent.

The reconciler only ever needs to stop a daemon or make it pick up new
configuration.  :class:`SystemdProcess` does that through ``systemctl`` and
:class:`VRFDependentProcess` holds the start back until the routing instance
the daemon lives in has been created.
"""

from .base import ProcessError, ProcessFactory, ProcessHandle  # noqa: F401
from .systemd import SystemdProcess  # noqa: F401
from .vrf import (  # noqa: F401
    DEFAULT_VRF,
    NetlinkVRFMonitor,
    VRFChecker,
    VRFDependentProcess,
    VRFSubscriber,
)

__all__ = [
    "DEFAULT_VRF",
    "NetlinkVRFMonitor",
    "ProcessError",
    "ProcessFactory",
    "ProcessHandle",
    "SystemdProcess",
    "VRFChecker",
    "VRFDependentProcess",
    "VRFSubscriber",
]
