"""Configuration data structures for the dynamic DNS reconciler.

These frozen dataclasses describe the desired state handed to
:class:`ddns_reconciler.engine.DynamicDNSReconciler`.  Every sequence is
stored as a tuple so that two snapshots built from the same input compare
equal, which is what the reconciler relies on to skip unchanged interfaces.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Tuple


class InvalidInterfaceName(ValueError):
    """Raised when an interface name cannot be used in a path or unit name."""


class DuplicateInterfaceError(ValueError):
    """Raised when a snapshot names the same interface more than once."""


_FORBIDDEN_CHARS = frozenset("/@\0")


def validate_interface_name(name: str) -> str:
    """Return ``name`` unchanged or raise :class:`InvalidInterfaceName`."""

    if not isinstance(name, str) or not name:
        raise InvalidInterfaceName("interface name must be a non-empty string")
    if name in (".", ".."):
        raise InvalidInterfaceName(f"interface name {name!r} is reserved")
    bad = [c for c in name if c in _FORBIDDEN_CHARS or c.isspace()]
    if bad:
        raise InvalidInterfaceName(
            f"interface name {name!r} contains forbidden characters {bad!r}"
        )
    return name


def _pick(entry: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in entry:
            return entry[key]
    return default


@dataclass(frozen=True)
class ServiceConfig:
    """One dynamic DNS provider binding.

    Attributes
    ----------
    name:
        Provider name as configured (``dyndns``, ``zoneedit``...).  It is
        mapped to a ddclient protocol identifier when rendering.
    server:
        Optional update server.  An empty string omits the ``server=`` line.
    host_names:
        Each host name produces its own stanza in the ddclient config.
    """

    name: str
    login: str = ""
    password: str = ""
    server: str = ""
    host_names: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "host_names", tuple(str(h) for h in self.host_names))

    @classmethod
    def from_dict(cls, entry: Mapping[str, Any]) -> "ServiceConfig":
        name = _pick(entry, "name", "tagnode")
        if name is None:
            raise ValueError("service entry missing 'tagnode'")
        hosts = _pick(entry, "host_names", "host-name", default=()) or ()
        if isinstance(hosts, str):
            hosts = [hosts]
        return cls(
            name=str(name),
            login=str(entry.get("login") or ""),
            password=str(entry.get("password") or ""),
            server=str(entry.get("server") or ""),
            host_names=tuple(hosts),
        )


@dataclass(frozen=True)
class InterfaceConfig:
    """Dynamic DNS configuration attached to one interface."""

    name: str
    services: Tuple[ServiceConfig, ...] = ()

    def __post_init__(self) -> None:
        validate_interface_name(self.name)
        object.__setattr__(self, "services", tuple(self.services))

    @classmethod
    def from_dict(cls, entry: Mapping[str, Any]) -> "InterfaceConfig":
        name = _pick(entry, "name", "tagnode")
        if name is None:
            raise ValueError("interface entry missing 'tagnode'")
        services = _pick(entry, "services", "service", default=()) or ()
        return cls(
            name=str(name),
            services=tuple(ServiceConfig.from_dict(s) for s in services),
        )


@dataclass(frozen=True)
class DesiredConfig:
    """Complete dynamic DNS snapshot.

    Interface names must be unique; the reconciler keys everything on them.
    """

    interfaces: Tuple[InterfaceConfig, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        interfaces = tuple(self.interfaces)
        seen = set()
        for intf in interfaces:
            if intf.name in seen:
                raise DuplicateInterfaceError(
                    f"interface {intf.name!r} configured more than once"
                )
            seen.add(intf.name)
        object.__setattr__(self, "interfaces", interfaces)

    def by_name(self) -> dict[str, InterfaceConfig]:
        return {intf.name: intf for intf in self.interfaces}

    def names(self) -> Tuple[str, ...]:
        return tuple(intf.name for intf in self.interfaces)

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> "DesiredConfig":
        if not payload:
            return cls()
        entries: Iterable[Mapping[str, Any]] = (
            _pick(payload, "interfaces", "interface", default=()) or ()
        )
        return cls(interfaces=tuple(InterfaceConfig.from_dict(e) for e in entries))
