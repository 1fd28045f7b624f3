"""Text renderers for ddclient, its systemd environment and DHCP forwarding."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .config import InterfaceConfig, ServiceConfig

PRODUCT = "ddns-agent"

# Go's time.UnixDate layout, which ddclient users are used to seeing.
UNIX_DATE_FORMAT = "%a %b %e %H:%M:%S %Z %Y"

MAX_INTERVAL = "28d"

SERVICE_PROTOCOLS = {
    "dslreports": "dslreports1",
    "dyndns": "dyndns2",
    "zoneedit": "zoneedit1",
}

FORWARDING_HEADER = (
    f"### Autogenerated by {PRODUCT}",
    "### Note: Manual changes to this file will be lost.",
)


def map_service_name(name: str) -> str:
    """Return the ddclient protocol for a configured service name."""

    return SERVICE_PROTOCOLS.get(name, name)


def format_timestamp(when: Optional[datetime] = None) -> str:
    if when is None:
        when = datetime.now().astimezone()
    return when.strftime(UNIX_DATE_FORMAT)


def _render_service(service: ServiceConfig) -> List[str]:
    stanzas: List[str] = []
    for host in service.host_names:
        lines = [f"protocol={map_service_name(service.name)}"]
        if service.server:
            lines.append(f"server={service.server},")
        lines.extend(
            [
                f"max-interval={MAX_INTERVAL}",
                f"login={service.login}",
                f"password={service.password}",
                host,
            ]
        )
        stanzas.append("\n".join(lines) + "\n\n")
    return stanzas


def render_ddclient_config(
    interface: InterfaceConfig,
    pid_file: Path,
    cache_file: Path,
    generated_at: Optional[datetime] = None,
) -> str:
    """Render the ddclient configuration for ``interface``.

    One stanza is emitted per host name of every service, so a service
    without host names contributes nothing.
    """

    header = [
        "#",
        f"# autogenerated by {PRODUCT} on {format_timestamp(generated_at)}",
        "#",
        "daemon=1m",
        "syslog=yes",
        "ssl=yes",
        f"pid={pid_file}",
        f"cache={cache_file}",
        f"use=if, if={interface.name}",
        "",
        "",
    ]
    body = [stanza for service in interface.services for stanza in _render_service(service)]
    return "\n".join(header) + "\n" + "".join(body)


def render_env_file(instance_name: str, conf_file: Path) -> str:
    """Render the environment file systemd injects into ``ddclient@.service``."""

    lines = [
        "#",
        f"# autogenerated by {PRODUCT}",
        "#",
        f"DDCLIENT_VRF_NAME={instance_name}",
        f"DDCLIENT_IF_CONF={conf_file}",
    ]
    return "\n".join(lines) + "\n"


def render_forwarding_config(interface: str, nameservers: Sequence[str]) -> Optional[str]:
    """Render forwarder ``server=`` lines, or ``None`` when there is nothing to forward."""

    if not nameservers:
        return None
    lines: Iterable[str] = [
        *FORWARDING_HEADER,
        *(f"server={ns}\t# dhcp {interface}" for ns in nameservers),
    ]
    return "\n".join(lines) + "\n"
