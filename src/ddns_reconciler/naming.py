"""Deterministic unit names and file paths for per-interface ddclient instances."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from .config import validate_interface_name

DDCLIENT_UNIT_FMT = "ddclient@{}.service"
DDCLIENT_CONF_FMT = "ddclient_{}.conf"
DDCLIENT_PID_FMT = "ddclient_{}.pid"
DDCLIENT_CACHE_FMT = "ddclient_{}.cache"
DDCLIENT_ENV_FILE = "ddclient.env"


@dataclass(frozen=True)
class DDClientSettings:
    """Directories and instance name used to derive ddclient file locations.

    ``env_dir_fmt`` is a printf-style pattern taking the interface name, the
    environment file is written inside the resulting directory.
    """

    config_dir: Path = Path("/etc/ddclient")
    run_dir: Path = Path("/var/run/ddclient")
    cache_dir: Path = Path("/var/cache/ddclient")
    env_dir_fmt: str = "/run/dns/%s"
    instance_name: str = "default"

    def __post_init__(self) -> None:
        for attr in ("config_dir", "run_dir", "cache_dir"):
            object.__setattr__(self, attr, Path(getattr(self, attr)))

    def base_dirs(self) -> Tuple[Path, Path, Path]:
        return self.config_dir, self.run_dir, self.cache_dir


@dataclass(frozen=True)
class InterfacePaths:
    """Everything the reconciler derives from one interface name."""

    interface: str
    unit: str
    conf_file: Path
    pid_file: Path
    cache_file: Path
    env_file: Path

    def files(self) -> Tuple[Path, Path, Path, Path]:
        return self.conf_file, self.pid_file, self.cache_file, self.env_file


def unit_name(interface: str) -> str:
    return DDCLIENT_UNIT_FMT.format(validate_interface_name(interface))


def interface_paths(interface: str, settings: DDClientSettings) -> InterfacePaths:
    validate_interface_name(interface)
    return InterfacePaths(
        interface=interface,
        unit=unit_name(interface),
        conf_file=settings.config_dir / DDCLIENT_CONF_FMT.format(interface),
        pid_file=settings.run_dir / DDCLIENT_PID_FMT.format(interface),
        cache_file=settings.cache_dir / DDCLIENT_CACHE_FMT.format(interface),
        env_file=Path(settings.env_dir_fmt % interface) / DDCLIENT_ENV_FILE,
    )
