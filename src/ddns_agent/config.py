"""YAML loader for the desired dynamic DNS / forwarding state."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Tuple

import yaml

from ddns_reconciler import DesiredConfig


@dataclass(frozen=True)
class DesiredState:
    """Everything the agent converges to.

    ``dynamic`` is ``None`` when the file has no dynamic DNS section, which
    tears down every ddclient instance.
    """

    dynamic: Optional[DesiredConfig] = None
    forwarding: Tuple[str, ...] = ()


def _parse_forwarding(section: Any) -> Tuple[str, ...]:
    if section is None:
        return ()
    if isinstance(section, dict):
        section = section.get("dhcp", [])
    if not isinstance(section, list):
        raise ValueError("'forwarding' must be a list or a mapping with a 'dhcp' list")
    return tuple(str(intf) for intf in section)


def parse_desired_state(data: Any) -> DesiredState:
    if data is None:
        return DesiredState()
    if not isinstance(data, dict):
        raise ValueError("Desired state must be a mapping")

    dynamic_section = data.get("dynamic")
    if dynamic_section is not None and not isinstance(dynamic_section, dict):
        raise ValueError("'dynamic' section must be a mapping")
    dynamic = (
        DesiredConfig.from_dict(dynamic_section) if dynamic_section is not None else None
    )
    return DesiredState(
        dynamic=dynamic,
        forwarding=_parse_forwarding(data.get("forwarding")),
    )


def load_desired_state(path: Path) -> DesiredState:
    return parse_desired_state(yaml.safe_load(Path(path).read_text()))
