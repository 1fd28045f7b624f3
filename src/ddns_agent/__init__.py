"""Dynamic DNS agent runtime helpers."""

from .config import DesiredState, load_desired_state  # noqa: F401

__all__ = [
    "DesiredState",
    "load_desired_state",
]
