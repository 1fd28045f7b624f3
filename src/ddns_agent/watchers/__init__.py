"""Watcher implementations used by the dynamic DNS agent."""

from .desired import DesiredStateWatcher  # noqa: F401

__all__ = ["DesiredStateWatcher"]
