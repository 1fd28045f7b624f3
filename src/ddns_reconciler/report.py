"""Outcome of one reconciliation pass."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Tuple


class Action(Enum):
    STOPPED = "stopped"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass
class InterfaceResult:
    name: str
    action: Action
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class ReconcileReport:
    """Per-interface results plus failures preparing or cleaning directories.

    A pass never aborts on the first failure, so callers inspect this to
    tell a full apply from a partial one.
    """

    results: List[InterfaceResult] = field(default_factory=list)
    environment_errors: List[str] = field(default_factory=list)

    def __iter__(self) -> Iterator[InterfaceResult]:
        return iter(self.results)

    @property
    def ok(self) -> bool:
        return not self.environment_errors and all(r.ok for r in self.results)

    def by_name(self) -> Dict[str, InterfaceResult]:
        return {r.name: r for r in self.results}

    def failed(self) -> Tuple[InterfaceResult, ...]:
        return tuple(r for r in self.results if not r.ok)

    def with_action(self, action: Action) -> Tuple[str, ...]:
        return tuple(r.name for r in self.results if r.action is action)
