"""systemd backed process handle."""

from __future__ import annotations

import logging
import subprocess
from typing import Sequence

from .base import ProcessError, ProcessHandle

LOG = logging.getLogger(__name__)

SYSTEMCTL = "systemctl"


def run(cmd: Sequence[str], timeout: float) -> subprocess.CompletedProcess[str]:
    LOG.debug("Executing: %s", " ".join(cmd))
    return subprocess.run(
        list(cmd), check=False, text=True, capture_output=True, timeout=timeout
    )


class SystemdProcess(ProcessHandle):
    """Drive a unit through ``systemctl``.

    ``reload`` maps to ``reload-or-restart`` so a unit that is not running
    yet gets started with its freshly written configuration.
    """

    def __init__(self, unit: str, timeout: float = 30.0) -> None:
        self.unit = unit
        self._timeout = timeout

    def _systemctl(self, action: str) -> None:
        try:
            result = run([SYSTEMCTL, action, self.unit], self._timeout)
        except subprocess.TimeoutExpired:
            raise ProcessError(
                self.unit, action, f"timed out after {self._timeout}s"
            ) from None
        except OSError as exc:
            raise ProcessError(self.unit, action, str(exc)) from exc
        if result.returncode != 0:
            raise ProcessError(
                self.unit,
                action,
                result.stderr.strip() or f"exit status {result.returncode}",
            )
        LOG.info("systemctl %s %s", action, self.unit)

    def stop(self) -> None:
        self._systemctl("stop")

    def reload(self) -> None:
        self._systemctl("reload-or-restart")
