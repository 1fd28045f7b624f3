from pathlib import Path
from typing import Dict, List

import pytest

from ddns_reconciler import DDClientSettings
from ddns_supervisor import ProcessError, ProcessHandle


class RecordingProcess(ProcessHandle):
    def __init__(self, unit: str, fail_reload: bool = False, fail_stop: bool = False):
        self.unit = unit
        self.fail_reload = fail_reload
        self.fail_stop = fail_stop
        self.calls: List[str] = []

    def stop(self) -> None:
        self.calls.append("stop")
        if self.fail_stop:
            raise ProcessError(self.unit, "stop", "unit not loaded")

    def reload(self) -> None:
        self.calls.append("reload")
        if self.fail_reload:
            raise ProcessError(self.unit, "reload-or-restart", "unit failed")


class ProcessRecorder:
    """Process factory that remembers every handle it built."""

    def __init__(self) -> None:
        self.created: List[RecordingProcess] = []
        self.fail_reload: set = set()
        self.fail_stop: set = set()

    def __call__(self, unit: str) -> RecordingProcess:
        process = RecordingProcess(
            unit,
            fail_reload=unit in self.fail_reload,
            fail_stop=unit in self.fail_stop,
        )
        self.created.append(process)
        return process

    def calls(self) -> Dict[str, List[str]]:
        out: Dict[str, List[str]] = {}
        for process in self.created:
            out.setdefault(process.unit, []).extend(process.calls)
        return out

    def count(self, action: str) -> int:
        return sum(p.calls.count(action) for p in self.created)


class FakeObserver:
    def __init__(self) -> None:
        self.scheduled = []
        self.started = False
        self.stopped = False
        self.joined = False

    def schedule(self, handler, path, recursive=False):
        self.scheduled.append((handler, path, recursive))

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def join(self, timeout=None) -> None:
        self.joined = True

    def emit(self, event) -> None:
        for handler, _, _ in self.scheduled:
            handler.dispatch(event)


class ObserverRecorder:
    def __init__(self) -> None:
        self.observers: List[FakeObserver] = []

    def __call__(self) -> FakeObserver:
        observer = FakeObserver()
        self.observers.append(observer)
        return observer

    @property
    def last(self) -> FakeObserver:
        return self.observers[-1]


@pytest.fixture
def processes() -> ProcessRecorder:
    return ProcessRecorder()


@pytest.fixture
def observers() -> ObserverRecorder:
    return ObserverRecorder()


@pytest.fixture
def settings(tmp_path: Path) -> DDClientSettings:
    return DDClientSettings(
        config_dir=tmp_path / "etc" / "ddclient",
        run_dir=tmp_path / "run" / "ddclient",
        cache_dir=tmp_path / "cache" / "ddclient",
        env_dir_fmt=str(tmp_path / "run" / "dns" / "%s"),
        instance_name="default",
    )
