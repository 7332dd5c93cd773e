"""Shared fakes for core tests."""

from __future__ import annotations

from typing import Any

import pytest

from frame_commander.core.events import EventHub
from frame_commander.core.focus import FocusCoordinator, FocusOwner
from frame_commander.core.requests import RequestHandle, RequestTracker


class FakeStore:
    """Records every store request and hands back a tracked handle."""

    def __init__(self, tracker: RequestTracker | None = None) -> None:
        self.tracker = tracker or RequestTracker()
        self.calls: list[tuple[str, str, tuple[Any, ...], RequestHandle]] = []

    def _record(self, kind: str, path: str, *args: Any) -> RequestHandle:
        handle = self.tracker.open(kind, path)
        self.calls.append((kind, path, args, handle))
        return handle

    def kinds(self) -> list[str]:
        return [c[0] for c in self.calls]

    def last(self, kind: str) -> tuple[str, tuple[Any, ...], RequestHandle]:
        for call_kind, path, args, handle in reversed(self.calls):
            if call_kind == kind:
                return path, args, handle
        raise AssertionError(f"no {kind} request sent")

    def classify_project(self, path):
        return self._record("classify", path)

    def initialize_project(self, path, name):
        return self._record("initialize", path, name)

    def load_tasks(self, path):
        return self._record("load_tasks", path)

    def create_task(self, path, fields):
        return self._record("create_task", path, dict(fields))

    def update_task(self, path, task_id, fields):
        return self._record("update_task", path, task_id, dict(fields))

    def delete_task(self, path, task_id):
        return self._record("delete_task", path, task_id)

    def read_file(self, path):
        return self._record("read_file", path)

    def write_file(self, path, content):
        return self._record("write_file", path, content)

    def load_file_tree(self, path):
        return self._record("load_file_tree", path)


class FakeTerminal:
    def __init__(self) -> None:
        self.switches: list[str] = []
        self.commands: list[str] = []

    def switch_session(self, path: str) -> None:
        self.switches.append(path)

    def send_command(self, text: str) -> None:
        self.commands.append(text)


class Recorder:
    """Collects every event published for the given types."""

    def __init__(self, hub: EventHub, *event_types: type) -> None:
        self.events: list[object] = []
        for event_type in event_types:
            hub.subscribe(event_type, self.events.append)

    def of(self, event_type: type) -> list[Any]:
        return [e for e in self.events if isinstance(e, event_type)]


@pytest.fixture
def hub() -> EventHub:
    return EventHub()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def terminal() -> FakeTerminal:
    return FakeTerminal()


@pytest.fixture
def surfaces() -> list[str]:
    """Names of surfaces whose focus callable ran, in order."""
    return []


@pytest.fixture
def focus(hub, surfaces) -> FocusCoordinator:
    coordinator = FocusCoordinator(hub)
    coordinator.register(FocusOwner.TERMINAL, lambda: surfaces.append("terminal"))
    coordinator.register(FocusOwner.FILE_TREE, lambda: surfaces.append("file_tree"))
    return coordinator
