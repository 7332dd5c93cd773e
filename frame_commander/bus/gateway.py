"""Store gateway that turns core calls into bus requests."""

from __future__ import annotations

from typing import Any

from frame_commander.bus.events import (
    ClassifyProject,
    CreateTask,
    DeleteTask,
    InitializeProject,
    LoadFileTree,
    LoadTasks,
    ReadFile,
    StoreRequest,
    UpdateTask,
    WriteFile,
)
from frame_commander.bus.queue import MessageBus
from frame_commander.core.requests import RequestHandle, RequestTracker


class BusStoreGateway:
    """Implements ``StoreGateway`` on top of ``MessageBus``."""

    def __init__(self, bus: MessageBus, tracker: RequestTracker | None = None) -> None:
        self.bus = bus
        self.tracker = tracker or RequestTracker()

    def _send(self, kind: str, path: str, build: type[StoreRequest], **fields: Any) -> RequestHandle:
        handle = self.tracker.open(kind, path)
        self.bus.publish_request(build(request_id=handle.request_id, path=path, **fields))
        return handle

    def classify_project(self, path: str) -> RequestHandle:
        return self._send("classify", path, ClassifyProject)

    def initialize_project(self, path: str, name: str) -> RequestHandle:
        return self._send("initialize", path, InitializeProject, name=name)

    def load_tasks(self, path: str) -> RequestHandle:
        return self._send("load_tasks", path, LoadTasks)

    def create_task(self, path: str, fields: dict[str, Any]) -> RequestHandle:
        return self._send("create_task", path, CreateTask, fields=dict(fields))

    def update_task(self, path: str, task_id: str, fields: dict[str, Any]) -> RequestHandle:
        return self._send("update_task", path, UpdateTask, task_id=task_id, fields=dict(fields))

    def delete_task(self, path: str, task_id: str) -> RequestHandle:
        return self._send("delete_task", path, DeleteTask, task_id=task_id)

    def read_file(self, path: str) -> RequestHandle:
        return self._send("read_file", path, ReadFile)

    def write_file(self, path: str, content: str) -> RequestHandle:
        return self._send("write_file", path, WriteFile, content=content)

    def load_file_tree(self, path: str) -> RequestHandle:
        return self._send("load_file_tree", path, LoadFileTree)
