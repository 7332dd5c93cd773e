"""Interfaces of the external collaborators the core talks to."""

from __future__ import annotations

from typing import Any, Protocol

from frame_commander.core.requests import RequestHandle


class StoreGateway(Protocol):
    """Authoritative store for project metadata, tasks and files.

    Every method only sends a request. Results arrive later as separate
    messages (see ``frame_commander.bus.events``).
    """

    def classify_project(self, path: str) -> RequestHandle:
        ...

    def initialize_project(self, path: str, name: str) -> RequestHandle:
        ...

    def load_tasks(self, path: str) -> RequestHandle:
        ...

    def create_task(self, path: str, fields: dict[str, Any]) -> RequestHandle:
        ...

    def update_task(self, path: str, task_id: str, fields: dict[str, Any]) -> RequestHandle:
        ...

    def delete_task(self, path: str, task_id: str) -> RequestHandle:
        ...

    def read_file(self, path: str) -> RequestHandle:
        ...

    def write_file(self, path: str, content: str) -> RequestHandle:
        ...

    def load_file_tree(self, path: str) -> RequestHandle:
        ...


class TerminalGateway(Protocol):
    """Terminal surface hosting the agent CLI sessions."""

    def switch_session(self, path: str) -> None:
        ...

    def send_command(self, text: str) -> None:
        ...
