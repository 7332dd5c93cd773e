"""Wire messages exchanged between the core and the store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class StoreRequest:
    """Request sent from the core to the store."""

    request_id: str
    path: str


@dataclass(frozen=True)
class ClassifyProject(StoreRequest):
    pass


@dataclass(frozen=True)
class InitializeProject(StoreRequest):
    name: str = ""


@dataclass(frozen=True)
class LoadTasks(StoreRequest):
    pass


@dataclass(frozen=True)
class CreateTask(StoreRequest):
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class UpdateTask(StoreRequest):
    task_id: str = ""
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DeleteTask(StoreRequest):
    task_id: str = ""


@dataclass(frozen=True)
class ReadFile(StoreRequest):
    pass


@dataclass(frozen=True)
class WriteFile(StoreRequest):
    content: str = ""


@dataclass(frozen=True)
class LoadFileTree(StoreRequest):
    pass


@dataclass(frozen=True)
class StorePush:
    """Message from the store to the core; ``request_id`` is empty for unsolicited pushes."""

    path: str
    request_id: str = ""


@dataclass(frozen=True)
class ClassificationResult(StorePush):
    is_managed: bool = False


@dataclass(frozen=True)
class InitializeResult(StorePush):
    success: bool = False
    error: str | None = None


@dataclass(frozen=True)
class TasksSnapshotPush(StorePush):
    tasks: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    version: int = 0


@dataclass(frozen=True)
class TaskMutationResult(StorePush):
    success: bool = False
    error: str | None = None


@dataclass(frozen=True)
class FileContent(StorePush):
    success: bool = False
    content: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class FileWritten(StorePush):
    success: bool = False
    error: str | None = None


@dataclass(frozen=True)
class FileTreeData(StorePush):
    nodes: list[dict[str, Any]] = field(default_factory=list)
