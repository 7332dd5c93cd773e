"""Client view of the project task list.

The store owns tasks. This module only sends mutation requests and replaces
its whole view whenever the store pushes a snapshot; nothing here edits a
task in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterable, Mapping

from loguru import logger

from frame_commander.core.errors import NoActiveProjectError, TaskValidationError
from frame_commander.core.events import EventHub, Notice, ProjectChanged, TaskMutationFailed, TasksChanged
from frame_commander.core.ports import StoreGateway, TerminalGateway
from frame_commander.core.requests import RequestHandle

ConfirmCallback = Callable[[str], bool]


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TaskFilter(str, Enum):
    ALL = "all"
    PENDING = "pending"
    IN_PROGRESS = "inProgress"
    COMPLETED = "completed"

    @classmethod
    def _missing_(cls, value: object) -> "TaskFilter | None":
        if isinstance(value, str) and value.strip().lower() in ("in_progress", "in-progress", "inprogress"):
            return cls.IN_PROGRESS
        return None


# Wire buckets of a snapshot, in display order.
STATUS_BUCKETS: dict[str, TaskStatus] = {
    "pending": TaskStatus.PENDING,
    "inProgress": TaskStatus.IN_PROGRESS,
    "completed": TaskStatus.COMPLETED,
}

FILTER_STATUS: dict[TaskFilter, TaskStatus | None] = {
    TaskFilter.ALL: None,
    TaskFilter.PENDING: TaskStatus.PENDING,
    TaskFilter.IN_PROGRESS: TaskStatus.IN_PROGRESS,
    TaskFilter.COMPLETED: TaskStatus.COMPLETED,
}

ACTION_STATUS: dict[str, TaskStatus] = {
    "start": TaskStatus.IN_PROGRESS,
    "complete": TaskStatus.COMPLETED,
    "pause": TaskStatus.PENDING,
    "reopen": TaskStatus.PENDING,
}

ACTION_NOTICE: dict[str, tuple[str, str]] = {
    "start": ("Task sent to agent", "info"),
    "complete": ("Task completed", "success"),
    "pause": ("Task paused", "info"),
    "reopen": ("Task reopened", "info"),
}

EDITABLE_FIELDS = frozenset({"title", "description", "priority", "category"})
DEFAULT_CATEGORY = "feature"


@dataclass(frozen=True)
class Task:
    """One task as last pushed by the store."""

    id: str
    title: str
    status: TaskStatus
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    category: str = DEFAULT_CATEGORY
    created_at: str = ""
    updated_at: str = ""
    completed_at: str | None = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any], status: TaskStatus) -> "Task":
        try:
            priority = TaskPriority(str(data.get("priority") or TaskPriority.MEDIUM.value))
        except ValueError:
            priority = TaskPriority.MEDIUM
        return cls(
            id=str(data.get("id", "")),
            title=str(data.get("title", "")),
            status=status,
            description=str(data.get("description") or ""),
            priority=priority,
            category=str(data.get("category") or DEFAULT_CATEGORY),
            created_at=str(data.get("createdAt") or ""),
            updated_at=str(data.get("updatedAt") or ""),
            completed_at=data.get("completedAt") or None,
        )

    def agent_prompt(self) -> str:
        """Command text sent to the terminal when the task is started."""
        prompt = f"Work on this task: {self.title}"
        if self.description:
            prompt += f". {self.description}"
        if self.priority is TaskPriority.HIGH:
            prompt += " (High priority)"
        return prompt


@dataclass
class TaskDraft:
    """Fields for a task about to be created."""

    title: str
    description: str = ""
    priority: TaskPriority | str = TaskPriority.MEDIUM
    category: str = DEFAULT_CATEGORY

    def to_fields(self) -> dict[str, Any]:
        title = (self.title or "").strip()
        if not title:
            raise TaskValidationError("Task title is required")
        return {
            "title": title,
            "description": (self.description or "").strip(),
            "priority": _priority(self.priority).value,
            "category": (self.category or "").strip() or DEFAULT_CATEGORY,
        }


@dataclass(frozen=True)
class TaskSnapshot:
    """Complete task list of one project."""

    path: str
    tasks: tuple[Task, ...] = field(default_factory=tuple)
    version: int = 0

    @classmethod
    def from_payload(cls, path: str, buckets: Mapping[str, Iterable[Mapping[str, Any]]] | None, version: int = 0) -> "TaskSnapshot":
        tasks: list[Task] = []
        for bucket, status in STATUS_BUCKETS.items():
            for item in (buckets or {}).get(bucket) or []:
                tasks.append(Task.from_payload(item, status))
        return cls(path=path, tasks=tuple(tasks), version=version)

    def find(self, task_id: str) -> Task | None:
        return next((t for t in self.tasks if t.id == task_id), None)


def _priority(value: TaskPriority | str | None) -> TaskPriority:
    if isinstance(value, TaskPriority):
        return value
    try:
        return TaskPriority(str(value or TaskPriority.MEDIUM.value).strip().lower())
    except ValueError as exc:
        raise TaskValidationError(f"Unknown priority '{value}'. Expected: high, medium, low") from exc


def filter_tasks(snapshot: TaskSnapshot | None, task_filter: TaskFilter | str = TaskFilter.ALL) -> list[Task]:
    """Project a snapshot through a status filter."""
    if snapshot is None:
        return []
    wanted = FILTER_STATUS[TaskFilter(task_filter)]
    if wanted is None:
        return list(snapshot.tasks)
    return [t for t in snapshot.tasks if t.status is wanted]


def format_task_date(iso_string: str, now: datetime | None = None) -> str:
    """Relative date label: Today, Yesterday, Nd ago, or "Mon DD"."""
    if not iso_string:
        return ""
    try:
        value = datetime.fromisoformat(iso_string.replace("Z", "+00:00"))
    except ValueError:
        return ""
    current = now or datetime.now(value.tzinfo)
    diff_days = (current - value).days
    if diff_days == 0:
        return "Today"
    if diff_days == 1:
        return "Yesterday"
    if 0 < diff_days < 7:
        return f"{diff_days}d ago"
    return f"{value.strftime('%b')} {value.day}"


class TaskStore:
    """Task list state for the active project."""

    def __init__(
        self,
        store: StoreGateway,
        terminal: TerminalGateway | None = None,
        hub: EventHub | None = None,
        active_path: Callable[[], str | None] | None = None,
    ) -> None:
        self.store = store
        self.terminal = terminal
        self.hub = hub or EventHub()
        self._active_path = active_path or (lambda: None)
        self._snapshot: TaskSnapshot | None = None
        self._mutations: dict[str, RequestHandle] = {}
        self.filter = TaskFilter.ALL

    @property
    def snapshot(self) -> TaskSnapshot | None:
        return self._snapshot

    # ------------------------------------------------------------------ #
    # Project switching                                                    #
    # ------------------------------------------------------------------ #

    def bind(self, hub: EventHub) -> None:
        """Reload on every project switch published on ``hub``."""
        hub.subscribe(ProjectChanged, self._on_project_changed)

    def _on_project_changed(self, event: ProjectChanged) -> None:
        self.reload(event.path)

    def reload(self, path: str | None = None) -> None:
        """Discard the view and request a fresh snapshot."""
        target = path if path is not None else self._active_path()
        self._snapshot = None
        for handle in self._mutations.values():
            handle.cancel()
        self._mutations.clear()
        self.hub.publish(TasksChanged(snapshot=None))
        if target:
            self.store.load_tasks(target)

    # ------------------------------------------------------------------ #
    # Requests                                                             #
    # ------------------------------------------------------------------ #

    def request_create(self, draft: TaskDraft) -> RequestHandle:
        fields = draft.to_fields()
        path = self._require_project()
        handle = self.store.create_task(path, fields)
        self._mutations[handle.request_id] = handle
        logger.info("Create task requested in {}: {}", path, fields["title"])
        return handle

    def request_transition(self, task_id: str, action: str) -> RequestHandle:
        status = ACTION_STATUS.get((action or "").strip().lower())
        if status is None:
            choices = ", ".join(ACTION_STATUS)
            raise TaskValidationError(f"Unknown task action '{action}'. Expected one of: {choices}")
        path = self._require_project()
        task = self._require_task(task_id)
        action = action.strip().lower()

        handle = self.store.update_task(path, task.id, {"status": status.value})
        self._mutations[handle.request_id] = handle
        if action == "start" and self.terminal is not None:
            self.terminal.send_command(task.agent_prompt())
        text, level = ACTION_NOTICE[action]
        self.hub.publish(Notice(text=text, level=level))
        logger.info("Task {} {} requested ({} -> {})", task.id, action, task.status.value, status.value)
        return handle

    def request_delete(self, task_id: str, confirm: ConfirmCallback | None = None) -> RequestHandle | None:
        path = self._require_project()
        task = self._require_task(task_id)
        if confirm is not None and not confirm("Delete this task?"):
            logger.debug("Delete of task {} declined", task.id)
            return None
        handle = self.store.delete_task(path, task.id)
        self._mutations[handle.request_id] = handle
        return handle

    def request_update(self, task_id: str, fields: Mapping[str, Any]) -> RequestHandle:
        unknown = sorted(set(fields) - EDITABLE_FIELDS)
        if unknown:
            raise TaskValidationError(f"Field(s) not editable: {', '.join(unknown)}")
        clean: dict[str, Any] = {}
        if "title" in fields:
            title = str(fields["title"] or "").strip()
            if not title:
                raise TaskValidationError("Task title is required")
            clean["title"] = title
        if "description" in fields:
            clean["description"] = str(fields["description"] or "").strip()
        if "priority" in fields:
            clean["priority"] = _priority(fields["priority"]).value
        if "category" in fields:
            clean["category"] = str(fields["category"] or "").strip() or DEFAULT_CATEGORY
        if not clean:
            raise TaskValidationError("Nothing to update")
        path = self._require_project()
        task = self._require_task(task_id)
        handle = self.store.update_task(path, task.id, clean)
        self._mutations[handle.request_id] = handle
        return handle

    # ------------------------------------------------------------------ #
    # Results from the store                                               #
    # ------------------------------------------------------------------ #

    def apply_snapshot(self, snapshot: TaskSnapshot) -> bool:
        """Replace the whole view; False when the push is stale."""
        if snapshot.path != self._active_path():
            logger.debug("Snapshot for inactive project {} dropped", snapshot.path)
            return False
        current = self._snapshot
        if current is not None and current.path == snapshot.path and snapshot.version < current.version:
            logger.debug("Out-of-order snapshot v{} dropped (have v{})", snapshot.version, current.version)
            return False
        self._snapshot = snapshot
        self.hub.publish(TasksChanged(snapshot=snapshot))
        return True

    def apply_mutation_result(self, request_id: str, path: str, success: bool, error: str | None = None) -> bool:
        """Record a mutation outcome; state still only changes via snapshots."""
        handle = self._mutations.pop(request_id, None)
        if handle is None or path != self._active_path():
            logger.debug("Mutation result {} for {} dropped", request_id, path)
            return False
        if not success:
            message = error or "unknown error"
            logger.warning("Task mutation {} failed in {}: {}", request_id, path, message)
            self.hub.publish(TaskMutationFailed(request_id=request_id, path=path, error=message))
            self.hub.publish(Notice(text=f"Task update failed: {message}", level="error"))
        return True

    # ------------------------------------------------------------------ #
    # Views                                                                #
    # ------------------------------------------------------------------ #

    def set_filter(self, task_filter: TaskFilter | str) -> None:
        self.filter = TaskFilter(task_filter)

    def filtered_view(self, task_filter: TaskFilter | str | None = None) -> list[Task]:
        return filter_tasks(self._snapshot, task_filter if task_filter is not None else self.filter)

    def counts(self) -> dict[TaskFilter, int]:
        return {f: len(self.filtered_view(f)) for f in TaskFilter}

    def pending_mutations(self) -> list[RequestHandle]:
        return [h for h in self._mutations.values() if h.pending]

    # ------------------------------------------------------------------ #
    # Helpers                                                              #
    # ------------------------------------------------------------------ #

    def _require_project(self) -> str:
        path = self._active_path()
        if not path:
            raise NoActiveProjectError()
        return path

    def _require_task(self, task_id: str) -> Task:
        task = self._snapshot.find(task_id) if self._snapshot is not None else None
        if task is None:
            raise TaskValidationError(f"Unknown task '{task_id}'")
        return task
