"""Filesystem-backed project store: metadata, tasks and files.

Directory layout inside a managed project::

    {project}/
        .frame/
            config.json     # name, createdAt, marker for managed projects
            tasks.json      # task buckets + monotonically increasing version
"""

from __future__ import annotations

import json
import secrets
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from loguru import logger

from frame_commander.config.schema import StoreConfig

_BUCKETS = ("pending", "inProgress", "completed")
_STATUS_BUCKET = {"pending": "pending", "in_progress": "inProgress", "completed": "completed"}
_EDITABLE = ("title", "description", "priority", "category")


def _now() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def _task_id() -> str:
    return f"task-{secrets.token_hex(4)}"


class StoreError(Exception):
    """Store operation failed; the message is reported back to the caller."""


class LocalStore:
    """Synchronous store operations over the project directory."""

    def __init__(self, config: StoreConfig | None = None) -> None:
        self.config = config or StoreConfig()

    # ------------------------------------------------------------------ #
    # Project metadata                                                     #
    # ------------------------------------------------------------------ #

    def _meta_dir(self, project: str) -> Path:
        return Path(project) / self.config.marker_dir

    def is_managed(self, project: str) -> bool:
        return (self._meta_dir(project) / self.config.config_file).is_file()

    def initialize(self, project: str, name: str) -> None:
        root = Path(project)
        if not root.is_dir():
            raise StoreError(f"Not a directory: {project}")
        meta = self._meta_dir(project)
        meta.mkdir(parents=True, exist_ok=True)
        config_path = meta / self.config.config_file
        if not config_path.exists():
            payload = {"name": name or root.name, "createdAt": _now(), "version": 1}
            config_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        tasks_path = meta / self.config.tasks_file
        if not tasks_path.exists():
            self._write_tasks(project, self._empty_tasks(name or root.name))
        logger.info("Initialized managed project {}", project)

    # ------------------------------------------------------------------ #
    # Tasks                                                                #
    # ------------------------------------------------------------------ #

    def _tasks_path(self, project: str) -> Path:
        return self._meta_dir(project) / self.config.tasks_file

    @staticmethod
    def _empty_tasks(name: str = "") -> dict[str, Any]:
        return {
            "project": name,
            "version": 0,
            "lastUpdated": _now(),
            "tasks": {bucket: [] for bucket in _BUCKETS},
        }

    def load_tasks(self, project: str) -> dict[str, Any]:
        """Return the stored document; an empty one when none exists."""
        path = self._tasks_path(project)
        if not path.exists():
            return self._empty_tasks(Path(project).name)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise StoreError(f"Cannot read tasks: {exc}") from exc
        tasks = data.get("tasks") if isinstance(data, dict) else None
        if not isinstance(tasks, dict):
            raise StoreError(f"Malformed tasks file: {path}")
        for bucket in _BUCKETS:
            items = tasks.setdefault(bucket, [])
            if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
                raise StoreError(f"Malformed tasks file: bucket '{bucket}' in {path}")
        try:
            data["version"] = int(data.get("version", 0))
        except (TypeError, ValueError) as exc:
            raise StoreError(f"Malformed tasks file: version in {path}") from exc
        return data

    def _write_tasks(self, project: str, data: dict[str, Any]) -> None:
        path = self._tasks_path(project)
        path.parent.mkdir(parents=True, exist_ok=True)
        data["lastUpdated"] = _now()
        path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")

    def _commit(self, project: str, data: dict[str, Any]) -> None:
        data["version"] = int(data.get("version", 0)) + 1
        self._write_tasks(project, data)

    def create_task(self, project: str, fields: dict[str, Any]) -> dict[str, Any]:
        title = str(fields.get("title") or "").strip()
        if not title:
            raise StoreError("Task title is required")
        now = _now()
        task = {
            "id": _task_id(),
            "title": title,
            "description": str(fields.get("description") or ""),
            "priority": str(fields.get("priority") or "medium"),
            "category": str(fields.get("category") or "feature"),
            "createdAt": now,
            "updatedAt": now,
            "completedAt": None,
        }
        data = self.load_tasks(project)
        data["tasks"]["pending"].append(task)
        self._commit(project, data)
        logger.info("Task {} created in {}", task["id"], project)
        return task

    def update_task(self, project: str, task_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        data = self.load_tasks(project)
        bucket, task = self._find(data, task_id)
        now = _now()
        for key in _EDITABLE:
            if key in fields:
                task[key] = fields[key]
        status = fields.get("status")
        if status is not None:
            target = _STATUS_BUCKET.get(str(status))
            if target is None:
                raise StoreError(f"Unknown status '{status}'")
            if target != bucket:
                data["tasks"][bucket].remove(task)
                data["tasks"][target].append(task)
                if target == "completed":
                    task["completedAt"] = now
                elif bucket == "completed":
                    task["completedAt"] = None
        task["updatedAt"] = now
        self._commit(project, data)
        return task

    def delete_task(self, project: str, task_id: str) -> None:
        data = self.load_tasks(project)
        bucket, task = self._find(data, task_id)
        data["tasks"][bucket].remove(task)
        self._commit(project, data)
        logger.info("Task {} deleted from {}", task_id, project)

    @staticmethod
    def _find(data: dict[str, Any], task_id: str) -> tuple[str, dict[str, Any]]:
        for bucket in _BUCKETS:
            for task in data["tasks"][bucket]:
                if task.get("id") == task_id:
                    return bucket, task
        raise StoreError(f"Task not found: {task_id}")

    # ------------------------------------------------------------------ #
    # Files                                                                #
    # ------------------------------------------------------------------ #

    def read_file(self, path: str) -> str:
        p = Path(path)
        if not p.is_file():
            raise StoreError(f"File not found: {path}")
        if p.stat().st_size > self.config.max_file_bytes:
            raise StoreError(f"File too large to edit: {path}")
        try:
            return p.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise StoreError(f"Not a text file: {path}") from exc
        except OSError as exc:
            raise StoreError(str(exc)) from exc

    def write_file(self, path: str, content: str) -> None:
        p = Path(path)
        if p.is_dir():
            raise StoreError(f"Is a directory: {path}")
        try:
            p.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise StoreError(str(exc)) from exc

    def file_tree(self, project: str) -> list[dict[str, Any]]:
        """Nested listing: directories first, then files, both by name."""
        root = Path(project)
        if not root.is_dir():
            raise StoreError(f"Folder not found: {project}")
        ignored = set(self.config.tree_ignore)
        counter = [0]

        def render_dir(dir_path: Path, depth: int) -> list[dict[str, Any]]:
            try:
                raw = list(dir_path.iterdir())
            except PermissionError:
                return []
            entries = sorted(raw, key=lambda e: (not e.is_dir(), e.name.lower()))
            nodes: list[dict[str, Any]] = []
            for entry in entries:
                if entry.name in ignored:
                    continue
                if counter[0] >= self.config.tree_max_entries:
                    break
                counter[0] += 1
                is_dir = entry.is_dir()
                children = render_dir(entry, depth + 1) if is_dir and depth < self.config.tree_max_depth else []
                nodes.append({
                    "name": entry.name,
                    "path": str(entry),
                    "isDirectory": is_dir,
                    "children": children,
                })
            return nodes

        return render_dir(root, 1)
