"""Store service: answers bus requests and pushes canonical task snapshots."""

from __future__ import annotations

import asyncio

from loguru import logger

from frame_commander.bus.events import (
    ClassificationResult,
    ClassifyProject,
    CreateTask,
    DeleteTask,
    FileContent,
    FileTreeData,
    FileWritten,
    InitializeProject,
    InitializeResult,
    LoadFileTree,
    LoadTasks,
    ReadFile,
    StorePush,
    StoreRequest,
    TaskMutationResult,
    TasksSnapshotPush,
    UpdateTask,
    WriteFile,
)
from frame_commander.bus.queue import MessageBus
from frame_commander.store.local import LocalStore, StoreError


class StoreService:
    """Consumes store requests from the bus and publishes results.

    Every task mutation is answered twice: a ``TaskMutationResult`` for the
    request and, when it succeeded, a full snapshot push of the project.
    """

    def __init__(self, bus: MessageBus, store: LocalStore | None = None) -> None:
        self.bus = bus
        self.store = store or LocalStore()
        self._running = False

    async def run(self) -> None:
        self._running = True
        logger.info("Store service started")
        while self._running:
            try:
                request = await asyncio.wait_for(self.bus.consume_request(), timeout=1.0)
            except asyncio.TimeoutError:
                continue
            for push in self.handle(request):
                self.bus.publish_push(push)

    def stop(self) -> None:
        self._running = False
        logger.info("Store service stopping")

    def process_pending(self) -> int:
        """Answer every queued request without waiting; returns how many."""
        count = 0
        while not self.bus.requests.empty():
            request = self.bus.requests.get_nowait()
            for push in self.handle(request):
                self.bus.publish_push(push)
            count += 1
        return count

    def handle(self, request: StoreRequest) -> list[StorePush]:
        """Answer one request."""
        rid, path = request.request_id, request.path
        logger.debug("Store request {} {} {}", type(request).__name__, rid, path)

        if isinstance(request, ClassifyProject):
            return [ClassificationResult(path=path, request_id=rid, is_managed=self.store.is_managed(path))]

        if isinstance(request, InitializeProject):
            try:
                self.store.initialize(path, request.name)
            except (StoreError, OSError) as exc:
                return [InitializeResult(path=path, request_id=rid, success=False, error=str(exc))]
            return [InitializeResult(path=path, request_id=rid, success=True), *self._snapshot(path)]

        if isinstance(request, LoadTasks):
            return self._snapshot(path, rid)

        if isinstance(request, (CreateTask, UpdateTask, DeleteTask)):
            try:
                if isinstance(request, CreateTask):
                    self.store.create_task(path, request.fields)
                elif isinstance(request, UpdateTask):
                    self.store.update_task(path, request.task_id, request.fields)
                else:
                    self.store.delete_task(path, request.task_id)
            except (StoreError, OSError) as exc:
                logger.warning("Task mutation {} failed: {}", rid, exc)
                return [TaskMutationResult(path=path, request_id=rid, success=False, error=str(exc))]
            return [TaskMutationResult(path=path, request_id=rid, success=True), *self._snapshot(path)]

        if isinstance(request, ReadFile):
            try:
                content = self.store.read_file(path)
            except (StoreError, OSError) as exc:
                return [FileContent(path=path, request_id=rid, success=False, error=str(exc))]
            return [FileContent(path=path, request_id=rid, success=True, content=content)]

        if isinstance(request, WriteFile):
            try:
                self.store.write_file(path, request.content)
            except (StoreError, OSError) as exc:
                return [FileWritten(path=path, request_id=rid, success=False, error=str(exc))]
            return [FileWritten(path=path, request_id=rid, success=True)]

        if isinstance(request, LoadFileTree):
            try:
                nodes = self.store.file_tree(path)
            except (StoreError, OSError) as exc:
                logger.warning("File tree for {} unavailable: {}", path, exc)
                nodes = []
            return [FileTreeData(path=path, request_id=rid, nodes=nodes)]

        logger.warning("Unhandled store request {}", type(request).__name__)
        return []

    def _snapshot(self, path: str, request_id: str = "") -> list[StorePush]:
        try:
            data = self.store.load_tasks(path)
        except StoreError as exc:
            # No snapshot can be produced; the client keeps its last view.
            logger.error("Snapshot for {} failed: {}", path, exc)
            return []
        return [TasksSnapshotPush(
            path=path,
            request_id=request_id,
            tasks=data["tasks"],
            version=int(data.get("version", 0)),
        )]
