"""Composition root: wires the core state machines to the bus and the terminal."""

from __future__ import annotations

import asyncio
from typing import Callable

from loguru import logger

from frame_commander.bus.events import (
    ClassificationResult,
    FileContent,
    FileTreeData,
    FileWritten,
    InitializeResult,
    TaskMutationResult,
    TasksSnapshotPush,
)
from frame_commander.bus.gateway import BusStoreGateway
from frame_commander.bus.queue import MessageBus
from frame_commander.config.schema import Config
from frame_commander.core.editor import EditorSession, EditorState
from frame_commander.core.events import EventHub, FileOpened, FocusChanged, Notice
from frame_commander.core.file_tree import FileNode, FileTreeNavigator
from frame_commander.core.focus import FocusCoordinator, FocusOwner
from frame_commander.core.project_context import ProjectContext
from frame_commander.core.requests import RequestTracker
from frame_commander.core.tasks import TaskSnapshot, TaskStore
from frame_commander.store.service import StoreService
from frame_commander.terminal import CommandSink, TerminalSessions

ConfirmCallback = Callable[[str], bool]


class Shell:
    """Owns one instance of every surface state and routes store pushes to them."""

    def __init__(
        self,
        config: Config | None = None,
        bus: MessageBus | None = None,
        confirm: ConfirmCallback | None = None,
        command_sink: CommandSink | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.config = config or Config()
        self.bus = bus or MessageBus()
        self.hub = EventHub()
        self.confirm = confirm
        self.tracker = RequestTracker(default_timeout_s=self.config.requests.timeout_s, clock=clock)
        self.gateway = BusStoreGateway(self.bus, self.tracker)
        self.terminal = TerminalSessions(sink=command_sink)

        self.focus = FocusCoordinator(self.hub, history_depth=self.config.focus.history_depth)
        self.project = ProjectContext(self.gateway, self.terminal, self.hub)
        self.file_tree = FileTreeNavigator(self.gateway, self.focus, self.hub)
        self.tasks = TaskStore(self.gateway, self.terminal, self.hub, active_path=lambda: self.project.active_path)
        self.editor = EditorSession(
            self.gateway,
            focus=self.focus,
            hub=self.hub,
            confirm=confirm,
            on_saved=lambda _path: self.file_tree.refresh(),
        )

        self.focus.register(FocusOwner.TERMINAL, self.terminal.focus)
        self.focus.register(FocusOwner.FILE_TREE, self.file_tree.focus)

        # Registration order is the fan-out order on project switch.
        self.file_tree.bind(self.hub)
        self.tasks.bind(self.hub)
        self.hub.subscribe(FileOpened, self._on_file_opened)
        self.hub.subscribe(FocusChanged, self._on_focus_changed)

        self.bus.subscribe_push(ClassificationResult, self._on_classification)
        self.bus.subscribe_push(InitializeResult, self._on_initialize_result)
        self.bus.subscribe_push(TasksSnapshotPush, self._on_snapshot)
        self.bus.subscribe_push(TaskMutationResult, self._on_mutation_result)
        self.bus.subscribe_push(FileContent, self._on_file_content)
        self.bus.subscribe_push(FileWritten, self._on_file_written)
        self.bus.subscribe_push(FileTreeData, self._on_file_tree)

    # ------------------------------------------------------------------ #
    # User entry points                                                    #
    # ------------------------------------------------------------------ #

    def open_project(self, path: str | None) -> None:
        self.project.set_active_path(path)

    def open_file(self, path: str, origin: FocusOwner | None = None) -> bool:
        """Open ``path`` in the editor overlay, remembering who had focus."""
        if self.editor.state is not EditorState.CLOSED:
            self.hub.publish(Notice(text="Close the open file first", level="error"))
            return False
        self.editor.open(path, origin or self.focus.current)
        return True

    def handle_key(self, key: str) -> bool:
        """Route a key press to the surface that owns input."""
        owner = self.focus.current
        if owner is FocusOwner.EDITOR:
            return self.editor.handle_key(key)
        if owner is FocusOwner.FILE_TREE:
            return self.file_tree.handle_key(key)
        return False

    # ------------------------------------------------------------------ #
    # Event routing                                                        #
    # ------------------------------------------------------------------ #

    def _on_file_opened(self, event: FileOpened) -> None:
        self.open_file(event.path, event.source)

    def _on_focus_changed(self, event: FocusChanged) -> None:
        if event.previous is FocusOwner.FILE_TREE and event.owner is not FocusOwner.FILE_TREE:
            self.file_tree.unfocus()
        if event.previous is FocusOwner.TERMINAL and event.owner is not FocusOwner.TERMINAL:
            self.terminal.blur()

    def _on_classification(self, msg: ClassificationResult) -> None:
        self.tracker.resolve(msg.request_id)
        self.project.apply_classification(msg.path, msg.is_managed, msg.request_id)

    def _on_initialize_result(self, msg: InitializeResult) -> None:
        self.tracker.resolve(msg.request_id)
        self.project.apply_initialize_result(msg.path, msg.success, msg.error)

    def _on_snapshot(self, msg: TasksSnapshotPush) -> None:
        if msg.request_id:
            self.tracker.resolve(msg.request_id)
        self.tasks.apply_snapshot(TaskSnapshot.from_payload(msg.path, msg.tasks, msg.version))

    def _on_mutation_result(self, msg: TaskMutationResult) -> None:
        if self.tracker.resolve(msg.request_id) is None:
            return
        self.tasks.apply_mutation_result(msg.request_id, msg.path, msg.success, msg.error)

    def _on_file_content(self, msg: FileContent) -> None:
        if self.tracker.resolve(msg.request_id) is None:
            return
        self.editor.apply_read_result(msg.request_id, msg.path, msg.success, msg.content, msg.error)

    def _on_file_written(self, msg: FileWritten) -> None:
        if self.tracker.resolve(msg.request_id) is None:
            return
        self.editor.apply_write_result(msg.request_id, msg.path, msg.success, msg.error)

    def _on_file_tree(self, msg: FileTreeData) -> None:
        self.tracker.resolve(msg.request_id)
        self.file_tree.apply_tree(msg.path, [FileNode.from_payload(n) for n in msg.nodes])

    # ------------------------------------------------------------------ #
    # Loop integration                                                     #
    # ------------------------------------------------------------------ #

    async def pump(self) -> int:
        """Deliver every queued push and expire overdue requests."""
        delivered = 0
        while not self.bus.pushes.empty():
            await self.bus.deliver(self.bus.pushes.get_nowait())
            delivered += 1
        self.tracker.expire()
        return delivered

    async def settle(self, service: StoreService, max_rounds: int = 100) -> None:
        """Run store and shell in turn until neither has anything queued."""
        for _ in range(max_rounds):
            answered = service.process_pending()
            delivered = await self.pump()
            if not answered and not delivered:
                return
            await asyncio.sleep(0)
        logger.warning("Shell did not settle after {} rounds", max_rounds)

    async def run(self, tick_s: float = 0.5) -> None:
        """Dispatch pushes forever; expire overdue requests every ``tick_s``."""
        dispatch = asyncio.create_task(self.bus.dispatch_pushes())
        try:
            while True:
                await asyncio.sleep(tick_s)
                self.tracker.expire()
        finally:
            self.bus.stop()
            dispatch.cancel()
            await asyncio.gather(dispatch, return_exceptions=True)
