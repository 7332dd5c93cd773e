"""Active project state shared by every surface."""

from __future__ import annotations

import re
from typing import Callable

from loguru import logger

from frame_commander.core.events import (
    EventHub,
    ManagedStatusChanged,
    Notice,
    ProjectChanged,
    ProjectInitialized,
)
from frame_commander.core.ports import StoreGateway, TerminalGateway
from frame_commander.core.requests import RequestHandle

ConfirmCallback = Callable[[str], bool]


def project_name(path: str) -> str:
    """Last component of a POSIX or Windows path."""
    parts = [p for p in re.split(r"[\\/]+", path) if p]
    return parts[-1] if parts else path


class ProjectContext:
    """Holds the active project path and its managed-project flag.

    ``set_active_path`` is the only writer of ``active_path``. Listeners run
    synchronously in registration order and always see the value that is
    current when they are called; a listener that switches the project again
    supersedes the remaining fan-out of the older switch.
    """

    def __init__(
        self,
        store: StoreGateway,
        terminal: TerminalGateway | None = None,
        hub: EventHub | None = None,
    ) -> None:
        self.store = store
        self.terminal = terminal
        self.hub = hub or EventHub()
        self._active_path: str | None = None
        self._is_managed = False
        self._generation = 0
        self._classify_request: RequestHandle | None = None
        self._init_request: RequestHandle | None = None

    @property
    def active_path(self) -> str | None:
        return self._active_path

    @property
    def is_managed_project(self) -> bool:
        return self._is_managed

    # ------------------------------------------------------------------ #
    # Listener registration                                                #
    # ------------------------------------------------------------------ #

    def on_project_change(self, callback: Callable[[str | None, str | None], None]) -> None:
        self.hub.subscribe(ProjectChanged, _Adapter(callback, lambda e: (e.path, e.previous)))

    def on_status_change(self, callback: Callable[[bool], None]) -> None:
        self.hub.subscribe(ManagedStatusChanged, _Adapter(callback, lambda e: (e.is_managed,)))

    def on_initialized(self, callback: Callable[[str], None]) -> None:
        self.hub.subscribe(ProjectInitialized, _Adapter(callback, lambda e: (e.path,)))

    # ------------------------------------------------------------------ #
    # Mutation                                                             #
    # ------------------------------------------------------------------ #

    def set_active_path(self, path: str | None) -> None:
        """Switch the active project and notify every listener."""
        path = path or None
        previous = self._active_path
        self._active_path = path
        self._generation += 1
        generation = self._generation
        logger.info("Active project: {} (was {})", path or "<none>", previous or "<none>")

        if self._classify_request is not None:
            self._classify_request.cancel()
            self._classify_request = None

        if path is not None:
            if self.terminal is not None:
                self.terminal.switch_session(path)
            self._classify_request = self.store.classify_project(path)
        else:
            self.set_managed_project(False)

        if generation != self._generation:
            # A status listener already switched to another project.
            return
        self.hub.publish(
            ProjectChanged(path=path, previous=previous),
            still_current=lambda: generation == self._generation,
        )

    def set_managed_project(self, flag: bool) -> None:
        self._is_managed = bool(flag)
        self.hub.publish(ManagedStatusChanged(is_managed=self._is_managed))

    def apply_classification(self, path: str, is_managed: bool, request_id: str | None = None) -> bool:
        """Apply a classification result if it is for the current project."""
        if path != self._active_path:
            logger.debug("Stale classification for {} dropped (active: {})", path, self._active_path)
            return False
        if self._classify_request is not None and request_id == self._classify_request.request_id:
            self._classify_request = None
        self.set_managed_project(is_managed)
        return True

    # ------------------------------------------------------------------ #
    # Initialize as managed project                                        #
    # ------------------------------------------------------------------ #

    def request_initialize(self, confirm: ConfirmCallback | None = None) -> bool:
        """Ask the store to initialize the active project as managed."""
        path = self._active_path
        if path is None:
            return False
        name = project_name(path)
        if confirm is not None and not confirm(f"Initialize '{name}' as a Frame project?"):
            logger.debug("Initialize of {} declined", path)
            return False
        self._init_request = self.store.initialize_project(path, name)
        return True

    def apply_initialize_result(self, path: str, success: bool, error: str | None = None) -> bool:
        if path != self._active_path:
            logger.debug("Stale initialize result for {} dropped", path)
            return False
        self._init_request = None
        if not success:
            logger.warning("Initialize of {} failed: {}", path, error or "unknown error")
            self.hub.publish(Notice(text=f"Initialize failed: {error or 'unknown error'}", level="error"))
            return False
        self.set_managed_project(True)
        self.hub.publish(ProjectInitialized(path=path))
        return True


class _Adapter:
    """Unpacks an event into the positional arguments of a plain callback."""

    def __init__(self, callback: Callable[..., None], unpack: Callable[[object], tuple]) -> None:
        self.callback = callback
        self.unpack = unpack

    def __call__(self, event: object) -> None:
        self.callback(*self.unpack(event))

    def __eq__(self, other: object) -> bool:
        # Equal to the wrapped callback too, so EventHub.unsubscribe(type, callback) removes it.
        if isinstance(other, _Adapter):
            return other.callback == self.callback
        return other == self.callback

    def __hash__(self) -> int:
        return hash(self.callback)
