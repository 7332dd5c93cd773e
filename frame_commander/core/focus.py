"""Keyboard focus ownership between the terminal, file tree and editor."""

from __future__ import annotations

from collections import deque
from enum import Enum
from typing import TYPE_CHECKING, Callable

from loguru import logger

from frame_commander.core.events import FocusChanged

if TYPE_CHECKING:
    from frame_commander.core.events import EventHub


class FocusOwner(str, Enum):
    TERMINAL = "terminal"
    FILE_TREE = "file_tree"
    EDITOR = "editor"
    NONE = "none"


class FocusCoordinator:
    """Tracks which surface owns keyboard input and hands it back on close.

    Each surface registers a callable that moves input into it. The file
    tree's callable is its own re-entry (last remembered cursor). Only
    non-editor owners are remembered as restore targets; ``history_depth``
    bounds how many of them are kept (1 matches the classic behaviour of a
    single remembered origin).
    """

    def __init__(self, hub: EventHub | None = None, history_depth: int = 1) -> None:
        self._hub = hub
        self._surfaces: dict[FocusOwner, Callable[[], bool | None]] = {}
        self._history: deque[FocusOwner] = deque(maxlen=max(1, history_depth))
        self._current = FocusOwner.NONE

    @property
    def current(self) -> FocusOwner:
        return self._current

    @property
    def history(self) -> list[FocusOwner]:
        return list(self._history)

    def register(self, owner: FocusOwner, focus: Callable[[], bool | None]) -> None:
        self._surfaces[owner] = focus

    def unregister(self, owner: FocusOwner) -> None:
        self._surfaces.pop(owner, None)
        if self._current is owner:
            self._set_current(FocusOwner.NONE)

    def has_surface(self, owner: FocusOwner) -> bool:
        return owner in self._surfaces

    def acquire(self, owner: FocusOwner) -> None:
        """Record ``owner`` as the current input owner."""
        if owner not in (FocusOwner.EDITOR, FocusOwner.NONE):
            if not self._history or self._history[-1] is not owner:
                self._history.append(owner)
        self._set_current(owner)

    def give(self, owner: FocusOwner) -> bool:
        """Move input straight to ``owner``, without origin resolution."""
        if not self._enter(owner):
            return False
        self.acquire(owner)
        return True

    def restore(self, origin: FocusOwner | None) -> FocusOwner | None:
        """Give input back after an overlay closes.

        A file-tree origin re-enters the file tree; anything else goes to the
        terminal. A surface that is gone, or whose focus callable returns
        False, is skipped in favour of the terminal and then the most recent
        remembered owner; with nothing left focus is NONE.
        """
        target = FocusOwner.FILE_TREE if origin is FocusOwner.FILE_TREE else FocusOwner.TERMINAL
        candidates: list[FocusOwner] = []
        for owner in (target, FocusOwner.TERMINAL, *reversed(self._history)):
            if owner not in candidates:
                candidates.append(owner)
        for owner in candidates:
            if self._enter(owner):
                self.acquire(owner)
                return owner
        logger.debug("Focus restore to {} skipped: no surface available", target.value)
        self._set_current(FocusOwner.NONE)
        return None

    def _enter(self, owner: FocusOwner) -> bool:
        """Run ``owner``'s focus callable; a False return means it cannot take input."""
        focus = self._surfaces.get(owner)
        if focus is None:
            return False
        if focus() is False:
            logger.debug("Surface {} refused focus", owner.value)
            return False
        return True

    def _set_current(self, owner: FocusOwner) -> None:
        previous = self._current
        self._current = owner
        if previous is not owner and self._hub is not None:
            self._hub.publish(FocusChanged(owner=owner, previous=previous))
