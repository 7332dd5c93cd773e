"""Single-document editor overlay state."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Callable

from loguru import logger

from frame_commander.core.errors import EditorStateError
from frame_commander.core.events import EditorError, EventHub, FileSaved
from frame_commander.core.focus import FocusCoordinator, FocusOwner
from frame_commander.core.ports import StoreGateway

if TYPE_CHECKING:
    from frame_commander.core.requests import RequestHandle

ConfirmCallback = Callable[[str], bool]

TAB_TEXT = "  "
SAVE_KEYS = frozenset({"ctrl+s", "cmd+s", "meta+s"})
CANCEL_KEYS = frozenset({"escape"})
TAB_KEYS = frozenset({"tab"})


class EditorState(str, Enum):
    CLOSED = "closed"
    LOADING = "loading"
    OPEN_CLEAN = "open_clean"
    OPEN_DIRTY = "open_dirty"


class EditorSession:
    """Edit/save/dirty tracking for one open file.

    ``closed -> loading -> open_clean <-> open_dirty -> closed``. Dirtiness is
    a plain comparison of the buffer against the last loaded or saved text,
    so typing a change and then removing it makes the buffer clean again.
    """

    def __init__(
        self,
        store: StoreGateway,
        focus: FocusCoordinator | None = None,
        hub: EventHub | None = None,
        confirm: ConfirmCallback | None = None,
        on_saved: Callable[[str], None] | None = None,
    ) -> None:
        self.store = store
        self.focus = focus
        self.hub = hub or EventHub()
        self.confirm = confirm
        self.on_saved = on_saved

        self.state = EditorState.CLOSED
        self.open_file_path: str | None = None
        self.original_content = ""
        self.buffer = ""
        self.cursor = 0
        self.selection_end = 0
        self.origin: FocusOwner | None = None
        self.status = ""

        self._read: RequestHandle | None = None
        self._pending_origin: FocusOwner | None = None
        self._pending_path: str | None = None
        self._write: RequestHandle | None = None
        self._written_content: str | None = None

    # ------------------------------------------------------------------ #
    # State                                                                #
    # ------------------------------------------------------------------ #

    @property
    def is_open(self) -> bool:
        return self.state in (EditorState.OPEN_CLEAN, EditorState.OPEN_DIRTY)

    @property
    def is_modified(self) -> bool:
        return self.is_open and self.buffer != self.original_content

    @property
    def is_saving(self) -> bool:
        return self._write is not None and self._write.pending

    # ------------------------------------------------------------------ #
    # Open                                                                 #
    # ------------------------------------------------------------------ #

    def open(self, path: str, origin: FocusOwner = FocusOwner.TERMINAL) -> "RequestHandle":
        """Request the file content; the editor shows it once the read returns."""
        if self.state is not EditorState.CLOSED:
            raise EditorStateError(f"Cannot open {path}: editor is {self.state.value}")
        self._pending_path = path
        self._pending_origin = origin
        self.state = EditorState.LOADING
        self._read = self.store.read_file(path)
        self._read.on_timeout(self._on_read_timeout)
        logger.debug("Editor loading {} (origin {})", path, origin.value)
        return self._read

    def apply_read_result(
        self,
        request_id: str,
        path: str,
        success: bool,
        content: str | None = None,
        error: str | None = None,
    ) -> bool:
        if self.state is not EditorState.LOADING or self._read is None or request_id != self._read.request_id:
            logger.debug("Read result {} for {} dropped", request_id, path)
            return False
        self._read = None
        if not success:
            self._reset()
            message = error or "unknown error"
            logger.error("Error opening file {}: {}", path, message)
            self.hub.publish(EditorError(path=path, message=f"Error opening file: {message}"))
            return True

        text = content or ""
        origin = self._pending_origin or FocusOwner.TERMINAL
        self._pending_origin = None
        self._pending_path = None
        self.open_file_path = path
        self.original_content = text
        self.buffer = text
        self.cursor = self.selection_end = 0
        self.origin = origin
        self.state = EditorState.OPEN_CLEAN
        self.status = "Ready"
        if self.focus is not None:
            self.focus.acquire(FocusOwner.EDITOR)
        return True

    def _on_read_timeout(self, handle: "RequestHandle") -> None:
        if self._read is not handle:
            return
        path = self._pending_path or handle.key
        self._reset()
        self.hub.publish(EditorError(path=path, message="Error opening file: request timed out"))

    # ------------------------------------------------------------------ #
    # Buffer                                                               #
    # ------------------------------------------------------------------ #

    def set_buffer(self, text: str) -> None:
        self._require_open("edit")
        self.buffer = text
        self.cursor = self.selection_end = min(self.cursor, len(text))
        self._check_modified()

    def select(self, start: int, end: int | None = None) -> None:
        self._require_open("select")
        start = max(0, min(start, len(self.buffer)))
        end = start if end is None else max(start, min(end, len(self.buffer)))
        self.cursor, self.selection_end = start, end

    def insert(self, text: str) -> None:
        """Replace the selection (or insert at the cursor) with ``text``."""
        self._require_open("edit")
        start, end = self.cursor, self.selection_end
        self.buffer = self.buffer[:start] + text + self.buffer[end:]
        self.cursor = self.selection_end = start + len(text)
        self._check_modified()

    def _check_modified(self) -> None:
        if self.buffer != self.original_content:
            self.state = EditorState.OPEN_DIRTY
            self.status = "Modified"
        else:
            self.state = EditorState.OPEN_CLEAN
            self.status = "Ready"

    # ------------------------------------------------------------------ #
    # Save                                                                 #
    # ------------------------------------------------------------------ #

    def save(self) -> "RequestHandle":
        self._require_open("save")
        path = self.open_file_path or ""
        self._written_content = self.buffer
        self._write = self.store.write_file(path, self.buffer)
        return self._write

    def apply_write_result(self, request_id: str, path: str, success: bool, error: str | None = None) -> bool:
        if self._write is None or request_id != self._write.request_id or path != self.open_file_path:
            logger.debug("Write result {} for {} dropped", request_id, path)
            return False
        written = self._written_content
        self._write = None
        self._written_content = None
        if not success:
            message = error or "unknown error"
            self.status = f"Save failed: {message}"
            logger.warning("Save of {} failed: {}", path, message)
            self.hub.publish(EditorError(path=path, message=self.status))
            return True

        self.original_content = written if written is not None else self.buffer
        self._check_modified()
        if self.state is EditorState.OPEN_CLEAN:
            self.status = "Saved!"
        logger.info("Saved {}", path)
        self.hub.publish(FileSaved(path=path))
        if self.on_saved is not None:
            self.on_saved(path)
        return True

    # ------------------------------------------------------------------ #
    # Close                                                                #
    # ------------------------------------------------------------------ #

    def close(self, confirm: ConfirmCallback | None = None) -> bool:
        """Close the overlay; a dirty buffer needs confirmation first."""
        self._require_open("close")
        if self.is_modified:
            ask = confirm or self.confirm
            if ask is None or not ask("You have unsaved changes. Close anyway?"):
                logger.debug("Close of {} aborted: unsaved changes", self.open_file_path)
                return False
        origin = self.origin
        self._reset()
        if self.focus is not None:
            self.focus.restore(origin)
        return True

    # ------------------------------------------------------------------ #
    # Keyboard                                                             #
    # ------------------------------------------------------------------ #

    def handle_key(self, key: str) -> bool:
        """Dispatch an editor shortcut; False when the key is not bound."""
        if not self.is_open:
            return False
        normalized = (key or "").strip().lower()
        if normalized in SAVE_KEYS:
            self.save()
            return True
        if normalized in CANCEL_KEYS:
            self.close()
            return True
        if normalized in TAB_KEYS:
            self.insert(TAB_TEXT)
            return True
        return False

    # ------------------------------------------------------------------ #
    # Helpers                                                              #
    # ------------------------------------------------------------------ #

    def _require_open(self, action: str) -> None:
        if not self.is_open:
            raise EditorStateError(f"Cannot {action}: editor is {self.state.value}")

    def _reset(self) -> None:
        if self._write is not None:
            self._write.cancel()
        self.state = EditorState.CLOSED
        self.open_file_path = None
        self.original_content = ""
        self.buffer = ""
        self.cursor = self.selection_end = 0
        self.origin = None
        self.status = ""
        self._read = None
        self._pending_origin = None
        self._pending_path = None
        self._write = None
        self._written_content = None
