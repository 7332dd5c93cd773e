"""Error taxonomy for the frame-commander core."""

from __future__ import annotations


class FrameCommanderError(Exception):
    """Base class for errors surfaced to the user."""


class TaskValidationError(FrameCommanderError):
    """Task request rejected locally; nothing was sent to the store."""


class NoActiveProjectError(TaskValidationError):
    """Operation needs an active project and none is selected."""

    def __init__(self, message: str = "No project selected") -> None:
        super().__init__(message)


class EditorStateError(FrameCommanderError):
    """Editor operation attempted from a state that does not allow it."""
