"""State synchronization and focus arbitration core."""

from frame_commander.core.editor import EditorSession, EditorState
from frame_commander.core.events import EventHub
from frame_commander.core.file_tree import FileNode, FileTreeNavigator
from frame_commander.core.focus import FocusCoordinator, FocusOwner
from frame_commander.core.project_context import ProjectContext
from frame_commander.core.tasks import Task, TaskDraft, TaskFilter, TaskSnapshot, TaskStore

__all__ = [
    "EditorSession",
    "EditorState",
    "EventHub",
    "FileNode",
    "FileTreeNavigator",
    "FocusCoordinator",
    "FocusOwner",
    "ProjectContext",
    "Task",
    "TaskDraft",
    "TaskFilter",
    "TaskSnapshot",
    "TaskStore",
]
