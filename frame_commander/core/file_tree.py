"""Keyboard navigation over the collapsible project file tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Mapping

from loguru import logger

from frame_commander.core.events import EventHub, FileOpened, ProjectChanged
from frame_commander.core.focus import FocusCoordinator, FocusOwner
from frame_commander.core.ports import StoreGateway


@dataclass(frozen=True)
class FileNode:
    """One entry of the file tree."""

    path: str
    name: str
    is_directory: bool = False
    children: tuple["FileNode", ...] = field(default_factory=tuple)

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "FileNode":
        return cls(
            path=str(data.get("path", "")),
            name=str(data.get("name", "")),
            is_directory=bool(data.get("isDirectory", False)),
            children=tuple(cls.from_payload(c) for c in data.get("children") or []),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "name": self.name,
            "isDirectory": self.is_directory,
            "children": [c.to_payload() for c in self.children],
        }


@dataclass(frozen=True)
class TreeItem:
    """A node together with its depth and expansion state, as shown."""

    node: FileNode
    depth: int
    expanded: bool


def _walk(nodes: Iterable[FileNode], parents: tuple[str, ...] = ()) -> Iterator[tuple[FileNode, tuple[str, ...]]]:
    for node in nodes:
        yield node, parents
        if node.children:
            yield from _walk(node.children, parents + (node.path,))


class FileTreeNavigator:
    """Cursor over the visible items of the tree.

    Directories start collapsed. The cursor is kept as a path, so expanding
    or collapsing directories changes which items are visible without moving
    it. Escape leaves the tree but remembers the cursor, so re-entering via
    ``focus()`` resumes where the user left.
    """

    def __init__(
        self,
        store: StoreGateway | None = None,
        focus: FocusCoordinator | None = None,
        hub: EventHub | None = None,
    ) -> None:
        self.store = store
        self.focus_coordinator = focus
        self.hub = hub or EventHub()
        self.root_path: str | None = None
        self._nodes: tuple[FileNode, ...] = ()
        self._index: dict[str, tuple[FileNode, tuple[str, ...]]] = {}
        self._expanded: set[str] = set()
        self._cursor: str | None = None
        self._focused = False

    # ------------------------------------------------------------------ #
    # Tree data                                                            #
    # ------------------------------------------------------------------ #

    def bind(self, hub: EventHub) -> None:
        """Reload on every project switch published on ``hub``."""
        hub.subscribe(ProjectChanged, self._on_project_changed)

    def _on_project_changed(self, event: ProjectChanged) -> None:
        self.clear()
        self.root_path = event.path
        self.refresh()

    def refresh(self) -> None:
        """Request the tree of the current root from the store."""
        if self.root_path and self.store is not None:
            self.store.load_file_tree(self.root_path)

    def clear(self) -> None:
        self._nodes = ()
        self._index = {}
        self._expanded.clear()
        self._cursor = None
        self._focused = False

    def apply_tree(self, root: str, nodes: Iterable[FileNode]) -> bool:
        """Apply pushed tree data; dropped when it is for another root."""
        if root != self.root_path:
            logger.debug("File tree for {} dropped (root {})", root, self.root_path)
            return False
        self.load(nodes)
        return True

    def load(self, nodes: Iterable[FileNode]) -> None:
        """Replace the tree, keeping expansion and cursor where paths survive."""
        self._nodes = tuple(nodes)
        self._index = {node.path: (node, parents) for node, parents in _walk(self._nodes)}
        self._expanded = {p for p in self._expanded if p in self._index and self._index[p][0].is_directory}
        if self._cursor is not None and self._cursor not in self._index:
            self._cursor = None
        if self._focused and self._cursor is None:
            items = self.visible_items()
            self._cursor = items[0].node.path if items else None
            self._focused = self._cursor is not None

    @property
    def nodes(self) -> tuple[FileNode, ...]:
        return self._nodes

    # ------------------------------------------------------------------ #
    # Visibility                                                           #
    # ------------------------------------------------------------------ #

    def is_expanded(self, path: str) -> bool:
        return path in self._expanded

    def is_visible(self, path: str) -> bool:
        entry = self._index.get(path)
        return entry is not None and all(p in self._expanded for p in entry[1])

    def visible_items(self) -> list[TreeItem]:
        items: list[TreeItem] = []

        def visit(nodes: Iterable[FileNode], depth: int) -> None:
            for node in nodes:
                expanded = node.is_directory and node.path in self._expanded
                items.append(TreeItem(node=node, depth=depth, expanded=expanded))
                if expanded:
                    visit(node.children, depth + 1)

        visit(self._nodes, 0)
        return items

    def expand(self, path: str) -> None:
        if self._is_directory(path):
            self._expanded.add(path)

    def collapse(self, path: str) -> None:
        self._expanded.discard(path)

    def toggle(self, path: str) -> None:
        if path in self._expanded:
            self.collapse(path)
        else:
            self.expand(path)

    # ------------------------------------------------------------------ #
    # Focus                                                                #
    # ------------------------------------------------------------------ #

    @property
    def focused(self) -> bool:
        return self._focused

    @property
    def focused_path(self) -> str | None:
        return self._cursor if self._focused else None

    @property
    def remembered_path(self) -> str | None:
        return self._cursor

    def focus(self) -> bool:
        """Enter the tree at the remembered cursor (or the first item)."""
        items = self.visible_items()
        if not items:
            return False
        target = self._cursor
        if target is not None and not self.is_visible(target):
            target = self._nearest_visible_ancestor(target)
        if target is None:
            target = items[0].node.path
        self._cursor = target
        self._focused = True
        if self.focus_coordinator is not None:
            self.focus_coordinator.acquire(FocusOwner.FILE_TREE)
        return True

    def unfocus(self) -> None:
        """Leave the tree, keeping the cursor for the next re-entry."""
        self._focused = False

    def blur(self) -> None:
        """Leave the tree and forget the cursor."""
        self._focused = False
        self._cursor = None

    # ------------------------------------------------------------------ #
    # Keyboard                                                             #
    # ------------------------------------------------------------------ #

    def handle_key(self, key: str) -> bool:
        """Apply a navigation key; False when unfocused or unbound."""
        if not self._focused:
            return False
        if key in ("ArrowDown", "ArrowUp"):
            self._move(1 if key == "ArrowDown" else -1)
            return True
        if key == "ArrowRight":
            if self._cursor is not None and self._is_directory(self._cursor):
                self.expand(self._cursor)
            return True
        if key == "ArrowLeft":
            if self._cursor is not None and self._is_directory(self._cursor):
                self.collapse(self._cursor)
            return True
        if key == "Enter":
            if self._cursor is not None:
                self.activate(self._cursor)
            return True
        if key == "Escape":
            self.unfocus()
            if self.focus_coordinator is not None:
                self.focus_coordinator.give(FocusOwner.TERMINAL)
            return True
        return False

    def activate(self, path: str) -> None:
        """Open a file or toggle a directory."""
        entry = self._index.get(path)
        if entry is None:
            return
        node = entry[0]
        if node.is_directory:
            self.toggle(path)
        else:
            self.hub.publish(FileOpened(path=path, source=FocusOwner.FILE_TREE))

    def _move(self, step: int) -> None:
        items = self.visible_items()
        if not items:
            return
        paths = [item.node.path for item in items]
        try:
            index = paths.index(self._cursor) if self._cursor is not None else -1
        except ValueError:
            index = -1
        if index < 0:
            index = 0 if step > 0 else len(paths) - 1
        else:
            index = (index + step) % len(paths)
        self._cursor = paths[index]

    def _is_directory(self, path: str) -> bool:
        entry = self._index.get(path)
        return entry is not None and entry[0].is_directory

    def _nearest_visible_ancestor(self, path: str) -> str | None:
        entry = self._index.get(path)
        if entry is None:
            return None
        for parent in reversed(entry[1]):
            if self.is_visible(parent):
                return parent
        return None
