"""Core event contracts and typed pub/sub hub."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from loguru import logger

if TYPE_CHECKING:
    from frame_commander.core.focus import FocusOwner
    from frame_commander.core.tasks import TaskSnapshot

E = TypeVar("E")
EventHandler = Callable[[Any], None]


@dataclass(frozen=True)
class ProjectChanged:
    """Active project switched (path may be None for "no project")."""

    path: str | None
    previous: str | None


@dataclass(frozen=True)
class ManagedStatusChanged:
    """Managed-project flag updated for the active project."""

    is_managed: bool


@dataclass(frozen=True)
class ProjectInitialized:
    """Active project was initialized as a managed project."""

    path: str


@dataclass(frozen=True)
class TasksChanged:
    """Client task view replaced by a new snapshot (or discarded)."""

    snapshot: TaskSnapshot | None


@dataclass(frozen=True)
class TaskMutationFailed:
    """Store reported a failed create/update/delete."""

    request_id: str
    path: str
    error: str


@dataclass(frozen=True)
class FileOpened:
    """File activation from a surface; the shell opens it in the editor."""

    path: str
    source: FocusOwner


@dataclass(frozen=True)
class FileSaved:
    """Editor buffer persisted successfully."""

    path: str


@dataclass(frozen=True)
class EditorError:
    """Read or write failure surfaced by the editor."""

    path: str
    message: str


@dataclass(frozen=True)
class FocusChanged:
    """Keyboard focus moved to another surface."""

    owner: FocusOwner
    previous: FocusOwner


@dataclass(frozen=True)
class Notice:
    """Short user-facing message (toast)."""

    text: str
    level: str = "info"  # "info" | "success" | "error"


class EventHub:
    """In-process pub/sub keyed by event type.

    Handlers for one event type are invoked in registration order. A handler
    that raises is logged and the remaining handlers still run.
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> None:
        handlers = self._handlers[event_type]
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(self, event_type: type, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def handlers(self, event_type: type) -> list[EventHandler]:
        return list(self._handlers.get(event_type, []))

    def publish(self, event: object, still_current: Callable[[], bool] | None = None) -> int:
        """Deliver ``event`` to its subscribers; return how many were invoked.

        ``still_current`` is checked before every handler; once it returns
        False the remaining handlers are skipped.
        """
        delivered = 0
        for handler in self.handlers(type(event)):
            if still_current is not None and not still_current():
                logger.debug("Fan-out of {} superseded after {} handler(s)", type(event).__name__, delivered)
                break
            try:
                handler(event)
            except Exception:
                logger.exception("Handler {!r} failed for {}", handler, type(event).__name__)
            delivered += 1
        return delivered
