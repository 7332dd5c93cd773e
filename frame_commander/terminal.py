"""Terminal collaborator: per-project sessions and command dispatch."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from loguru import logger

CommandSink = Callable[[str, str], None]


@dataclass
class TerminalSession:
    """Commands sent to one project's agent session."""

    project: str
    commands: list[str] = field(default_factory=list)


class TerminalSessions:
    """Keeps one agent session per project and routes command text to the active one.

    The actual terminal emulation lives outside this package; ``sink`` receives
    ``(project, text)`` for every command that should be typed into it.
    """

    def __init__(self, sink: CommandSink | None = None, max_history: int = 200) -> None:
        self._sink = sink
        self._max_history = max_history
        self._sessions: dict[str, TerminalSession] = {}
        self._active: str = ""
        self._focused = False

    @property
    def active_project(self) -> str:
        return self._active

    @property
    def focused(self) -> bool:
        return self._focused

    def session(self, project: str) -> TerminalSession | None:
        return self._sessions.get(project)

    def switch_session(self, path: str) -> None:
        """Make ``path``'s session the active one, creating it on first use."""
        if path == self._active:
            return
        self._sessions.setdefault(path, TerminalSession(project=path))
        self._active = path
        logger.debug("Terminal session switched to {}", path)

    def send_command(self, text: str) -> None:
        """Type ``text`` followed by Enter into the active session."""
        if not self._active:
            logger.warning("No active terminal session; command dropped: {}", text[:60])
            return
        session = self._sessions[self._active]
        session.commands.append(text)
        if len(session.commands) > self._max_history:
            del session.commands[: -self._max_history]
        if self._sink is not None:
            self._sink(self._active, text)

    def focus(self) -> None:
        self._focused = True

    def blur(self) -> None:
        self._focused = False
