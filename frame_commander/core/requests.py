"""Request handles for fire-and-forget calls across the store boundary.

A handle is returned for every request the core sends. The matching result
resolves it; a handle that was cancelled or has expired swallows its result,
so late replies never reach a state machine that has moved on. Without a
timeout a handle may stay pending forever, which is the default.
"""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from loguru import logger


class RequestState(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"


@dataclass
class RequestHandle:
    """One outstanding request."""

    request_id: str
    kind: str
    key: str
    created_at: float
    deadline: float | None = None
    state: RequestState = RequestState.PENDING
    _on_timeout: list[Callable[["RequestHandle"], None]] = field(default_factory=list, repr=False)

    @property
    def pending(self) -> bool:
        return self.state is RequestState.PENDING

    def cancel(self) -> None:
        if self.pending:
            self.state = RequestState.CANCELLED

    def on_timeout(self, callback: Callable[["RequestHandle"], None]) -> None:
        self._on_timeout.append(callback)


def _new_id() -> str:
    return secrets.token_hex(6)


class RequestTracker:
    """Registry of outstanding requests."""

    def __init__(self, default_timeout_s: float | None = None, clock: Callable[[], float] | None = None) -> None:
        self.default_timeout_s = default_timeout_s
        self._clock = clock or time.monotonic
        self._pending: dict[str, RequestHandle] = {}

    def open(self, kind: str, key: str, timeout_s: float | None = None) -> RequestHandle:
        """Create and register a handle for a request about to be sent."""
        now = self._clock()
        limit = timeout_s if timeout_s is not None else self.default_timeout_s
        handle = RequestHandle(
            request_id=_new_id(),
            kind=kind,
            key=key,
            created_at=now,
            deadline=(now + limit) if limit is not None else None,
        )
        self._pending[handle.request_id] = handle
        logger.debug("Request {} opened: {} {}", handle.request_id, kind, key)
        return handle

    def resolve(self, request_id: str | None) -> RequestHandle | None:
        """Mark a request answered; None when unknown, cancelled or expired."""
        if not request_id:
            return None
        handle = self._pending.pop(request_id, None)
        if handle is None:
            logger.debug("Result for unknown request {} dropped", request_id)
            return None
        if not handle.pending:
            logger.debug("Result for {} request {} dropped", handle.state.value, request_id)
            return None
        handle.state = RequestState.RESOLVED
        return handle

    def get(self, request_id: str) -> RequestHandle | None:
        return self._pending.get(request_id)

    def pending(self, kind: str | None = None) -> list[RequestHandle]:
        return [h for h in self._pending.values() if h.pending and (kind is None or h.kind == kind)]

    def expire(self, now: float | None = None) -> list[RequestHandle]:
        """Time out overdue requests and run their timeout callbacks."""
        current = self._clock() if now is None else now
        expired: list[RequestHandle] = []
        for request_id, handle in list(self._pending.items()):
            if not handle.pending:
                # Cancelled handles are purged lazily here.
                self._pending.pop(request_id, None)
                continue
            if handle.deadline is None or current < handle.deadline:
                continue
            self._pending.pop(request_id, None)
            handle.state = RequestState.TIMED_OUT
            expired.append(handle)
            logger.warning("Request {} ({} {}) timed out", request_id, handle.kind, handle.key)
            for callback in list(handle._on_timeout):
                try:
                    callback(handle)
                except Exception:
                    logger.exception("Timeout callback failed for request {}", request_id)
        return expired
