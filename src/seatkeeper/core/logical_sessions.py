"""Logical session ids for multi-session mode.

A single seat can host several workers at once. Each worker is handed a
small integer id so it can keep its resources (ports, sockets, lock files)
apart from its siblings. Ids are allocated lowest-free-first and may be
reused once released.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


class LogicalSessionError(Exception):
    """No logical session id could be allocated."""

    pass


@dataclass
class LogicalSessionAllocator:
    """Allocates and releases logical session ids.

    Attributes:
        capacity: Maximum number of open ids, or None for no limit.
        _open: Mapping of open id to the info tuple it was opened with.

    Example:
        >>> allocator = LogicalSessionAllocator()
        >>> allocator.open_session(("/org/freedesktop/login1/session/_31", ":0", "/seat0"))
        0
        >>> allocator.open_session(("/org/freedesktop/login1/session/_32", ":1", "/seat0"))
        1
        >>> allocator.close_session(0)
        >>> allocator.open_session(("/org/freedesktop/login1/session/_33", ":2", "/seat0"))
        0
    """

    capacity: int | None = None
    _open: dict[int, tuple[str, ...]] = field(default_factory=dict)

    def open_session(self, info: tuple[str, ...] = ()) -> int:
        """Allocate the lowest free id.

        Args:
            info: Descriptive tuple stored with the id (session path,
                display, seat path).

        Returns:
            The allocated id.

        Raises:
            LogicalSessionError: If capacity is exhausted.
        """
        if self.capacity is not None and len(self._open) >= self.capacity:
            raise LogicalSessionError(
                f"All {self.capacity} logical sessions are in use"
            )

        session_id = 0
        while session_id in self._open:
            session_id += 1

        self._open[session_id] = info
        logger.debug(f"Opened logical session {session_id} for {info}")
        return session_id

    def close_session(self, session_id: int) -> None:
        """Release an id. Releasing an id that is not open is a no-op."""
        if self._open.pop(session_id, None) is None:
            logger.debug(f"Logical session {session_id} was not open")
            return
        logger.debug(f"Closed logical session {session_id}")

    def session_info(self, session_id: int) -> tuple[str, ...] | None:
        """Info tuple stored for an open id, or None."""
        return self._open.get(session_id)

    def open_sessions(self) -> list[int]:
        """All currently open ids, ascending."""
        return sorted(self._open)
