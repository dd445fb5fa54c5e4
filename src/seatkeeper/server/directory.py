"""Session directory interface.

A session directory answers two questions: which sessions exist, and what
is property X of session Y. The logind adapter in seatkeeper.transport is
the production implementation; tests use in-memory fakes.

Property names follow org.freedesktop.login1.Session.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

PROPERTY_DISPLAY = "Display"
PROPERTY_LEADER = "Leader"
PROPERTY_SEAT = "Seat"
PROPERTY_ID = "Id"


class SessionQueryError(Exception):
    """The session manager did not answer a query in time."""

    pass


class SessionDirectory(Protocol):
    """Read-only view of the OS session manager."""

    async def list_sessions(self) -> list[str]:
        """Object paths of all current sessions. Empty on failure."""
        ...

    async def get_property(self, session_path: str, name: str) -> Any | None:
        """One session property, or None if unset or unavailable."""
        ...


@dataclass(frozen=True)
class SessionSeat:
    """Seat a session is attached to.

    Attributes:
        id: Seat name (e.g. "seat0"), empty if the session has no seat.
        path: Seat object path.
    """

    id: str = ""
    path: str = ""


async def read_display(directory: SessionDirectory, session_path: str) -> str:
    """X11/Wayland display of the session, empty if non-graphical."""
    value = await directory.get_property(session_path, PROPERTY_DISPLAY)
    return str(value) if value else ""


async def read_leader_pid(directory: SessionDirectory, session_path: str) -> int:
    """Leader PID of the session, -1 if unknown."""
    value = await directory.get_property(session_path, PROPERTY_LEADER)
    if value is None:
        return -1
    try:
        return int(value)
    except (TypeError, ValueError):
        return -1


async def read_seat(directory: SessionDirectory, session_path: str) -> SessionSeat:
    """Seat of the session.

    logind reports the seat as an (id, object path) struct.
    """
    value = await directory.get_property(session_path, PROPERTY_SEAT)
    if not value:
        return SessionSeat()
    seat_id, seat_path = value
    return SessionSeat(id=str(seat_id), path=str(seat_path))


async def read_session_id(directory: SessionDirectory, session_path: str) -> str:
    """Short logind session id (e.g. "2"), empty if unknown."""
    value = await directory.get_property(session_path, PROPERTY_ID)
    return str(value) if value else ""
