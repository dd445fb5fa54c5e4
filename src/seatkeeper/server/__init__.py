"""Server - the lifecycle controller and its collaborators.

Classes:
    LifecycleController: Starts and stops one worker per graphical session.
    SessionRegistry: Session path -> worker mapping.
    SessionDirectory: Protocol for querying the session manager.
    SessionEvent: Event consumed by the controller.
"""

from seatkeeper.server.controller import LifecycleController
from seatkeeper.server.directory import SessionDirectory, SessionQueryError, SessionSeat
from seatkeeper.server.protocols import SessionEvent, SessionEventType, WorkerState
from seatkeeper.server.session_registry import SessionRegistry

__all__ = [
    "LifecycleController",
    "SessionRegistry",
    "SessionDirectory",
    "SessionQueryError",
    "SessionSeat",
    "SessionEvent",
    "SessionEventType",
    "WorkerState",
]
