"""Event types consumed by the lifecycle controller.

Notification sources (the logind adapter, tests, anything else) translate
whatever they receive into SessionEvent objects. The controller consumes
them strictly one at a time from a single queue.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum, auto


class SessionEventType(Enum):
    """Kinds of events on the controller queue."""

    SESSION_ADDED = auto()
    SESSION_REMOVED = auto()

    # Controller lifecycle
    SHUTDOWN = auto()


class WorkerState(Enum):
    """Per-session worker state.

    NO_WORKER -> STARTING -> RUNNING -> STOPPING -> NO_WORKER
    """

    NO_WORKER = auto()
    STARTING = auto()
    RUNNING = auto()
    STOPPING = auto()


@dataclass(frozen=True)
class SessionEvent:
    """Event for the controller.

    Attributes:
        type: The event type.
        session_path: Session object path (empty for SHUTDOWN).
        timestamp: When the event was received.
    """

    type: SessionEventType
    session_path: str = ""
    timestamp: float = field(default_factory=time.time)
