"""Core - session environment, worker processes, logical ids, configuration.

Nothing in core knows about logind or D-Bus.
"""

from seatkeeper.core.config import ServiceConfig
from seatkeeper.core.environment import ProcessEntry, session_environment
from seatkeeper.core.logical_sessions import LogicalSessionAllocator, LogicalSessionError
from seatkeeper.core.worker import WorkerProcess, WorkerStartError

__all__ = [
    "ServiceConfig",
    "ProcessEntry",
    "session_environment",
    "LogicalSessionAllocator",
    "LogicalSessionError",
    "WorkerProcess",
    "WorkerStartError",
]
