"""SessionRegistry - which session currently has which worker.

The registry is owned by the lifecycle controller and only touched from
its event loop, so it carries no locking. It is the single source of truth
for "does session X have a worker".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from seatkeeper.core.worker import WorkerProcess


@dataclass
class SessionRegistry:
    """Mapping of session object path to its worker process.

    Example:
        >>> registry = SessionRegistry()
        >>> registry.add_worker("/org/freedesktop/login1/session/_32", worker)
        >>> registry.has_worker("/org/freedesktop/login1/session/_32")
        True
        >>> registry.remove_worker("/org/freedesktop/login1/session/_32") is worker
        True
    """

    _workers: dict[str, WorkerProcess] = field(default_factory=dict)

    def add_worker(self, session_path: str, worker: WorkerProcess) -> None:
        """Register the worker of a session.

        Args:
            session_path: Session object path.
            worker: The started worker.

        Raises:
            ValueError: If the session already has a worker.
        """
        if session_path in self._workers:
            raise ValueError(f"Session already has a worker: {session_path}")
        self._workers[session_path] = worker

    def remove_worker(self, session_path: str) -> WorkerProcess | None:
        """Unregister a session's worker.

        Returns:
            The removed worker, or None if the session had none.
        """
        return self._workers.pop(session_path, None)

    def get_worker(self, session_path: str) -> WorkerProcess | None:
        """Worker of a session, or None."""
        return self._workers.get(session_path)

    def has_worker(self, session_path: str) -> bool:
        return session_path in self._workers

    def list_session_paths(self) -> list[str]:
        """Paths of all sessions that have a worker."""
        return list(self._workers.keys())

    def is_empty(self) -> bool:
        return not self._workers

    def worker_count(self) -> int:
        """Number of registered workers."""
        return len(self._workers)
