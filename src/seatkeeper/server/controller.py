"""LifecycleController - one worker per graphical session.

The controller turns session-added/session-removed notifications into
worker processes. All notifications go through a single queue and are
handled one at a time, so the registry is never touched concurrently.

Per-session state:
    NO_WORKER -> STARTING -> RUNNING -> STOPPING -> NO_WORKER

Nothing in here is fatal: any failure while handling one session is
logged and leaves that session without a worker.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from seatkeeper.core.config import ServiceConfig
from seatkeeper.core.environment import session_environment
from seatkeeper.core.logical_sessions import LogicalSessionAllocator, LogicalSessionError
from seatkeeper.core.worker import WorkerProcess, WorkerStartError
from seatkeeper.server.directory import (
    SessionDirectory,
    SessionQueryError,
    read_display,
    read_leader_pid,
    read_seat,
)
from seatkeeper.server.protocols import SessionEvent, SessionEventType, WorkerState
from seatkeeper.server.session_registry import SessionRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")

WorkerFactory = Callable[[list[str], dict[str, str], int | None], WorkerProcess]
EnvironmentReader = Callable[[int], dict[str, str]]


@dataclass
class LifecycleController:
    """Starts and stops worker processes as sessions come and go.

    Example:
        >>> directory = await Login1SessionDirectory.connect()
        >>> controller = LifecycleController(
        ...     directory=directory,
        ...     config=ServiceConfig(worker_path="/usr/bin/worker"),
        ... )
        >>> directory.subscribe(
        ...     controller.notify_session_added,
        ...     controller.notify_session_removed,
        ... )
        >>> await controller.run()  # until request_shutdown()

    Attributes:
        directory: Session directory to query.
        config: Service configuration, read once here.
        registry: Session path -> worker mapping.
        allocator: Logical session ids (multi-session mode only).
        worker_factory: Builds worker handles. Tests substitute fakes.
        environment_reader: Rebuilds a session environment from a leader pid.
    """

    directory: SessionDirectory
    config: ServiceConfig
    registry: SessionRegistry = field(default_factory=SessionRegistry)
    allocator: LogicalSessionAllocator | None = None
    worker_factory: WorkerFactory = WorkerProcess
    environment_reader: EnvironmentReader = session_environment
    _queue: asyncio.Queue[SessionEvent] = field(default_factory=asyncio.Queue, repr=False)
    _states: dict[str, WorkerState] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        """Set up logical session ids if multi-session mode is enabled."""
        self._multi_session = self.config.multi_session
        if self._multi_session and self.allocator is None:
            self.allocator = LogicalSessionAllocator(capacity=self.config.max_logical_sessions)

    async def __aenter__(self) -> LifecycleController:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.shutdown()

    # =========================================================================
    # Notification intake
    # =========================================================================

    def post(self, event: SessionEvent) -> None:
        """Queue an event. Safe to call from bus callbacks."""
        self._queue.put_nowait(event)

    def notify_session_added(self, session_path: str) -> None:
        """Queue a session-added event."""
        self.post(SessionEvent(type=SessionEventType.SESSION_ADDED, session_path=session_path))

    def notify_session_removed(self, session_path: str) -> None:
        """Queue a session-removed event."""
        self.post(SessionEvent(type=SessionEventType.SESSION_REMOVED, session_path=session_path))

    def request_shutdown(self) -> None:
        """Ask run() to stop all workers and return.

        Events queued before the request are still handled first.
        """
        self.post(SessionEvent(type=SessionEventType.SHUTDOWN))

    # =========================================================================
    # Event loop
    # =========================================================================

    async def run(self) -> None:
        """Recover existing sessions, then handle events until shutdown.

        All workers are stopped before this returns, including when the
        task running it is cancelled.
        """
        try:
            await self.recover()
            while True:
                event = await self._queue.get()
                logger.debug(
                    f"Dequeued {event.type.name} {event.session_path} "
                    f"after {time.time() - event.timestamp:.3f}s"
                )
                if event.type == SessionEventType.SHUTDOWN:
                    logger.info("Shutdown requested")
                    break
                await self.handle_event(event)
        finally:
            await self.shutdown()

    async def recover(self) -> None:
        """Start workers for sessions that already exist.

        Used at startup to rebuild the registry after a restart.
        """
        try:
            sessions = await self._query(self.directory.list_sessions(), "sessions")
        except SessionQueryError as e:
            logger.error(f"Could not enumerate existing sessions: {e}")
            return

        logger.info(f"Found {len(sessions)} existing sessions")
        for session_path in sessions:
            await self.handle_event(
                SessionEvent(type=SessionEventType.SESSION_ADDED, session_path=session_path)
            )

    async def handle_event(self, event: SessionEvent) -> None:
        """Dispatch one event. Never raises."""
        handlers = {
            SessionEventType.SESSION_ADDED: self.session_added,
            SessionEventType.SESSION_REMOVED: self.session_removed,
        }
        handler = handlers.get(event.type)
        if handler is None:
            logger.warning(f"Ignoring unexpected event {event.type.name}")
            return

        try:
            await handler(event.session_path)
        except Exception:
            logger.exception(
                f"Unhandled error processing {event.type.name} for {event.session_path}"
            )

    # =========================================================================
    # Transitions
    # =========================================================================

    async def session_added(self, session_path: str) -> None:
        """Start a worker for a new session if it is graphical."""
        if self.registry.has_worker(session_path):
            logger.debug(f"Session {session_path} already has a worker, ignoring")
            return

        self._states[session_path] = WorkerState.STARTING
        try:
            await self._start_worker(session_path)
        except SessionQueryError as e:
            logger.error(f"Could not start worker for session {session_path}: {e}")
        finally:
            if not self.registry.has_worker(session_path):
                self._states.pop(session_path, None)

    async def session_removed(self, session_path: str) -> None:
        """Stop the worker of a removed session, if it has one."""
        worker = self.registry.remove_worker(session_path)
        if worker is None:
            logger.debug(f"Session {session_path} has no worker, ignoring removal")
            return

        logger.info(f"Stopping worker for removed session {session_path}")
        await self._stop_worker(session_path, worker)

    async def shutdown(self) -> None:
        """Stop every registered worker."""
        if self.registry.is_empty():
            return

        logger.info(f"Stopping all workers ({self.registry.worker_count()} active)")
        while not self.registry.is_empty():
            session_path = self.registry.list_session_paths()[0]
            worker = self.registry.remove_worker(session_path)
            assert worker is not None
            await self._stop_worker(session_path, worker)

    def state_of(self, session_path: str) -> WorkerState:
        """Current worker state of a session."""
        return self._states.get(session_path, WorkerState.NO_WORKER)

    # =========================================================================
    # Internals
    # =========================================================================

    async def _start_worker(self, session_path: str) -> None:
        display = await self._query(read_display(self.directory, session_path), "display")

        # No worker for non-graphical sessions
        if not display:
            logger.debug(f"Session {session_path} has no display, not starting a worker")
            return

        leader_pid = await self._query(read_leader_pid(self.directory, session_path), "leader")
        loop = asyncio.get_running_loop()
        environment = await loop.run_in_executor(None, self.environment_reader, leader_pid)

        if not environment:
            logger.error(
                f"Empty environment for session {session_path} (leader pid {leader_pid}), "
                f"not starting a worker"
            )
            return

        seat = await self._query(read_seat(self.directory, session_path), "seat")

        logger.info(
            f"Starting worker for new session {session_path} "
            f"with display {display} at seat {seat.path}"
        )

        logical_id: int | None = None
        if self._multi_session:
            assert self.allocator is not None
            try:
                logical_id = self.allocator.open_session((session_path, display, seat.path))
            except LogicalSessionError as e:
                logger.error(f"Could not start worker for session {session_path}: {e}")
                return
            environment[self.config.session_id_variable] = str(logical_id)

        # Until registered, the id and a started worker are released here
        worker: WorkerProcess | None = None
        registered = False
        try:
            worker = self.worker_factory(self.config.worker_command, environment, logical_id)
            try:
                await worker.start()
            except WorkerStartError as e:
                logger.error(f"Could not start worker for session {session_path}: {e}")
                return

            self.registry.add_worker(session_path, worker)
            registered = True
            self._states[session_path] = WorkerState.RUNNING
        finally:
            if not registered:
                self._release_logical_id(logical_id)
                if worker is not None and worker.is_running:
                    logger.warning(f"Stopping unregistered worker for session {session_path}")
                    await worker.stop(timeout=self.config.stop_timeout)

    async def _stop_worker(self, session_path: str, worker: WorkerProcess) -> None:
        """Terminate a worker that was already removed from the registry."""
        self._states[session_path] = WorkerState.STOPPING
        try:
            await worker.stop(timeout=self.config.stop_timeout)
        except Exception:
            logger.exception(f"Error stopping worker for session {session_path}")
        finally:
            self._release_logical_id(worker.logical_session_id)
            self._states.pop(session_path, None)

    def _release_logical_id(self, logical_id: int | None) -> None:
        if logical_id is None or self.allocator is None:
            return
        info = self.allocator.session_info(logical_id)
        self.allocator.close_session(logical_id)
        if info:
            logger.info(f"Released logical session {logical_id} of {info[0]}")

    async def _query(self, query: Awaitable[T], what: str) -> T:
        """Await a session manager query, bounded by query_timeout.

        Raises:
            SessionQueryError: If the query times out.
        """
        try:
            return await asyncio.wait_for(query, timeout=self.config.query_timeout)
        except TimeoutError as e:
            raise SessionQueryError(
                f"Timed out after {self.config.query_timeout}s querying {what}"
            ) from e
