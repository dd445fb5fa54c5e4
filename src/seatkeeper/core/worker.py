"""Worker process handle.

One WorkerProcess is owned per graphical session. It only knows how to
start a process with a given environment and how to terminate it once.
What the worker does is none of its business.
"""

from __future__ import annotations

import asyncio
import logging
import subprocess

logger = logging.getLogger(__name__)


class WorkerStartError(Exception):
    """Failed to spawn the worker process."""

    pass


class WorkerProcess:
    """A worker process running for one session.

    The handle is exclusively owned by whoever holds it in the registry.
    stop() sends the termination request at most once, however often it is
    called.

    Example:
        >>> worker = WorkerProcess(["/usr/bin/worker"], {"DISPLAY": ":0"})
        >>> await worker.start()
        >>> worker.pid
        4242
        >>> await worker.stop()
    """

    def __init__(
        self,
        command: list[str],
        env: dict[str, str],
        logical_session_id: int | None = None,
    ) -> None:
        """Initialize the handle. Nothing is spawned until start().

        Args:
            command: Executable and arguments.
            env: Complete environment for the process.
            logical_session_id: Logical id exported to the worker, if any.
        """
        if not command:
            raise ValueError("Worker command is empty")
        self._command = list(command)
        self._env = dict(env)
        self._logical_session_id = logical_session_id
        self._process: asyncio.subprocess.Process | None = None
        self._stopped = False

    @property
    def command(self) -> list[str]:
        """Argv the worker was (or will be) launched with."""
        return list(self._command)

    @property
    def env(self) -> dict[str, str]:
        """Environment the worker was launched with."""
        return dict(self._env)

    @property
    def logical_session_id(self) -> int | None:
        return self._logical_session_id

    @property
    def pid(self) -> int | None:
        """Process ID, or None before start()."""
        return self._process.pid if self._process else None

    @property
    def returncode(self) -> int | None:
        """Exit status once the process has been reaped."""
        return self._process.returncode if self._process else None

    @property
    def is_running(self) -> bool:
        """Whether the process was started and has not been seen to exit."""
        return self._process is not None and self._process.returncode is None

    async def start(self) -> None:
        """Spawn the process.

        stdin is /dev/null, stdout and stderr are inherited.

        Raises:
            WorkerStartError: If the executable cannot be launched.
        """
        if self._process is not None:
            raise WorkerStartError("Worker already started")

        try:
            self._process = await asyncio.create_subprocess_exec(
                *self._command,
                env=self._env,
                stdin=subprocess.DEVNULL,
            )
        except OSError as e:
            raise WorkerStartError(f"Failed to start {self._command[0]}: {e}") from e

        logger.debug(f"Spawned worker {self._command[0]} with pid {self._process.pid}")

    async def stop(self, timeout: float | None = None) -> None:
        """Ask the process to terminate.

        Sends SIGTERM. With no timeout this returns immediately. With a
        timeout it waits that long for the exit and then sends SIGKILL.

        Args:
            timeout: Seconds to wait before escalating, or None.
        """
        if self._process is None or self._stopped:
            return
        self._stopped = True

        process = self._process
        try:
            process.terminate()
        except ProcessLookupError:
            # Already exited
            return

        if timeout is None:
            return

        try:
            await asyncio.wait_for(process.wait(), timeout=timeout)
        except TimeoutError:
            logger.warning(
                f"Worker pid {process.pid} did not exit within {timeout}s, killing"
            )
            try:
                process.kill()
            except ProcessLookupError:
                return
            await process.wait()

    async def wait(self) -> int:
        """Wait for the process to exit.

        Returns:
            Exit status, or -1 if the process was never started.
        """
        if self._process is None:
            return -1
        return await self._process.wait()
