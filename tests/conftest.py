"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from seatkeeper.core.config import ServiceConfig
from seatkeeper.core.worker import WorkerStartError

SEAT0 = ("seat0", "/org/freedesktop/login1/seat/seat0")

SESSION_ENV = {
    "DISPLAY": ":0",
    "XAUTHORITY": "/run/user/1000/gdm/Xauthority",
    "HOME": "/home/alice",
}


class FakeDirectory:
    """In-memory session directory.

    Sessions are added with add_session(); properties use logind names.
    """

    def __init__(self) -> None:
        self.sessions: dict[str, dict[str, Any]] = {}
        self.reachable = True
        self.delay: float = 0.0
        self.disconnected = False
        self.queries: list[tuple[str, str]] = []

    def add_session(
        self,
        path: str,
        display: str = ":0",
        leader: int | None = 1000,
        seat: tuple[str, str] | None = SEAT0,
        session_id: str = "2",
    ) -> None:
        self.sessions[path] = {
            "Display": display,
            "Leader": leader,
            "Seat": list(seat) if seat else None,
            "Id": session_id,
        }

    async def list_sessions(self) -> list[str]:
        if self.delay:
            await asyncio.sleep(self.delay)
        if not self.reachable:
            return []
        return list(self.sessions)

    async def get_property(self, session_path: str, name: str) -> Any | None:
        self.queries.append((session_path, name))
        if self.delay:
            await asyncio.sleep(self.delay)
        if not self.reachable:
            return None
        return self.sessions.get(session_path, {}).get(name)

    def disconnect(self) -> None:
        self.disconnected = True


class FakeWorker:
    """Stand-in for WorkerProcess that never spawns anything."""

    def __init__(
        self,
        command: list[str],
        env: dict[str, str],
        logical_session_id: int | None = None,
        fail_start: bool = False,
        fail_stop: bool = False,
    ) -> None:
        self.command = command
        self.env = env
        self.logical_session_id = logical_session_id
        self.fail_start = fail_start
        self.fail_stop = fail_stop
        self.started = False
        self.stop_calls: list[float | None] = []

    @property
    def is_running(self) -> bool:
        return self.started and not self.stop_calls

    async def start(self) -> None:
        if self.fail_start:
            raise WorkerStartError("No such file or directory")
        self.started = True

    async def stop(self, timeout: float | None = None) -> None:
        self.stop_calls.append(timeout)
        if self.fail_stop:
            raise RuntimeError("stop failed")


class RecordingWorkerFactory:
    """Worker factory that records every worker it builds."""

    def __init__(self) -> None:
        self.workers: list[FakeWorker] = []
        self.fail_start = False
        self.fail_stop = False

    def __call__(
        self, command: list[str], env: dict[str, str], logical_session_id: int | None
    ) -> FakeWorker:
        worker = FakeWorker(
            command,
            env,
            logical_session_id,
            fail_start=self.fail_start,
            fail_stop=self.fail_stop,
        )
        self.workers.append(worker)
        return worker

    @property
    def started(self) -> list[FakeWorker]:
        return [w for w in self.workers if w.started]


def fake_environment(leader_pid: int) -> dict[str, str]:
    """Environment reader returning a fixed graphical environment."""
    return dict(SESSION_ENV) if leader_pid > 0 else {}


@pytest.fixture
def directory() -> FakeDirectory:
    """Empty in-memory session directory."""
    return FakeDirectory()


@pytest.fixture
def worker_factory() -> RecordingWorkerFactory:
    """Factory producing FakeWorker instances."""
    return RecordingWorkerFactory()


@pytest.fixture
def config() -> ServiceConfig:
    """Single-session configuration."""
    return ServiceConfig(worker_path="/usr/libexec/worker", worker_args=("--session",))


@pytest.fixture
def multi_config() -> ServiceConfig:
    """Multi-session configuration."""
    return ServiceConfig(worker_path="/usr/libexec/worker", multi_session=True)


@pytest.fixture
def environment_reader():
    """Environment reader returning SESSION_ENV for any valid leader."""
    return fake_environment


@pytest.fixture
def session_env() -> dict[str, str]:
    return dict(SESSION_ENV)
