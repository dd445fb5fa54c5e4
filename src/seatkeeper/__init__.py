"""Seatkeeper - session-triggered worker lifecycle manager.

Seatkeeper watches the OS session manager (systemd-logind) and keeps
exactly one worker process running per graphical session, launched with
the environment of that session.

Layers:
    core/       Environment reconstruction, worker handles, logical ids, config
    server/     Lifecycle controller, session registry, directory protocol
    transport/  Session manager adapters (logind over D-Bus)
    frontends/  CLI

Quick Start:
    >>> from seatkeeper import LifecycleController, ServiceConfig
    >>> from seatkeeper.transport import Login1SessionDirectory
    >>>
    >>> directory = await Login1SessionDirectory.connect()
    >>> controller = LifecycleController(
    ...     directory=directory,
    ...     config=ServiceConfig(worker_path="/usr/bin/worker", multi_session=True),
    ... )
    >>> directory.subscribe(controller.notify_session_added, controller.notify_session_removed)
    >>> await controller.run()
"""

from seatkeeper.__version__ import __version__
from seatkeeper.core import ServiceConfig, WorkerProcess, session_environment
from seatkeeper.server import LifecycleController, SessionRegistry

__all__ = [
    "__version__",
    "ServiceConfig",
    "WorkerProcess",
    "session_environment",
    "LifecycleController",
    "SessionRegistry",
]
