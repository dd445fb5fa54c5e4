"""Service commands - run the lifecycle manager and inspect sessions."""

from __future__ import annotations

import asyncio
import dataclasses
import os
import signal as sig

import rich_click as click

from seatkeeper.core.config import ServiceConfig
from seatkeeper.core.environment import session_environment
from seatkeeper.core.logging_config import configure_logging, get_logger
from seatkeeper.frontends.cli.output import error_exit, output_json, print_table

logger = get_logger(__name__)


@click.command()
@click.option("--worker", "worker_path", default=None, help="Worker executable (SEATKEEPER_WORKER)")
@click.option(
    "--multi-session/--single-session",
    default=None,
    help="Give each worker a logical session id (SEATKEEPER_MULTI_SESSION)",
)
@click.option(
    "--stop-timeout",
    type=float,
    default=None,
    help="Seconds to wait before killing a terminated worker (default: don't wait)",
)
@click.option(
    "--query-timeout",
    type=float,
    default=None,
    help="Seconds to wait for logind replies (default: 25)",
)
@click.option(
    "--env-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Read fallback SEATKEEPER_* values from a .env file",
)
@click.option("--log-level", default=None, help="Log level (SEATKEEPER_LOG_LEVEL)")
@click.option(
    "--log-format",
    type=click.Choice(["text", "json"]),
    default=None,
    help="Log format (SEATKEEPER_LOG_FORMAT)",
)
@click.option("--log-file", default=None, help="Also log to this file (SEATKEEPER_LOG_FILE)")
@click.argument("worker_args", nargs=-1, type=click.UNPROCESSED)
def run(
    worker_path: str | None,
    multi_session: bool | None,
    stop_timeout: float | None,
    query_timeout: float | None,
    env_file: str | None,
    log_level: str | None,
    log_format: str | None,
    log_file: str | None,
    worker_args: tuple[str, ...],
) -> None:
    """Run the session lifecycle manager.

    Starts one worker per graphical logind session and stops it when the
    session ends. Runs until SIGTERM or SIGINT, then stops all workers.

    Arguments after **--** are passed to the worker.

    **Examples:**

        seatkeeper run --worker /usr/libexec/remote-desktop-server

        seatkeeper run --worker /usr/bin/worker --multi-session -- --verbose

        SEATKEEPER_WORKER=/usr/bin/worker seatkeeper run --log-format json
    """
    try:
        configure_logging(level=log_level, format=log_format, file_path=log_file)  # type: ignore[arg-type]
        config = load_config(
            worker_path=worker_path,
            worker_args=worker_args,
            multi_session=multi_session,
            stop_timeout=stop_timeout,
            query_timeout=query_timeout,
            env_file=env_file,
        )
    except ValueError as e:
        error_exit(str(e))

    asyncio.run(serve(config))


def load_config(
    worker_path: str | None = None,
    worker_args: tuple[str, ...] = (),
    multi_session: bool | None = None,
    stop_timeout: float | None = None,
    query_timeout: float | None = None,
    env_file: str | None = None,
) -> ServiceConfig:
    """Load configuration from the environment and apply CLI overrides.

    Raises:
        ValueError: If the resulting configuration is invalid.
    """
    environ = dict(os.environ)
    if worker_path:
        environ["SEATKEEPER_WORKER"] = worker_path
    config = ServiceConfig.from_env(environ, env_file=env_file)

    overrides: dict[str, object] = {}
    if worker_args:
        overrides["worker_args"] = tuple(worker_args)
    if multi_session is not None:
        overrides["multi_session"] = multi_session
    if stop_timeout is not None:
        overrides["stop_timeout"] = stop_timeout
    if query_timeout is not None:
        overrides["query_timeout"] = query_timeout
    return dataclasses.replace(config, **overrides) if overrides else config


async def serve(config: ServiceConfig) -> None:
    """Connect to logind and run the controller until a shutdown signal."""
    from dbus_next.errors import DBusError

    from seatkeeper.server.controller import LifecycleController
    from seatkeeper.transport.login1 import Login1SessionDirectory

    try:
        directory = await Login1SessionDirectory.connect()
    except (DBusError, OSError) as e:
        error_exit(f"cannot connect to logind: {e}")

    controller = LifecycleController(directory=directory, config=config)
    directory.subscribe(controller.notify_session_added, controller.notify_session_removed)

    loop = asyncio.get_running_loop()
    signal_count = [0]

    def handle_signal(sig_name: str) -> None:
        signal_count[0] += 1
        if signal_count[0] == 1:
            logger.info(f"Received {sig_name}, stopping workers...")
            controller.request_shutdown()
        else:
            logger.warning(f"Received {sig_name} again, still stopping workers")

    loop.add_signal_handler(sig.SIGTERM, lambda: handle_signal("SIGTERM"))
    loop.add_signal_handler(sig.SIGINT, lambda: handle_signal("SIGINT"))

    logger.info(f"Managing workers: {' '.join(config.worker_command)}")
    try:
        await controller.run()
    finally:
        loop.remove_signal_handler(sig.SIGTERM)
        loop.remove_signal_handler(sig.SIGINT)
        directory.disconnect()


@click.command()
@click.option("--json", "-j", "json_output", is_flag=True, help="Output as JSON")
def sessions(json_output: bool) -> None:
    """List logind sessions with their display, seat and leader.

    **Examples:**

        seatkeeper sessions

        seatkeeper sessions --json
    """
    from dbus_next.errors import DBusError

    from seatkeeper.server.directory import (
        read_display,
        read_leader_pid,
        read_seat,
        read_session_id,
    )
    from seatkeeper.transport.login1 import Login1SessionDirectory

    async def collect() -> list[dict[str, object]]:
        directory = await Login1SessionDirectory.connect()
        try:
            rows = []
            for path in await directory.list_sessions():
                seat = await read_seat(directory, path)
                rows.append(
                    {
                        "path": path,
                        "id": await read_session_id(directory, path),
                        "display": await read_display(directory, path),
                        "seat": seat.id,
                        "leader": await read_leader_pid(directory, path),
                    }
                )
            return rows
        finally:
            directory.disconnect()

    try:
        rows = asyncio.run(collect())
    except (DBusError, OSError) as e:
        error_exit(f"cannot connect to logind: {e}")

    if json_output:
        output_json(rows)
        return

    if not rows:
        click.echo("No sessions")
        return

    print_table(
        ["ID", "DISPLAY", "SEAT", "LEADER", "PATH"],
        [
            [str(r["id"]), str(r["display"]) or "-", str(r["seat"]) or "-", str(r["leader"]), str(r["path"])]
            for r in rows
        ],
    )


@click.command()
@click.argument("leader_pid", type=int)
@click.option("--json", "-j", "json_output", is_flag=True, help="Output as JSON")
def environment(leader_pid: int, json_output: bool) -> None:
    """Show the environment a worker would get for a session leader.

    Merges the environments of every descendant of LEADER_PID, deeper
    processes overriding their ancestors.

    **Examples:**

        seatkeeper environment 1234

        seatkeeper environment 1234 --json
    """
    env = session_environment(leader_pid)
    if not env:
        error_exit(f"no environment found for leader pid {leader_pid}")

    if json_output:
        output_json(env)
        return

    for name in sorted(env):
        click.echo(f"{name}={env[name]}")
