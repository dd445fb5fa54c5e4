"""Session environment reconstruction.

The leader of a graphical session is usually a display or session manager.
Variables such as DISPLAY, XAUTHORITY or WAYLAND_DISPLAY are only set further
down its process tree, so the session environment is rebuilt by merging the
environments of every descendant of the leader.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass

import psutil

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessEntry:
    """A row of the process table.

    Attributes:
        pid: Process ID.
        ppid: Parent process ID.
        environ: Environment of the process, or None if it could not be read.
    """

    pid: int
    ppid: int
    environ: Mapping[str, str] | None = None


ProcessTable = Callable[[], Iterable[ProcessEntry]]


def psutil_process_table() -> list[ProcessEntry]:
    """Snapshot the OS process table.

    psutil splits each raw environment entry on its first "=", so values
    containing "=" are kept whole. Processes whose environment is not
    readable (other users, kernel threads) are kept with environ=None so
    their children can still be reached.

    Raises:
        psutil.Error: If the process table cannot be enumerated.
    """
    entries = []
    for proc in psutil.process_iter(["pid", "ppid", "environ"], ad_value=None):
        info = proc.info
        if info["pid"] is None or info["ppid"] is None:
            continue
        entries.append(ProcessEntry(pid=info["pid"], ppid=info["ppid"], environ=info["environ"]))
    return entries


def collect_descendants(leader_pid: int, table: list[ProcessEntry]) -> list[tuple[int, ProcessEntry]]:
    """Find every process transitively descended from leader_pid.

    The table is scanned repeatedly until a pass adds no new member, since
    enumeration order does not guarantee parents come before children.

    Returns:
        (depth, entry) pairs in discovery order. Children of the leader
        have depth 1.
    """
    depth_of: dict[int, int] = {}
    members: list[tuple[int, ProcessEntry]] = []

    changed = True
    while changed:
        changed = False
        for entry in table:
            if entry.pid in depth_of or entry.pid == leader_pid:
                continue
            if entry.ppid == leader_pid:
                depth = 1
            elif entry.ppid in depth_of:
                depth = depth_of[entry.ppid] + 1
            else:
                continue
            depth_of[entry.pid] = depth
            members.append((depth, entry))
            changed = True

    return members


def session_environment(
    leader_pid: int,
    process_table: ProcessTable | None = None,
) -> dict[str, str]:
    """Reconstruct the environment of the session led by leader_pid.

    Descendants override their ancestors. Processes at the same depth are
    merged in process table order, the last one winning.

    Args:
        leader_pid: PID of the session leader.
        process_table: Source of process table rows. Defaults to psutil.

    Returns:
        The merged environment, or an empty dict if the leader is invalid or
        the process table could not be read.
    """
    if leader_pid <= 0:
        logger.error(f"Invalid session leader pid {leader_pid}")
        return {}

    read_table = process_table or psutil_process_table
    try:
        table = list(read_table())
    except (psutil.Error, OSError) as e:
        logger.error(f"Could not read process table: {e}")
        return {}

    members = collect_descendants(leader_pid, table)
    # sorted() is stable, so table order is kept within a depth
    members.sort(key=lambda member: member[0])

    environment: dict[str, str] = {}
    for _depth, entry in members:
        if entry.environ:
            environment.update(entry.environ)

    logger.debug(
        f"Reconstructed {len(environment)} variables from {len(members)} "
        f"descendants of pid {leader_pid}"
    )
    return environment
