"""Service configuration.

ServiceConfig is read once when the controller is built. Values come from
the process environment, optionally seeded from a .env file, and the CLI
overrides individual fields with dataclasses.replace().
"""

from __future__ import annotations

import os
import shlex
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import dotenv_values

DEFAULT_SESSION_ID_VARIABLE = "SEATKEEPER_SESSION_ID"

# Matches the default D-Bus method call timeout
DEFAULT_QUERY_TIMEOUT = 25.0

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class ServiceConfig:
    """Configuration for the lifecycle controller.

    Attributes:
        worker_path: Executable launched once per graphical session.
        worker_args: Extra arguments passed to the worker.
        multi_session: Allocate a logical session id per worker and export
            it to the worker through session_id_variable.
        session_id_variable: Environment variable carrying the logical id.
        stop_timeout: Seconds to wait for a terminated worker before killing
            it. None sends SIGTERM and does not wait.
        query_timeout: Seconds to wait for a session manager reply. None
            waits forever.
        max_logical_sessions: Upper bound on concurrently open logical
            sessions. None means unbounded.
    """

    worker_path: str
    worker_args: tuple[str, ...] = ()
    multi_session: bool = False
    session_id_variable: str = DEFAULT_SESSION_ID_VARIABLE
    stop_timeout: float | None = None
    query_timeout: float | None = DEFAULT_QUERY_TIMEOUT
    max_logical_sessions: int | None = None

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.worker_path:
            raise ValueError("worker_path is required")
        if not self.session_id_variable or "=" in self.session_id_variable:
            raise ValueError(f"Invalid session_id_variable: {self.session_id_variable!r}")
        if self.stop_timeout is not None and self.stop_timeout <= 0:
            raise ValueError("stop_timeout must be positive")
        if self.query_timeout is not None and self.query_timeout <= 0:
            raise ValueError("query_timeout must be positive")
        if self.max_logical_sessions is not None and self.max_logical_sessions < 1:
            raise ValueError("max_logical_sessions must be at least 1")

    @property
    def worker_command(self) -> list[str]:
        """Full argv for the worker process."""
        return [self.worker_path, *self.worker_args]

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        env_file: str | Path | None = None,
    ) -> ServiceConfig:
        """Build a configuration from SEATKEEPER_* variables.

        Values in env_file are used only where the environment has no value.

        Args:
            environ: Variables to read. Defaults to os.environ.
            env_file: Optional dotenv file with fallback values.

        Returns:
            The loaded configuration.

        Raises:
            ValueError: If a value is missing or malformed.
        """
        values: dict[str, str] = {}
        if env_file is not None:
            values.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
        values.update(os.environ if environ is None else environ)

        worker_path = values.get("SEATKEEPER_WORKER", "")
        if not worker_path:
            raise ValueError("SEATKEEPER_WORKER is not set")

        return cls(
            worker_path=worker_path,
            worker_args=tuple(shlex.split(values.get("SEATKEEPER_WORKER_ARGS", ""))),
            multi_session=_parse_bool(values, "SEATKEEPER_MULTI_SESSION", False),
            session_id_variable=values.get(
                "SEATKEEPER_SESSION_ID_VARIABLE", DEFAULT_SESSION_ID_VARIABLE
            ),
            stop_timeout=_parse_seconds(values, "SEATKEEPER_STOP_TIMEOUT", None),
            query_timeout=_parse_seconds(values, "SEATKEEPER_QUERY_TIMEOUT", DEFAULT_QUERY_TIMEOUT),
            max_logical_sessions=_parse_int(values, "SEATKEEPER_MAX_LOGICAL_SESSIONS"),
        )


def _parse_bool(values: Mapping[str, str], key: str, default: bool) -> bool:
    raw = values.get(key)
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{key} must be a boolean, got {raw!r}")


def _parse_seconds(values: Mapping[str, str], key: str, default: float | None) -> float | None:
    raw = values.get(key)
    if raw is None or raw.strip() == "":
        return default
    if raw.strip().lower() == "none":
        return None
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{key} must be a number of seconds, got {raw!r}") from e


def _parse_int(values: Mapping[str, str], key: str) -> int | None:
    raw = values.get(key)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from e
