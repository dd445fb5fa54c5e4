"""systemd-logind session directory over D-Bus.

Login1SessionDirectory implements the SessionDirectory protocol against
org.freedesktop.login1 on the system bus, and forwards the SessionNew and
SessionRemoved signals to plain callbacks.

Example:
    >>> directory = await Login1SessionDirectory.connect()
    >>> await directory.list_sessions()
    ['/org/freedesktop/login1/session/_32']
    >>> await directory.get_property("/org/freedesktop/login1/session/_32", "Display")
    ':0'
    >>> directory.subscribe(on_added, on_removed)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from dbus_next import BusType, Message, MessageType
from dbus_next.aio import MessageBus
from dbus_next.errors import DBusError

logger = logging.getLogger(__name__)

LOGIN1_SERVICE = "org.freedesktop.login1"
LOGIN1_PATH = "/org/freedesktop/login1"
MANAGER_INTERFACE = "org.freedesktop.login1.Manager"
SESSION_INTERFACE = "org.freedesktop.login1.Session"
PROPERTIES_INTERFACE = "org.freedesktop.DBus.Properties"

SessionCallback = Callable[[str], None]


class Login1SessionDirectory:
    """Session directory backed by systemd-logind.

    Each query is a fresh D-Bus call, since session state can change at any
    time. Failures are logged and reported as empty results.
    """

    def __init__(self, bus: MessageBus, manager: Any) -> None:
        """Wrap an already connected bus.

        Args:
            bus: Connected system bus.
            manager: Proxy interface for org.freedesktop.login1.Manager.
        """
        self._bus = bus
        self._manager = manager

    @classmethod
    async def connect(cls, bus: MessageBus | None = None) -> Login1SessionDirectory:
        """Connect to logind on the system bus.

        Raises:
            DBusError: If logind cannot be introspected.
            OSError: If the system bus is not reachable.
        """
        if bus is None:
            bus = await MessageBus(bus_type=BusType.SYSTEM).connect()
        introspection = await bus.introspect(LOGIN1_SERVICE, LOGIN1_PATH)
        proxy = bus.get_proxy_object(LOGIN1_SERVICE, LOGIN1_PATH, introspection)
        return cls(bus, proxy.get_interface(MANAGER_INTERFACE))

    async def list_sessions(self) -> list[str]:
        """Object paths of all sessions known to logind."""
        try:
            sessions = await self._manager.call_list_sessions()
        except (DBusError, OSError) as e:
            logger.error(f"Could not query sessions: {e}")
            return []

        # Each entry is (id, uid, user name, seat id, object path)
        return [str(entry[4]) for entry in sessions]

    async def get_property(self, session_path: str, name: str) -> Any | None:
        """Read one org.freedesktop.login1.Session property.

        Returns:
            The unwrapped property value, or None on error.
        """
        message = Message(
            destination=LOGIN1_SERVICE,
            path=session_path,
            interface=PROPERTIES_INTERFACE,
            member="Get",
            signature="ss",
            body=[SESSION_INTERFACE, name],
        )
        try:
            reply = await self._bus.call(message)
        except (DBusError, OSError) as e:
            logger.error(f"Could not query session property {name}: {e}")
            return None

        if reply is None or reply.message_type == MessageType.ERROR:
            error = reply.body[0] if reply is not None and reply.body else "no reply"
            logger.error(f"Could not query session property {name}: {error}")
            return None

        return reply.body[0].value

    def subscribe(self, on_added: SessionCallback, on_removed: SessionCallback) -> None:
        """Forward logind session notifications.

        Callbacks run on the event loop and receive the session object path.
        """
        self._manager.on_session_new(lambda _session_id, path: on_added(str(path)))
        self._manager.on_session_removed(lambda _session_id, path: on_removed(str(path)))

    def disconnect(self) -> None:
        """Close the bus connection."""
        self._bus.disconnect()
