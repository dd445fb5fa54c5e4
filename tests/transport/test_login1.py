"""Tests for the logind session directory adapter."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from dbus_next import MessageType, Variant
from dbus_next.errors import DBusError

from seatkeeper.transport.login1 import (
    LOGIN1_PATH,
    LOGIN1_SERVICE,
    MANAGER_INTERFACE,
    PROPERTIES_INTERFACE,
    SESSION_INTERFACE,
    Login1SessionDirectory,
)

S1 = "/org/freedesktop/login1/session/_31"
S2 = "/org/freedesktop/login1/session/c2"


def reply(value: Variant) -> MagicMock:
    message = MagicMock()
    message.message_type = MessageType.METHOD_RETURN
    message.body = [value]
    return message


def error_reply(text: str) -> MagicMock:
    message = MagicMock()
    message.message_type = MessageType.ERROR
    message.body = [text]
    return message


@pytest.fixture
def bus() -> MagicMock:
    bus = MagicMock()
    bus.call = AsyncMock()
    bus.introspect = AsyncMock(return_value=MagicMock())
    return bus


@pytest.fixture
def manager() -> MagicMock:
    manager = MagicMock()
    manager.call_list_sessions = AsyncMock()
    return manager


@pytest.fixture
def login1(bus, manager) -> Login1SessionDirectory:
    return Login1SessionDirectory(bus, manager)


class TestListSessions:
    async def test_returns_object_paths(self, login1, manager):
        manager.call_list_sessions.return_value = [
            ["2", 1000, "alice", "seat0", S1],
            ["c2", 0, "root", "", S2],
        ]

        assert await login1.list_sessions() == [S1, S2]

    async def test_bus_error_yields_empty(self, login1, manager):
        manager.call_list_sessions.side_effect = DBusError(
            "org.freedesktop.DBus.Error.ServiceUnknown", "login1 is not running"
        )

        assert await login1.list_sessions() == []

    async def test_disconnected_bus_yields_empty(self, login1, manager):
        manager.call_list_sessions.side_effect = OSError("connection reset")

        assert await login1.list_sessions() == []


class TestGetProperty:
    async def test_reads_session_property(self, login1, bus):
        bus.call.return_value = reply(Variant("s", ":0"))

        assert await login1.get_property(S1, "Display") == ":0"

        message = bus.call.await_args.args[0]
        assert message.destination == LOGIN1_SERVICE
        assert message.path == S1
        assert message.interface == PROPERTIES_INTERFACE
        assert message.member == "Get"
        assert message.body == [SESSION_INTERFACE, "Display"]

    async def test_seat_struct(self, login1, bus):
        bus.call.return_value = reply(
            Variant("(so)", ["seat0", "/org/freedesktop/login1/seat/seat0"])
        )

        value = await login1.get_property(S1, "Seat")

        assert list(value) == ["seat0", "/org/freedesktop/login1/seat/seat0"]

    async def test_error_reply_yields_none(self, login1, bus):
        bus.call.return_value = error_reply("Unknown object")

        assert await login1.get_property(S1, "Leader") is None

    async def test_no_reply_yields_none(self, login1, bus):
        bus.call.return_value = None

        assert await login1.get_property(S1, "Leader") is None

    async def test_bus_failure_yields_none(self, login1, bus):
        bus.call.side_effect = OSError("broken pipe")

        assert await login1.get_property(S1, "Leader") is None


class TestSubscribe:
    def test_forwards_session_paths(self, login1, manager):
        added: list[str] = []
        removed: list[str] = []

        login1.subscribe(added.append, removed.append)

        on_new = manager.on_session_new.call_args.args[0]
        on_removed = manager.on_session_removed.call_args.args[0]
        on_new("2", S1)
        on_removed("2", S1)

        assert added == [S1]
        assert removed == [S1]


class TestConnect:
    async def test_uses_given_bus(self, bus, manager):
        proxy = MagicMock()
        proxy.get_interface.return_value = manager
        bus.get_proxy_object.return_value = proxy

        directory = await Login1SessionDirectory.connect(bus)

        bus.introspect.assert_awaited_once_with(LOGIN1_SERVICE, LOGIN1_PATH)
        proxy.get_interface.assert_called_once_with(MANAGER_INTERFACE)
        manager.call_list_sessions.return_value = []
        assert await directory.list_sessions() == []

    def test_disconnect(self, login1, bus):
        login1.disconnect()
        bus.disconnect.assert_called_once()
