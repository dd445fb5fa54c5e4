"""Tests for the typed session directory accessors."""

from __future__ import annotations

from seatkeeper.server.directory import (
    SessionSeat,
    read_display,
    read_leader_pid,
    read_seat,
    read_session_id,
)

S1 = "/org/freedesktop/login1/session/_31"


class TestAccessors:
    """Conversions from raw logind property values."""

    async def test_graphical_session(self, directory):
        directory.add_session(
            S1,
            display=":1",
            leader=2345,
            seat=("seat0", "/org/freedesktop/login1/seat/seat0"),
            session_id="7",
        )

        assert await read_display(directory, S1) == ":1"
        assert await read_leader_pid(directory, S1) == 2345
        assert await read_seat(directory, S1) == SessionSeat(
            id="seat0", path="/org/freedesktop/login1/seat/seat0"
        )
        assert await read_session_id(directory, S1) == "7"

    async def test_unset_properties(self, directory):
        """Unset values map to empty display, -1 leader and an empty seat."""
        assert await read_display(directory, S1) == ""
        assert await read_leader_pid(directory, S1) == -1
        assert await read_seat(directory, S1) == SessionSeat()
        assert await read_session_id(directory, S1) == ""

    async def test_seatless_session(self, directory):
        """Remote sessions report an empty seat struct."""
        directory.add_session(S1, seat=("", "/"))

        seat = await read_seat(directory, S1)

        assert seat.id == ""
        assert seat.path == "/"

    async def test_malformed_leader(self, directory):
        directory.add_session(S1)
        directory.sessions[S1]["Leader"] = "not-a-pid"

        assert await read_leader_pid(directory, S1) == -1
