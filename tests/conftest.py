"""Pytest configuration and fixtures for roomsync tests."""

import pytest

from roomsync.connection import Connection
from roomsync.roomlist import RoomList, RoomListCallbacks
from roomsync.types import EventUpdate, RoomUpdate


class RecordingCallbacks(RoomListCallbacks):
    """Records all RoomList callbacks in the order they occur."""

    def __init__(self):
        self.calls = []

    def roomListChanged(self):
        self.calls.append(("changed",))

    def roomInserted(self, index):
        self.calls.append(("inserted", index))

    def roomRemoved(self, index):
        self.calls.append(("removed", index))

    def structural(self):
        return [call for call in self.calls if call[0] != "changed"]

    def changedCount(self):
        return len([call for call in self.calls if call[0] == "changed"])


def make_event(_type, ts, state_key=None, content=None):
    event = {
        "type": _type,
        "origin_server_ts": ts,
        "sender": "@alice:example.org",
        "content": content if content is not None else {},
    }
    if state_key is not None:
        event["state_key"] = state_key
    return event


def state_update(room_id, _type, ts, state_key="", content=None):
    return EventUpdate(EventUpdate.STATE, room_id, make_event(_type, ts, state_key, content))


def timeline_update(room_id, ts, body="hello"):
    return EventUpdate(
        EventUpdate.TIMELINE, room_id,
        make_event("m.room.message", ts, content={"msgtype": "m.text", "body": body})
    )


def join(room_id, notifications=0, highlights=0, summary=None):
    return RoomUpdate(room_id, "join", highlight_count=highlights,
                      notification_count=notifications, summary=summary)


@pytest.fixture
def connection():
    return Connection()


@pytest.fixture
def recorder():
    return RecordingCallbacks()


@pytest.fixture
def room_list(connection, recorder):
    """A RoomList with default configuration and a recorder attached."""
    rooms = RoomList(connection)
    rooms.addCallbackHandler(recorder)
    yield rooms
    if not rooms.isClosed():
        rooms.close()
