"""Tests for the command line front end in roomsync/main.py"""

import json
import os
import textwrap
from unittest.mock import patch

import pytest

from conftest import make_event
from roomsync.main import RoomSync


def sync_response(next_batch, join=None, invite=None, leave=None):
    rooms = {}
    for section, entries in (("join", join), ("invite", invite), ("leave", leave)):
        if entries:
            rooms[section] = entries
    return {"next_batch": next_batch, "rooms": rooms}


@pytest.fixture
def replay_file(tmp_path):
    responses = [
        sync_response("s1", join={
            "!a:x": {"timeline": {"events": [make_event("m.room.message", 10)]}},
            "!b:x": {
                "timeline": {"events": [make_event("m.room.message", 20)]},
                "unread_notifications": {"notification_count": 2, "highlight_count": 0},
            },
        }),
        sync_response("s2", invite={"!c:x": {}}, leave={"!a:x": {}}),
    ]
    path = tmp_path / "replay.json"
    path.write_text(json.dumps(responses))
    return str(path)


class TestReplay:

    def test_replay_prints_changes_and_list(self, replay_file, capsys):
        ret = RoomSync().run(["--replay", replay_file])

        out = capsys.readouterr().out
        assert ret == 0
        assert "+ [0] !a:x" in out
        assert "+ [1] !b:x" in out
        assert "+ [0] !c:x" in out
        assert "- [1]" in out
        assert "2 rooms:" in out
        assert "!b:x (join) notifications=2 highlights=0" in out
        assert out.index("!b:x (join)") < out.index("!c:x (invite)")

    def test_replay_only_left(self, replay_file, capsys):
        ret = RoomSync().run(["--replay", replay_file, "--only-left"])

        out = capsys.readouterr().out
        assert ret == 0
        assert "1 rooms:" in out
        assert "!a:x (leave)" in out

    def test_replay_single_response(self, tmp_path, capsys):
        path = tmp_path / "single.json"
        path.write_text(json.dumps(sync_response("s1", join={"!a:x": {}})))

        assert RoomSync().run(["--replay", str(path)]) == 0
        assert "1 rooms:" in capsys.readouterr().out

    def test_replay_bad_file(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("42")

        with pytest.raises(ValueError):
            RoomSync().run(["--replay", str(path)])


class TestLive:

    def test_missing_config(self, tmp_path, capsys):
        ret = RoomSync().run(["--config", str(tmp_path / "missing.ini")])

        assert ret == 2
        assert "No configuration exists" in capsys.readouterr().err

    @patch('roomsync.main.SyncSession')
    def test_sync_failure(self, mock_session_cls, tmp_path, capsys):
        path = tmp_path / "roomsync.ini"
        path.write_text(textwrap.dedent("""
            [connection]
            server = hs.example.org
            access_token = syt_abc

            [sync]
            timeout = 1000
        """))
        os.chmod(path, 0o600)
        session = mock_session_cls.return_value
        # report an error right away once the session is started
        session.start.side_effect = lambda: session.setErrorCallback.call_args[0][0]()

        ret = RoomSync().run(["--config", str(path)])

        assert ret == 1
        mock_session_cls.assert_called_once()
        args, kwargs = mock_session_cls.call_args
        assert args[0] == "https://hs.example.org"
        assert args[1] == "syt_abc"
        assert kwargs["timeout_ms"] == 1000
        session.stop.assert_called_once()
        assert "Sync with the server failed" in capsys.readouterr().err
