import json
import queue

import pytest
from websocket import WebSocketConnectionClosedException

import main
import wsbridge


class FakeConnection:
    def __init__(self, frames):
        self.frames = queue.Queue()
        for frame in frames:
            self.frames.put(frame)
        self.sent = []
        self.closed = False

    def recv(self):
        frame = self.frames.get()
        if frame is None:
            raise WebSocketConnectionClosedException("closed")
        return frame

    def send(self, data):
        if self.closed:
            raise WebSocketConnectionClosedException("closed")
        self.sent.append(data)

    def close(self):
        self.closed = True
        self.frames.put(None)


@pytest.fixture
def connect(monkeypatch):
    def _connect(frames):
        conn = FakeConnection(frames)
        monkeypatch.setattr(wsbridge, "create_connection", lambda url: conn)
        return wsbridge.WSBridge("ws://relay.test/ws"), conn
    return _connect


def test_receiver_queues_relay_events_only(connect):
    backlog = {"type": "load_messages", "data": [{"id": 1, "text": "a"}]}
    live = {"type": "display_message", "data": {"id": 2, "text": "b"}}
    bridge, _ = connect([
        json.dumps(backlog),
        "not json",
        json.dumps({"type": "alive"}),
        json.dumps(["display_message"]),
        json.dumps(live),
        None,
    ])
    assert bridge.get_event(timeout=1) == backlog
    assert bridge.get_event(timeout=1) == live
    bridge.thread.join(timeout=1)
    assert bridge.closed.is_set()
    assert bridge.event_q.empty()


def test_submit_sends_new_message_frame(connect):
    bridge, conn = connect([])
    assert bridge.submit("héllo")
    assert json.loads(conn.sent[0]) == {"type": "new_message", "data": "héllo"}
    assert "héllo" in conn.sent[0]
    bridge.close()


def test_submit_after_close_is_dropped(connect):
    bridge, conn = connect([])
    bridge.close()
    assert not bridge.submit("too late")
    assert conn.sent == []
    bridge.thread.join(timeout=1)
    assert bridge.closed.is_set()


def test_handle_event_formats_backlog_and_live_messages():
    backlog = {"type": "load_messages", "data": [{"id": 1, "text": "a"}, {"id": 2, "text": "b"}]}
    live = {"type": "display_message", "data": {"id": 3, "text": "c"}}
    assert main.handle_event(backlog) == ["[1] a", "[2] b"]
    assert main.handle_event(live) == ["[3] c"]
    assert main.handle_event({"type": "alive"}) == []


def test_input_loop_submits_non_blank_lines(connect):
    bridge, conn = connect([])
    main.stop_event.clear()
    main.input_loop(bridge, stream=["first\n", "   \n", " second \n"])
    assert [json.loads(f)["data"] for f in conn.sent] == ["first", "second"]
    assert main.should_stop()
    main.stop_event.clear()
    bridge.close()
