"""
Viewer Connection Tests
=======================

Lifecycle, outbox and send/receive loops of ViewerConnection.
Async scenarios run through asyncio.run.
"""

import asyncio

import pytest

from frame_relay.errors import ViewerDisconnected
from frame_relay.relay import ConnectionState, Frame, ViewerConnection


def _frame(sequence: int, payload: str) -> Frame:
    return Frame(sequence=sequence, payload=payload, received_at=float(sequence))


async def _settle(rounds: int = 20) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


class TestLifecycle:
    """Tests for state transitions."""

    def test_starts_connecting(self, make_websocket):
        connection = ViewerConnection(make_websocket(), connection_id="v1")
        assert connection.state is ConnectionState.CONNECTING
        assert connection.is_open is True

    def test_accept_connects(self, make_websocket):
        websocket = make_websocket()
        connection = ViewerConnection(websocket)

        asyncio.run(connection.accept())

        assert websocket.accepted is True
        assert connection.state is ConnectionState.CONNECTED

    def test_close_is_terminal(self, make_websocket):
        connection = ViewerConnection(make_websocket())
        connection.close()
        connection.close()

        assert connection.state is ConnectionState.DISCONNECTED
        with pytest.raises(ViewerDisconnected):
            connection.push(_frame(1, "AAA"))
        with pytest.raises(ViewerDisconnected):
            asyncio.run(connection.accept())

    def test_generated_ids_are_unique(self, make_websocket):
        ids = {ViewerConnection(make_websocket()).connection_id for _ in range(50)}
        assert len(ids) == 50

    def test_rejects_empty_outbox(self, make_websocket):
        with pytest.raises(ValueError):
            ViewerConnection(make_websocket(), outbox_size=0)


class TestOutbox:
    """Tests for the per-viewer outbox."""

    def test_push_while_connecting_is_queued(self, make_websocket):
        connection = ViewerConnection(make_websocket())
        connection.push(_frame(1, "AAA"))
        assert connection.pending == 1

    def test_overflow_drops_oldest(self, make_websocket):
        connection = ViewerConnection(make_websocket(), outbox_size=1)
        connection.push(_frame(1, "AAA"))
        connection.push(_frame(2, "BBB"))

        assert connection.pending == 1
        assert connection.frames_dropped == 1

    def test_default_outbox_holds_one_frame(self, make_websocket):
        connection = ViewerConnection(make_websocket())
        connection.push(_frame(1, "AAA"))
        connection.push(_frame(2, "BBB"))

        assert connection.pending == 1
        assert connection.frames_dropped == 1

    def test_replay_before_sending_skips_outbox(self, make_websocket):
        """The catch-up frame waits in its own slot, not in the outbox."""
        connection = ViewerConnection(make_websocket(), outbox_size=1)
        connection.replay(_frame(1, "AAA"))
        connection.push(_frame(2, "BBB"))
        connection.push(_frame(3, "CCC"))

        assert connection.pending == 1
        assert connection.frames_dropped == 1

    def test_replay_after_close_raises(self, make_websocket):
        connection = ViewerConnection(make_websocket())
        connection.close()

        with pytest.raises(ViewerDisconnected):
            connection.replay(_frame(1, "AAA"))


class TestServe:
    """Tests for the send and receive loops."""

    def test_sends_queued_frames_in_order(self, make_websocket):
        websocket = make_websocket()

        async def scenario():
            connection = ViewerConnection(websocket, connection_id="v1")
            connection.push(_frame(1, "AAA"))
            await connection.accept()
            task = asyncio.create_task(connection.serve())
            await _settle()
            connection.push(_frame(2, "BBB"))
            await _settle()
            websocket.peer_disconnect()
            await asyncio.wait_for(task, timeout=1.0)
            return connection

        connection = asyncio.run(scenario())

        assert websocket.sent == [
            {"event": "video-frame", "data": "AAA"},
            {"event": "video-frame", "data": "BBB"},
        ]
        assert connection.frames_sent == 2
        assert connection.state is ConnectionState.DISCONNECTED
        assert websocket.closed is False

    def test_slow_viewer_only_gets_latest(self, make_websocket):
        """Frames dropped from the outbox are never sent."""
        websocket = make_websocket()

        async def scenario():
            connection = ViewerConnection(websocket, outbox_size=1)
            for sequence, payload in enumerate(["AAA", "BBB", "CCC"], start=1):
                connection.push(_frame(sequence, payload))
            await connection.accept()
            task = asyncio.create_task(connection.serve())
            await _settle()
            websocket.peer_disconnect()
            await asyncio.wait_for(task, timeout=1.0)

        asyncio.run(scenario())

        assert websocket.sent == [{"event": "video-frame", "data": "CCC"}]

    def test_send_failure_disconnects(self, make_websocket):
        """A failed send ends serve() and marks the viewer disconnected."""
        websocket = make_websocket(fail_send=True)

        async def scenario():
            connection = ViewerConnection(websocket)
            connection.push(_frame(1, "AAA"))
            await connection.accept()
            await asyncio.wait_for(connection.serve(), timeout=1.0)
            return connection

        connection = asyncio.run(scenario())

        assert connection.state is ConnectionState.DISCONNECTED
        assert websocket.closed is True
        with pytest.raises(ViewerDisconnected):
            connection.push(_frame(2, "BBB"))

    def test_server_close_ends_serve(self, make_websocket):
        """close() from the hub side stops the loops and closes the socket."""
        websocket = make_websocket()

        async def scenario():
            connection = ViewerConnection(websocket)
            await connection.accept()
            task = asyncio.create_task(connection.serve())
            await _settle()
            connection.close()
            await asyncio.wait_for(task, timeout=1.0)

        asyncio.run(scenario())

        assert websocket.closed is True
        assert websocket.sent == []

    def test_catch_up_sent_first_despite_backlog(self, make_websocket):
        """Live frames queued before the first send never displace the catch-up frame."""
        websocket = make_websocket()

        async def scenario():
            connection = ViewerConnection(websocket, outbox_size=1)
            connection.replay(_frame(1, "AAA"))
            connection.push(_frame(2, "BBB"))
            connection.push(_frame(3, "CCC"))
            await connection.accept()
            task = asyncio.create_task(connection.serve())
            await _settle()
            websocket.peer_disconnect()
            await asyncio.wait_for(task, timeout=1.0)

        asyncio.run(scenario())

        assert [message["data"] for message in websocket.sent] == ["AAA", "CCC"]

    def test_replay_while_sending_is_a_push(self, make_websocket):
        websocket = make_websocket()

        async def scenario():
            connection = ViewerConnection(websocket)
            await connection.accept()
            task = asyncio.create_task(connection.serve())
            await _settle()
            connection.replay(_frame(1, "AAA"))
            await _settle()
            websocket.peer_disconnect()
            await asyncio.wait_for(task, timeout=1.0)

        asyncio.run(scenario())

        assert [message["data"] for message in websocket.sent] == ["AAA"]

    def test_close_discards_catch_up(self, make_websocket):
        websocket = make_websocket()

        async def scenario():
            connection = ViewerConnection(websocket)
            connection.replay(_frame(1, "AAA"))
            connection.close()
            await asyncio.wait_for(connection.serve(), timeout=1.0)

        asyncio.run(scenario())

        assert websocket.sent == []
