"""
Test Configuration
==================

Pytest fixtures and test doubles for the frame relay.
"""

import asyncio

import pytest

from frame_relay.errors import ViewerDisconnected


class RecordingViewer:
    """Hub-side stand-in for ViewerConnection that records pushes and replays."""

    def __init__(self, connection_id: str, broken: bool = False) -> None:
        self.connection_id = connection_id
        self.broken = broken
        self.received = []
        self.closed = False

    def push(self, frame):
        if self.broken or self.closed:
            raise ViewerDisconnected(f"{self.connection_id} is gone")
        self.received.append(frame)

    def replay(self, frame):
        self.push(frame)

    def close(self):
        self.closed = True


class FakeWebSocket:
    """Minimal ASGI WebSocket double for ViewerConnection."""

    def __init__(self, fail_send: bool = False) -> None:
        self.fail_send = fail_send
        self.accepted = False
        self.closed = False
        self.sent = []
        self._incoming = None

    @property
    def incoming(self) -> asyncio.Queue:
        if self._incoming is None:
            self._incoming = asyncio.Queue()
        return self._incoming

    async def accept(self):
        self.accepted = True

    async def send_json(self, data):
        if self.fail_send:
            raise RuntimeError("socket is gone")
        self.sent.append(data)

    async def receive(self):
        return await self.incoming.get()

    async def close(self):
        self.closed = True

    def peer_disconnect(self):
        self.incoming.put_nowait({"type": "websocket.disconnect", "code": 1000})


@pytest.fixture
def make_viewer():
    """Factory for RecordingViewer doubles."""
    def _make(connection_id: str, broken: bool = False) -> RecordingViewer:
        return RecordingViewer(connection_id, broken=broken)
    return _make


@pytest.fixture
def make_websocket():
    """Factory for FakeWebSocket doubles."""
    def _make(fail_send: bool = False) -> FakeWebSocket:
        return FakeWebSocket(fail_send=fail_send)
    return _make


@pytest.fixture
def hub():
    """Fresh BroadcastHub."""
    from frame_relay.relay import BroadcastHub

    return BroadcastHub()


@pytest.fixture
def relay_settings():
    """Settings with a small body cap for size tests."""
    from frame_relay.config import IngressConfig, Settings

    return Settings(ingress=IngressConfig(max_body_bytes=4096, log_every_n_frames=2))


@pytest.fixture
def client(relay_settings, hub):
    """TestClient sharing one event loop across HTTP and WebSocket calls."""
    from fastapi.testclient import TestClient

    from frame_relay.main import create_app

    app = create_app(relay_settings, hub=hub)
    with TestClient(app) as test_client:
        yield test_client
