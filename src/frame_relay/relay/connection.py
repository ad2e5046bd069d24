"""
Viewer Connection
=================

One viewer's WebSocket, its lifecycle and its outbox.

Lifecycle:
    CONNECTING  -> created, handshake not yet accepted
    CONNECTED   -> handshake accepted, frames are being sent
    DISCONNECTED (terminal) -> peer closed, send failed, or server closed it

The hub never awaits socket I/O. It calls push(), which only drops the
frame into this connection's outbox; a per-connection send task drains
the outbox. A slow viewer therefore only ever delays itself.

Design Rules:
    - Outbox is bounded; on overflow the oldest pending frame is dropped
    - A dropped frame is never resent (at-most-once per viewer)
    - The catch-up frame has its own slot ahead of the outbox and is
      never dropped by overflow
    - Client messages are read and ignored; they only reveal a close
    - A reconnect is a new ViewerConnection, never a state reset
"""

import asyncio
import logging
import secrets
from enum import Enum
from typing import Any, Optional

from frame_relay.errors import ViewerDisconnected
from frame_relay.models.output import PushEvent
from frame_relay.relay.frame import Frame


logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    """Viewer connection lifecycle states."""

    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"
    DISCONNECTED = "DISCONNECTED"


class ViewerConnection:
    """
    A viewer attached to the push channel.

    Attributes:
        websocket: Underlying ASGI WebSocket (FastAPI / Starlette)
        connection_id: Random hex id used in logs and hub bookkeeping
        frames_sent: Frames written to the socket
        frames_dropped: Frames discarded because the outbox was full

    Example:
        connection = ViewerConnection(websocket, outbox_size=1)
        hub.register(connection)
        await connection.accept()
        try:
            await connection.serve()
        finally:
            hub.unregister(connection)
    """

    def __init__(
        self,
        websocket: Any,
        connection_id: Optional[str] = None,
        outbox_size: int = 1,
    ) -> None:
        """
        Initialize a viewer connection.

        Args:
            websocket: Accept-able WebSocket with send_json/receive/close
            connection_id: Explicit id, random when omitted
            outbox_size: Pending frames kept before dropping the oldest
        """
        if outbox_size < 1:
            raise ValueError("outbox_size must be >= 1")

        self.websocket = websocket
        self.connection_id = connection_id or secrets.token_hex(8)

        # None is the stop sentinel for the send loop
        self._outbox: asyncio.Queue[Optional[Frame]] = asyncio.Queue(maxsize=outbox_size)
        self._state = ConnectionState.CONNECTING
        self._peer_closed: bool = False
        self._catch_up: Optional[Frame] = None
        self._sending: bool = False

        self.frames_sent: int = 0
        self.frames_dropped: int = 0

    def __repr__(self) -> str:
        return f"ViewerConnection(id={self.connection_id}, state={self._state.value})"

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_open(self) -> bool:
        """Whether the connection still accepts frames."""
        return self._state is not ConnectionState.DISCONNECTED

    @property
    def pending(self) -> int:
        """Frames waiting in the outbox."""
        return self._outbox.qsize()

    # -------------------------------------------------------------------------
    # Hub side (never blocks)
    # -------------------------------------------------------------------------

    def push(self, frame: Frame) -> None:
        """
        Queue a frame for delivery.

        Args:
            frame: Frame to send

        Raises:
            ViewerDisconnected: If the connection is already closed.
        """
        if self._state is ConnectionState.DISCONNECTED:
            raise ViewerDisconnected(f"Viewer {self.connection_id} is disconnected")
        self._enqueue(frame)

    def replay(self, frame: Frame) -> None:
        """
        Queue the cached frame for a viewer that just joined.

        Until the send loop starts, the frame waits in its own slot and is
        sent before anything in the outbox, so overflow cannot drop it.
        Once sending has started it is an ordinary push.

        Raises:
            ViewerDisconnected: If the connection is already closed.
        """
        if self._state is ConnectionState.DISCONNECTED:
            raise ViewerDisconnected(f"Viewer {self.connection_id} is disconnected")
        if self._sending:
            self._enqueue(frame)
        else:
            self._catch_up = frame

    def close(self) -> None:
        """
        Move to DISCONNECTED and stop the send loop.

        Idempotent. Pending frames are discarded.
        """
        if self._state is ConnectionState.DISCONNECTED:
            return
        self._state = ConnectionState.DISCONNECTED
        self._catch_up = None
        while True:
            try:
                self._outbox.get_nowait()
            except asyncio.QueueEmpty:
                break
        self._outbox.put_nowait(None)

    def _enqueue(self, frame: Frame) -> None:
        if self._outbox.full():
            try:
                self._outbox.get_nowait()
                self.frames_dropped += 1
                logger.debug(
                    f"Viewer {self.connection_id} slow, dropped oldest pending frame "
                    f"(dropped: {self.frames_dropped})"
                )
            except asyncio.QueueEmpty:
                pass
        self._outbox.put_nowait(frame)

    # -------------------------------------------------------------------------
    # Transport side
    # -------------------------------------------------------------------------

    async def accept(self) -> None:
        """
        Complete the WebSocket handshake.

        Raises:
            ViewerDisconnected: If the connection was closed before accepting.
        """
        if self._state is not ConnectionState.CONNECTING:
            raise ViewerDisconnected(f"Viewer {self.connection_id} cannot be accepted")
        await self.websocket.accept()
        self._state = ConnectionState.CONNECTED

    async def serve(self) -> None:
        """
        Run the send and receive loops until either ends.

        Returns when the peer closes, a send fails, or close() is called.
        The connection is DISCONNECTED afterwards.
        """
        sender = asyncio.create_task(
            self._send_loop(),
            name=f"viewer_send_{self.connection_id}",
        )
        receiver = asyncio.create_task(
            self._receive_loop(),
            name=f"viewer_receive_{self.connection_id}",
        )

        try:
            await asyncio.wait(
                {sender, receiver},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            self.close()
            for task in (sender, receiver):
                if not task.done():
                    task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
            await self._close_transport()

    async def _send_loop(self) -> None:
        """Send the catch-up frame, then drain the outbox into the socket."""
        self._sending = True
        frame, self._catch_up = self._catch_up, None
        if frame is not None and not await self._send(frame):
            return

        while True:
            frame = await self._outbox.get()
            if frame is None:
                return
            if not await self._send(frame):
                return

    async def _send(self, frame: Frame) -> bool:
        event = PushEvent(data=frame.payload)
        try:
            await self.websocket.send_json(event.model_dump())
        except Exception as e:
            logger.warning(
                f"Delivery to viewer {self.connection_id} failed "
                f"(frame={frame.sequence}): {e}"
            )
            return False
        self.frames_sent += 1
        return True

    async def _receive_loop(self) -> None:
        """Read and discard client messages until the peer goes away."""
        while True:
            try:
                message = await self.websocket.receive()
            except Exception as e:
                logger.warning(f"Viewer {self.connection_id} transport error: {e}")
                self._peer_closed = True
                return

            if message.get("type") == "websocket.disconnect":
                self._peer_closed = True
                return

    async def _close_transport(self) -> None:
        if self._peer_closed:
            return
        try:
            await self.websocket.close()
        except Exception as e:
            logger.debug(f"Closing viewer {self.connection_id} socket failed: {e}")
