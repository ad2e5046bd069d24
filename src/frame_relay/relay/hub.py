"""
Broadcast Hub
=============

Owns the viewer set and the latest-frame buffer, and fans frames out.

The hub is the only holder of relay state: there are no module-level
globals. It is driven from a single asyncio event loop and never awaits
between reading and writing its state, so it needs no locks. It is not
thread-safe.

Delivery semantics:
    - Fire-and-forget, at-most-once per viewer per frame
    - A new viewer gets the cached frame right away (catch-up)
    - A viewer that misses frames only ever recovers the latest one
    - One failing viewer never stops delivery to the others
"""

import logging
from typing import Dict, List, Optional

from frame_relay.models.output import RelayStats
from frame_relay.relay.buffer import FrameBuffer
from frame_relay.relay.connection import ViewerConnection
from frame_relay.relay.frame import Frame


logger = logging.getLogger(__name__)


class BroadcastHub:
    """
    Viewer registry plus latest-frame cache.

    Example:
        hub = BroadcastHub()
        hub.register(connection)      # gets cached frame if any
        frame = hub.publish("AAA")    # store + fan-out
        hub.unregister(connection)    # idempotent
    """

    def __init__(self, buffer: Optional[FrameBuffer] = None) -> None:
        """
        Initialize the hub.

        Args:
            buffer: Frame buffer to own. A fresh one is created when omitted.
        """
        self._buffer = buffer if buffer is not None else FrameBuffer()
        self._connections: Dict[str, ViewerConnection] = {}

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def buffer(self) -> FrameBuffer:
        return self._buffer

    @property
    def current_frame(self) -> Optional[Frame]:
        return self._buffer.current

    @property
    def client_count(self) -> int:
        return len(self._connections)

    @property
    def total_frames(self) -> int:
        return self._buffer.sequence

    def connections(self) -> List[ViewerConnection]:
        """Snapshot of registered connections."""
        return list(self._connections.values())

    def is_registered(self, connection: ViewerConnection) -> bool:
        return self._connections.get(connection.connection_id) is connection

    def stats(self) -> RelayStats:
        return RelayStats(
            connected_clients=self.client_count,
            total_frames_received=self.total_frames,
            has_current_frame=self._buffer.has_frame,
        )

    # -------------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------------

    def register(self, connection: ViewerConnection) -> None:
        """
        Add a viewer and replay the cached frame to it.

        Registering an already registered connection does nothing.

        Args:
            connection: Viewer to add
        """
        if self.is_registered(connection):
            return

        self._connections[connection.connection_id] = connection
        logger.info(
            f"Viewer connected: {connection.connection_id} "
            f"(Total: {self.client_count})"
        )

        frame = self._buffer.current
        if frame is None:
            return

        if self._deliver(connection, frame, catch_up=True):
            logger.info(
                f"Cached frame {frame.sequence} sent to new viewer: "
                f"{connection.connection_id}"
            )

    def unregister(self, connection: ViewerConnection) -> bool:
        """
        Remove a viewer.

        Args:
            connection: Viewer to remove

        Returns:
            True if it was registered, False if it was already gone.
        """
        if not self.is_registered(connection):
            return False

        del self._connections[connection.connection_id]
        logger.info(
            f"Viewer disconnected: {connection.connection_id} "
            f"(Total: {self.client_count})"
        )
        return True

    # -------------------------------------------------------------------------
    # Fan-out
    # -------------------------------------------------------------------------

    def broadcast(self, frame: Frame) -> int:
        """
        Hand a frame to every registered viewer.

        Args:
            frame: Frame to deliver

        Returns:
            Number of viewers the frame was handed to.
        """
        delivered = 0
        for connection in self.connections():
            if self._deliver(connection, frame):
                delivered += 1
        return delivered

    def publish(self, payload: str) -> Frame:
        """
        Broadcast a new frame once and make it the cached frame.

        The buffer only changes after fan-out returns, so an exception
        here leaves the cached frame and counter untouched.

        Args:
            payload: Encoded frame data

        Returns:
            The stored Frame.
        """
        frame = self._buffer.prepare(payload)
        self.broadcast(frame)
        self._buffer.commit(frame)
        return frame

    def close(self) -> None:
        """Close and forget every viewer (server shutdown)."""
        for connection in self.connections():
            connection.close()
        self._connections.clear()

    def _deliver(
        self,
        connection: ViewerConnection,
        frame: Frame,
        catch_up: bool = False,
    ) -> bool:
        """Push to one viewer; a failure drops that viewer only."""
        try:
            if catch_up:
                connection.replay(frame)
            else:
                connection.push(frame)
            return True
        except Exception as e:
            logger.warning(
                f"Delivery fault for viewer {connection.connection_id} "
                f"(frame={frame.sequence}): {e}"
            )
            self.unregister(connection)
            try:
                connection.close()
            except Exception as close_error:
                logger.debug(
                    f"Closing viewer {connection.connection_id} failed: {close_error}"
                )
            return False
