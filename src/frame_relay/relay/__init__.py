"""
Relay Module
============

Latest-frame cache and viewer fan-out.

This module provides the core of the relay:
    - Frame: Immutable ingested frame
    - FrameBuffer: Single-slot latest-frame store with sequence counter
    - ViewerConnection: One viewer's socket, lifecycle and outbox
    - BroadcastHub: Viewer set + buffer, register/unregister/broadcast

Example:
    from frame_relay.relay import BroadcastHub

    hub = BroadcastHub()
    hub.register(connection)
    hub.publish(frame_b64)
"""

from frame_relay.relay.frame import Frame
from frame_relay.relay.buffer import FrameBuffer
from frame_relay.relay.connection import ConnectionState, ViewerConnection
from frame_relay.relay.hub import BroadcastHub


__all__ = [
    "Frame",
    "FrameBuffer",
    "ConnectionState",
    "ViewerConnection",
    "BroadcastHub",
]
