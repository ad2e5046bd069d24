"""
Frame Relay
===========

Real-time frame relay server for the parking camera stream.

A single producer (the capture process) posts encoded frames over HTTP and
the relay fans each one out to every connected viewer over a WebSocket.
Only the latest frame is kept; new viewers get it immediately.

Components:
    - relay: Frame, FrameBuffer, ViewerConnection, BroadcastHub
    - ingress: POST /frame validation and publishing
    - viewer: Embedded HTML viewer page
    - client: Producer / viewer helpers for scripts and capture processes

Example:
    from frame_relay.main import create_app

    app = create_app()
    # uvicorn frame_relay.main:app --port 10000
"""

__version__ = "1.0.0"
__author__ = "Parking Stream Project"

__all__ = [
    "__version__",
]
