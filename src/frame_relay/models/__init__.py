"""
Data Models
===========

Pydantic models for the frame relay HTTP and WebSocket contracts.

Models:
    Input:
        - FrameUpload: Body of POST /frame

    Output:
        - FrameAck: Successful POST /frame response
        - HealthReport: GET /health payload
        - RelayStats: Live counters
        - ServiceInfo: GET / service descriptor
        - PushEvent: Message sent to viewers
"""

from frame_relay.models.input import FrameUpload
from frame_relay.models.output import (
    FrameAck,
    HealthReport,
    PushEvent,
    RelayStats,
    ServiceInfo,
    VIDEO_FRAME_EVENT,
)

__all__ = [
    # Input
    "FrameUpload",
    # Output
    "FrameAck",
    "HealthReport",
    "RelayStats",
    "ServiceInfo",
    "PushEvent",
    "VIDEO_FRAME_EVENT",
]
