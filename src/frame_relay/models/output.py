"""
Output Models
=============

Response and push contracts of the relay.

POST /frame (200):
    {"success": true, "message": "...", "clients": 3, "frame_number": 42}

GET /health:
    {"status": "OK", "timestamp": "2026-01-01T00:00:00.000Z",
     "clients": 3, "total_frames": 42, "message": "..."}

GET /:
    {"name": "...", "version": "1.0.0", "status": "running",
     "endpoints": {...}, "stats": {"connected_clients": 3,
     "total_frames_received": 42, "has_current_frame": true}}

WebSocket push:
    {"event": "video-frame", "data": "<frame payload>"}
"""

from typing import Dict

from pydantic import BaseModel, Field


VIDEO_FRAME_EVENT = "video-frame"


class FrameAck(BaseModel):
    """Acknowledgement returned to the producer for an accepted frame."""

    success: bool = Field(default=True)
    message: str = Field(default="Frame recibido y transmitido")
    clients: int = Field(..., ge=0, description="Viewers connected after fan-out")
    frame_number: int = Field(..., ge=1, description="Sequence number of the frame")


class HealthReport(BaseModel):
    """Liveness payload."""

    status: str = Field(default="OK")
    timestamp: str = Field(..., description="ISO-8601 UTC time of the check")
    clients: int = Field(..., ge=0)
    total_frames: int = Field(..., ge=0)
    message: str = Field(default="Servidor de streaming funcionando")


class RelayStats(BaseModel):
    """
    Live relay counters.

    Derived from the hub: connected_clients is the size of the
    connection set and total_frames_received is the buffer sequence.
    """

    connected_clients: int = Field(..., ge=0)
    total_frames_received: int = Field(..., ge=0)
    has_current_frame: bool


class ServiceInfo(BaseModel):
    """Service descriptor returned by GET /."""

    name: str
    version: str
    status: str = Field(default="running")
    endpoints: Dict[str, str]
    stats: RelayStats


class PushEvent(BaseModel):
    """Message pushed to a viewer over the WebSocket."""

    event: str = Field(default=VIDEO_FRAME_EVENT)
    data: str = Field(..., description="Raw frame payload")
