"""
Input Message Schema
====================

Pydantic model for frames posted by the producer.

Input Contract (POST /frame):
    {
        "frame": "<base64 JPEG>"
    }

Any extra keys are ignored. The frame is opaque to the relay: it is
stored and forwarded exactly as received, never decoded.
"""

from pydantic import BaseModel, ConfigDict, Field


class FrameUpload(BaseModel):
    """
    Schema for a frame upload from the producer.

    Attributes:
        frame: Encoded frame payload (non-empty string)
    """

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {"frame": "/9j/4AAQSkZJRg..."},
        },
    )

    frame: str = Field(
        ...,
        min_length=1,
        description="Encoded frame payload, usually base64 JPEG",
    )
