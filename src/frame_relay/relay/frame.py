"""
Frame Data Model
=================

Internal frame representation for the relay.

Design Rules:
    - Payload is opaque: never decoded or modified
    - Sequence numbers are assigned by the FrameBuffer, starting at 1
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Frame:
    """
    An ingested frame.

    Immutable (frozen) so a frame handed to several viewers cannot be
    changed under them.

    Attributes:
        sequence: 1-based ingest number
        payload: Encoded frame data exactly as posted
        received_at: UNIX timestamp when the relay accepted the frame
    """

    sequence: int
    payload: str
    received_at: float

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the full image."""
        return (
            f"Frame(sequence={self.sequence}, "
            f"received_at={self.received_at:.3f}, "
            f"size={len(self.payload)})"
        )
