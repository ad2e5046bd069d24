"""
Frame Buffer
=============

Single-slot store for the most recent frame.

Design Rules:
    - Holds at most one frame (last write wins)
    - No history: an overwritten frame is gone
    - Sequence counter only ever increases
    - Does NOT process or modify frames
"""

import logging
import time
from typing import Optional

from frame_relay.relay.frame import Frame


logger = logging.getLogger(__name__)


class FrameBuffer:
    """
    Latest-frame slot with a sequence counter.

    Storing is split into prepare() and commit(): slot and counter only
    change in commit(), in a single assignment. A caller that fails
    between the two leaves the buffer as it was.

    Example:
        buffer = FrameBuffer()
        frame = buffer.store("AAA")
        assert buffer.current is frame
        assert buffer.sequence == 1
    """

    def __init__(self) -> None:
        self._current: Optional[Frame] = None
        self._sequence: int = 0

    @property
    def current(self) -> Optional[Frame]:
        """Latest stored frame, or None before the first store."""
        return self._current

    @property
    def sequence(self) -> int:
        """Number of frames stored so far."""
        return self._sequence

    @property
    def has_frame(self) -> bool:
        return self._current is not None

    def prepare(self, payload: str) -> Frame:
        """
        Build the frame that would be stored next, without storing it.

        Args:
            payload: Encoded frame data

        Returns:
            Frame carrying the next sequence number.
        """
        return Frame(
            sequence=self._sequence + 1,
            payload=payload,
            received_at=time.time(),
        )

    def commit(self, frame: Frame) -> None:
        """
        Make a prepared frame the current one.

        Raises:
            ValueError: If the frame does not carry the next sequence number.
        """
        if frame.sequence != self._sequence + 1:
            raise ValueError(
                f"Out of order commit: sequence {frame.sequence}, "
                f"expected {self._sequence + 1}"
            )
        self._current, self._sequence = frame, frame.sequence

    def store(self, payload: str) -> Frame:
        """
        Replace the current frame.

        Args:
            payload: Encoded frame data

        Returns:
            The stored Frame with its new sequence number.
        """
        frame = self.prepare(payload)
        self.commit(frame)
        return frame
