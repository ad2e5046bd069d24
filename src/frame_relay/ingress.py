"""
Frame Ingress
=============

Validation and publishing for POST /frame.

Flow:
    body stream -> capped read -> JSON -> FrameUpload -> hub.publish -> FrameAck

Design Rules:
    - A rejected request never touches the hub
    - Exactly one fan-out per accepted frame (no batching, no coalescing)
    - Unexpected faults leave the cached frame as it was
"""

import json
import logging
from typing import AsyncIterator

from pydantic import ValidationError

from frame_relay.errors import InternalProcessingError, MissingPayload, PayloadTooLarge
from frame_relay.models.input import FrameUpload
from frame_relay.models.output import FrameAck
from frame_relay.relay.hub import BroadcastHub


logger = logging.getLogger(__name__)


class FrameIngress:
    """
    Turns producer requests into published frames.

    Attributes:
        hub: Hub that stores and fans out frames
        max_body_bytes: Largest accepted body
        log_every_n_frames: Progress log interval

    Example:
        ingress = FrameIngress(hub, max_body_bytes=10 * 1024 * 1024)
        ack = ingress.ingest(b'{"frame": "AAA"}')
        print(ack.frame_number)
    """

    def __init__(
        self,
        hub: BroadcastHub,
        max_body_bytes: int = 10 * 1024 * 1024,
        log_every_n_frames: int = 30,
    ) -> None:
        self.hub = hub
        self.max_body_bytes = max_body_bytes
        self.log_every_n_frames = log_every_n_frames

    async def read_body(self, chunks: AsyncIterator[bytes]) -> bytes:
        """
        Collect a request body, stopping as soon as it passes the cap.

        Args:
            chunks: Body chunks as they arrive (``request.stream()``)

        Returns:
            The complete body

        Raises:
            PayloadTooLarge: More than max_body_bytes arrived. The rest of
                the stream is never read.
        """
        body = bytearray()
        async for chunk in chunks:
            body.extend(chunk)
            if len(body) > self.max_body_bytes:
                raise PayloadTooLarge(
                    f"Body passed {self.max_body_bytes} bytes "
                    f"({len(body)} read before stopping)"
                )
        return bytes(body)

    def parse(self, body: bytes) -> FrameUpload:
        """
        Validate a raw request body.

        Args:
            body: Raw HTTP body

        Returns:
            Parsed upload

        Raises:
            PayloadTooLarge: Body exceeds max_body_bytes
            MissingPayload: Body is not a JSON object with a non-empty
                string ``frame``
        """
        if len(body) > self.max_body_bytes:
            raise PayloadTooLarge(
                f"Body of {len(body)} bytes exceeds {self.max_body_bytes}"
            )

        try:
            data = json.loads(body) if body else {}
        except (ValueError, UnicodeDecodeError) as e:
            raise MissingPayload(f"Body is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise MissingPayload("Body is not a JSON object")

        try:
            return FrameUpload.model_validate(data)
        except ValidationError as e:
            raise MissingPayload(f"Invalid frame field: {e.error_count()} error(s)") from e

    def ingest(self, body: bytes) -> FrameAck:
        """
        Accept a frame and fan it out.

        Args:
            body: Raw HTTP body

        Returns:
            Acknowledgement with the frame number and viewer count

        Raises:
            PayloadTooLarge, MissingPayload: Request rejected, no state change
            InternalProcessingError: Publishing failed, cached frame unchanged
        """
        upload = self.parse(body)

        try:
            frame = self.hub.publish(upload.frame)
        except Exception as e:
            logger.exception(f"Error processing frame: {e}")
            raise InternalProcessingError(str(e)) from e

        clients = self.hub.client_count
        if frame.sequence % self.log_every_n_frames == 0:
            logger.info(f"Frame {frame.sequence} sent to {clients} viewers")

        return FrameAck(clients=clients, frame_number=frame.sequence)
