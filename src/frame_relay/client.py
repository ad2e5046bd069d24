"""
Relay Clients
=============

Helpers for the two sides of the relay.

    - FrameProducer: posts frames to /frame (capture processes, scripts)
    - iter_frames: watches the push channel and yields frame payloads

Example:
    from frame_relay.client import FrameProducer, iter_frames

    producer = FrameProducer("http://localhost:10000")
    producer.send_image(jpeg_bytes)

    for payload in iter_frames("ws://localhost:10000/ws/stream", limit=10):
        print(len(payload))
"""

import base64
import json
import logging
from typing import Iterator, Optional

import requests
from websockets.sync.client import connect as ws_connect

from frame_relay.models.output import FrameAck, VIDEO_FRAME_EVENT


logger = logging.getLogger(__name__)


class FrameRejected(Exception):
    """The relay answered a frame upload with a non-200 status."""

    def __init__(self, status_code: int, error: str) -> None:
        super().__init__(f"Relay rejected frame ({status_code}): {error}")
        self.status_code = status_code
        self.error = error


class FrameProducer:
    """
    HTTP client for POST /frame.

    Attributes:
        base_url: Relay root URL, e.g. http://localhost:10000
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def send(self, payload: str) -> FrameAck:
        """
        Post an already encoded frame.

        Args:
            payload: Encoded frame (base64 JPEG for the built-in viewer)

        Returns:
            Relay acknowledgement

        Raises:
            FrameRejected: Relay returned an error status
            requests.RequestException: Transport failure
        """
        response = self._session.post(
            f"{self.base_url}/frame",
            json={"frame": payload},
            timeout=self.timeout,
        )
        if response.status_code != 200:
            try:
                error = response.json().get("error", response.text)
            except ValueError:
                error = response.text
            raise FrameRejected(response.status_code, error)
        return FrameAck.model_validate(response.json())

    def send_image(self, image: bytes) -> FrameAck:
        """Base64-encode raw image bytes and post them."""
        return self.send(base64.b64encode(image).decode("ascii"))

    def health(self) -> dict:
        """Fetch GET /health."""
        response = self._session.get(f"{self.base_url}/health", timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "FrameProducer":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def iter_frames(
    ws_url: str,
    limit: Optional[int] = None,
    open_timeout: float = 10.0,
) -> Iterator[str]:
    """
    Yield frame payloads pushed by the relay.

    Messages that are not ``video-frame`` events are skipped.

    Args:
        ws_url: Push channel URL, e.g. ws://localhost:10000/ws/stream
        limit: Stop after this many frames (None = until the server closes)
        open_timeout: Handshake timeout in seconds
    """
    received = 0
    with ws_connect(ws_url, open_timeout=open_timeout) as websocket:
        logger.info(f"Connected to {ws_url}")
        for raw in websocket:
            try:
                packet = json.loads(raw)
            except ValueError:
                logger.warning("Skipping non-JSON message")
                continue

            if packet.get("event") != VIDEO_FRAME_EVENT:
                continue

            yield packet.get("data", "")
            received += 1
            if limit is not None and received >= limit:
                break
