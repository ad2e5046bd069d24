#!/usr/bin/env python3
"""
Relay Smoke Test Script
=======================

Standalone script to check a running relay end to end.

This script:
    1. Connects a viewer to the push channel
    2. Posts N synthetic frames as the producer
    3. Reports what the viewer received and the relay stats

Prerequisites:
    - The relay must be running (python -m frame_relay.main)
    - Install the package: pip install -e .

Usage:
    python scripts/relay_smoke.py --frames 60
    python scripts/relay_smoke.py --url http://localhost:10000 --interval 0.05
"""

import argparse
import base64
import logging
import os
import sys
import threading
import time
from typing import List

from frame_relay.client import FrameProducer, FrameRejected, iter_frames


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


def _ws_url(base_url: str, ws_path: str) -> str:
    if base_url.startswith("https://"):
        return "wss://" + base_url[len("https://"):].rstrip("/") + ws_path
    return "ws://" + base_url.split("://", 1)[-1].rstrip("/") + ws_path


def run_smoke(base_url: str, ws_path: str, frames: int, interval: float) -> dict:
    """
    Run the smoke test.

    Args:
        base_url: Relay HTTP root
        ws_path: Push channel path
        frames: Number of frames to post
        interval: Seconds between posts

    Returns:
        Summary dict
    """
    logger.info("=" * 60)
    logger.info("Relay Smoke Test")
    logger.info("=" * 60)
    logger.info(f"Relay URL: {base_url}")
    logger.info(f"Frames: {frames}, interval: {interval}s")

    received: List[str] = []

    def watch() -> None:
        try:
            for payload in iter_frames(_ws_url(base_url, ws_path), limit=frames):
                received.append(payload)
        except Exception as e:
            logger.error(f"Viewer error: {e}")

    viewer = threading.Thread(target=watch, name="smoke_viewer", daemon=True)
    viewer.start()
    time.sleep(0.5)

    rejected = 0
    start_time = time.time()
    with FrameProducer(base_url) as producer:
        for index in range(frames):
            payload = base64.b64encode(f"smoke-frame-{index}".encode()).decode("ascii")
            try:
                ack = producer.send(payload)
            except FrameRejected as e:
                rejected += 1
                logger.warning(str(e))
                continue
            if (index + 1) % 10 == 0:
                logger.info(f"Posted frame {ack.frame_number} ({ack.clients} viewers)")
            time.sleep(interval)

        viewer.join(timeout=5.0)
        health = producer.health()

    total_time = time.time() - start_time

    logger.info("=" * 60)
    logger.info("FINAL SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Total runtime: {total_time:.1f} seconds")
    logger.info(f"Frames posted: {frames - rejected}")
    logger.info(f"Frames rejected: {rejected}")
    logger.info(f"Frames received by viewer: {len(received)}")
    logger.info(f"Relay total frames: {health.get('total_frames')}")
    logger.info(f"Relay clients: {health.get('clients')}")
    logger.info("=" * 60)

    if received:
        logger.info("TEST PASSED - Viewer received frames")
    else:
        logger.error("TEST FAILED - Viewer received nothing")

    return {
        "duration": total_time,
        "posted": frames - rejected,
        "received": len(received),
        "rejected": rejected,
    }


def main():
    parser = argparse.ArgumentParser(description="End-to-end smoke test for the frame relay")
    parser.add_argument(
        "--url",
        type=str,
        default=os.environ.get("RELAY_URL", "http://localhost:10000"),
        help="HTTP root of the relay",
    )
    parser.add_argument(
        "--ws-path",
        type=str,
        default="/ws/stream",
        help="WebSocket path (default: /ws/stream)",
    )
    parser.add_argument(
        "--frames",
        type=int,
        default=30,
        help="Frames to post (default: 30)",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=0.1,
        help="Seconds between frames (default: 0.1)",
    )

    args = parser.parse_args()

    result = run_smoke(
        base_url=args.url,
        ws_path=args.ws_path,
        frames=args.frames,
        interval=args.interval,
    )

    sys.exit(0 if result["received"] > 0 else 1)


if __name__ == "__main__":
    main()
