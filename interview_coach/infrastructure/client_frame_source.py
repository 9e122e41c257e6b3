"""Video frames pushed by the client over the WebSocket."""

import logging
import struct
import time
from typing import Optional

import numpy as np

from ..domain.entities.errors import DeviceError
from ..domain.entities.video import VideoFrame

logger = logging.getLogger(__name__)

HEADER = struct.Struct("<II")  # width, height


def decode_frame(payload: bytes, timestamp: Optional[float] = None) -> VideoFrame:
    """
    Decode a binary frame: little-endian uint32 width and height followed by
    width * height RGBA bytes.

    Raises:
        ValueError: If the payload is truncated or its size does not match.
    """
    if len(payload) < HEADER.size:
        raise ValueError(f"Frame payload too short ({len(payload)} bytes)")

    width, height = HEADER.unpack_from(payload)
    expected = width * height * 4
    body = memoryview(payload)[HEADER.size:]
    if width == 0 or height == 0 or len(body) != expected:
        raise ValueError(f"Frame {width}x{height} needs {expected} bytes, got {len(body)}")

    pixels = np.frombuffer(body, dtype=np.uint8).reshape(height, width, 4)
    return VideoFrame(pixels, timestamp if timestamp is not None else time.time())


class ClientFrameSource:
    """
    Single-slot holder for the most recent client video frame.

    The client marks the camera unavailable when permission is denied or the
    candidate switches video off; frames are dropped while unavailable.
    """

    def __init__(self):
        self._frame: Optional[VideoFrame] = None
        self._available = False
        self.frames_received = 0

    @property
    def available(self) -> bool:
        return self._available

    def latest_frame(self) -> Optional[VideoFrame]:
        return self._frame

    def push(self, payload: bytes) -> VideoFrame:
        """Decode and keep a binary frame. Marks the source available."""
        frame = decode_frame(payload)
        self._frame = frame
        self._available = True
        self.frames_received += 1
        return frame

    def mark_unavailable(self, error: Optional[DeviceError] = None) -> None:
        if error:
            logger.info(f"Video source unavailable: {error}")
        self._available = False
        self._frame = None
