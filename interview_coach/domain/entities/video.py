"""Video-related entities."""

from dataclasses import dataclass, field
from datetime import datetime

import numpy as np


class VideoFrame:
    """Container for one RGB(A) video frame with metadata."""

    def __init__(self, pixels: np.ndarray, timestamp: float):
        self.pixels = pixels
        self.timestamp = timestamp

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]


@dataclass(frozen=True)
class MotionSample:
    """Latest motion reading: share of changed pixels, 0-100."""

    percentage: float = 0.0
    timestamp: float = field(default_factory=lambda: datetime.utcnow().timestamp())
