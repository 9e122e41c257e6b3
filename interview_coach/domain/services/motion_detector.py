"""Frame-difference motion estimation over a live video source."""

import asyncio
import logging
from typing import Callable, Optional

import numpy as np

from ..entities.video import MotionSample
from ..interfaces.video_source import VideoSource

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 0.1
DEFAULT_CHANNEL_THRESHOLD = 20


def downsample(pixels: np.ndarray) -> np.ndarray:
    """
    Reduce an RGB(A) frame to half its width and height.

    Each output pixel is the mean of a 2x2 block of the source; an alpha
    channel is dropped and an odd trailing row/column is ignored.

    Raises:
        ValueError: If the frame is not HxWx3/4 or is smaller than 2x2.
    """
    if pixels.ndim != 3 or pixels.shape[2] < 3:
        raise ValueError(f"Expected an HxWx3 or HxWx4 frame, got shape {pixels.shape}")

    height, width = pixels.shape[0] // 2, pixels.shape[1] // 2
    if height == 0 or width == 0:
        raise ValueError(f"Frame too small to downsample: {pixels.shape}")

    rgb = pixels[: height * 2, : width * 2, :3].astype(np.float32)
    return rgb.reshape(height, 2, width, 2, 3).mean(axis=(1, 3))


def motion_percentage(
    previous: np.ndarray,
    current: np.ndarray,
    channel_threshold: float = DEFAULT_CHANNEL_THRESHOLD,
) -> float:
    """
    Share of pixels, 0-100, where any color channel moved by more than
    ``channel_threshold`` between two equally sized frames.
    """
    if previous.shape != current.shape:
        raise ValueError(f"Frame shapes differ: {previous.shape} vs {current.shape}")

    delta = np.abs(current.astype(np.float32) - previous.astype(np.float32))
    changed = np.any(delta > channel_threshold, axis=-1)
    if changed.size == 0:
        return 0.0

    percentage = 100.0 * np.count_nonzero(changed) / changed.size
    return float(min(100.0, max(0.0, percentage)))


class MotionDetector:
    """
    Periodically samples a video source and publishes a motion percentage.

    The detector owns the previous-frame buffer. Only the latest sample is
    kept (``latest``); an optional ``on_sample`` listener is called with every
    new value. When the source is missing or unavailable the detector stays
    at 0 and starts no sampling task.
    """

    def __init__(
        self,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        channel_threshold: float = DEFAULT_CHANNEL_THRESHOLD,
        on_sample: Optional[Callable[[MotionSample], None]] = None,
    ):
        self.interval_seconds = interval_seconds
        self.channel_threshold = channel_threshold
        self._on_sample = on_sample

        self._latest = MotionSample()
        self._previous: Optional[np.ndarray] = None
        self._source: Optional[VideoSource] = None

        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def latest(self) -> MotionSample:
        return self._latest

    @property
    def running(self) -> bool:
        return self._running

    def start(self, source: Optional[VideoSource]) -> None:
        """Begin sampling ``source`` every ``interval_seconds``."""
        if self._running:
            logger.warning("Motion detector already running")
            return

        self._previous = None
        self._publish(0.0)

        if source is None or not source.available:
            logger.info("Video source unavailable, motion detector reporting 0")
            return

        self._source = source
        self._running = True
        self._task = asyncio.create_task(self._sample_loop())
        logger.info(f"Motion detector started ({self.interval_seconds}s interval)")

    async def stop(self) -> None:
        """Stop sampling and drop the previous-frame buffer."""
        self._running = False
        was_sampling = self._task is not None
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.error(f"Motion sampling task had failed: {e}", exc_info=True)
            self._task = None
            logger.info("Motion detector stopped")

        self._source = None
        self._previous = None
        if was_sampling:
            self._publish(0.0)
        else:
            self._latest = MotionSample()

    def sample(self, pixels: np.ndarray) -> float:
        """Compare ``pixels`` with the previous frame and publish the result."""
        current = downsample(pixels)

        if self._previous is None or self._previous.shape != current.shape:
            self._previous = current
            self._publish(0.0)
            return 0.0

        percentage = motion_percentage(self._previous, current, self.channel_threshold)
        self._previous = current
        self._publish(percentage)
        return percentage

    async def _sample_loop(self) -> None:
        try:
            await self._run_samples()
        finally:
            self._running = False

    async def _run_samples(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self.interval_seconds)
                source = self._source
                if source is None or not source.available:
                    if self._previous is not None:
                        self._previous = None
                        self._publish(0.0)
                    continue

                frame = source.latest_frame()
                if frame is None:
                    continue

                self.sample(frame.pixels)
            except asyncio.CancelledError:
                logger.debug("Motion sampling task cancelled")
                break
            except ValueError as e:
                logger.warning(f"Skipping malformed video frame: {e}")
            except Exception as e:
                logger.error(f"Error sampling video source: {e}", exc_info=True)

    def _publish(self, percentage: float) -> None:
        self._latest = MotionSample(percentage=percentage)
        logger.debug(f"Motion {percentage:.1f}%")
        if self._on_sample:
            try:
                self._on_sample(self._latest)
            except Exception as e:
                logger.error(f"Motion listener failed: {e}", exc_info=True)
