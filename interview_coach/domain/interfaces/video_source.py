"""Video source interface."""

from typing import Optional, Protocol, runtime_checkable

from ..entities.video import VideoFrame


@runtime_checkable
class VideoSource(Protocol):
    """A live camera feed the motion detector can sample."""

    @property
    def available(self) -> bool:
        """False when the camera is denied, missing or switched off."""
        ...

    def latest_frame(self) -> Optional[VideoFrame]:
        """Most recent frame, or None if none has arrived yet."""
        ...
