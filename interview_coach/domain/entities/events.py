"""Speech event entities reported by the client."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class CaptureOutcome:
    """Result of one speech capture: recognized text or a failure reason."""

    capture_id: str
    text: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and bool(self.text and self.text.strip())


@dataclass
class PlaybackOutcome:
    """An utterance finished playing."""

    utterance_id: str
