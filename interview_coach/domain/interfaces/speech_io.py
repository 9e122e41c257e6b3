"""Speech capture and playback interfaces."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class SpeechCapture(Protocol):
    """One-shot speech recognition."""

    async def capture(self) -> str:
        """Capture one utterance and return the recognized text.

        Only one capture may be outstanding; a second call fails fast.

        Raises:
            CaptureError: On any failure (busy, timeout, no speech, denied).
        """
        ...

    async def cancel_capture(self) -> None:
        """Abort the outstanding capture, if any."""
        ...


@runtime_checkable
class SpeechPlayback(Protocol):
    """Interruptible speech synthesis."""

    async def speak(self, text: str) -> bool:
        """Speak ``text``, interrupting whatever is playing.

        Returns:
            bool: True once the utterance completed, False if it was
            superseded or cancelled before completing.
        """
        ...

    async def cancel(self) -> None:
        """Stop the current utterance without a completion signal."""
        ...
