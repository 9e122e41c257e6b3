"""Speech capture and playback carried out by the connected client."""

import asyncio
import logging
import uuid
from typing import Optional

from ..domain.entities.errors import CaptureError
from ..domain.entities.events import CaptureOutcome, PlaybackOutcome
from ..domain.entities.messages import (
    CancelSpeechMessage,
    OutboundMessage,
    SpeakMessage,
    StartCaptureMessage,
    StopCaptureMessage,
)

logger = logging.getLogger(__name__)


class ClientSpeechBridge:
    """
    Implements ``SpeechCapture`` and ``SpeechPlayback`` over the WebSocket.

    The browser owns the recognizer and the synthesizer. The bridge sends
    commands through the outbound queue and waits on a future per capture or
    utterance; the WebSocket handler resolves those futures when the client
    reports back. Replies carrying an id that is no longer current are
    ignored.
    """

    def __init__(
        self,
        outbound_queue: asyncio.Queue,
        capture_timeout_seconds: float = 30.0,
        playback_timeout_seconds: float = 120.0,
    ):
        self.outbound_queue: asyncio.Queue[OutboundMessage] = outbound_queue
        self.capture_timeout_seconds = capture_timeout_seconds
        self.playback_timeout_seconds = playback_timeout_seconds

        self._capture_id: Optional[str] = None
        self._capture_future: Optional[asyncio.Future] = None
        self._utterance_id: Optional[str] = None
        self._utterance_future: Optional[asyncio.Future] = None

    @property
    def capturing(self) -> bool:
        return self._capture_future is not None and not self._capture_future.done()

    @property
    def speaking(self) -> bool:
        return self._utterance_future is not None and not self._utterance_future.done()

    # ===== Capture =====

    async def capture(self) -> str:
        if self.capturing:
            raise CaptureError("A speech capture is already in progress")

        capture_id = uuid.uuid4().hex
        future = asyncio.get_running_loop().create_future()
        self._capture_id = capture_id
        self._capture_future = future

        await self.outbound_queue.put(StartCaptureMessage(capture_id))
        try:
            return await asyncio.wait_for(future, timeout=self.capture_timeout_seconds)
        except asyncio.TimeoutError as e:
            logger.info(f"Capture {capture_id} timed out")
            self.outbound_queue.put_nowait(StopCaptureMessage(capture_id))
            raise CaptureError("No speech detected") from e
        except asyncio.CancelledError:
            self.outbound_queue.put_nowait(StopCaptureMessage(capture_id))
            raise
        finally:
            if self._capture_id == capture_id:
                self._capture_id = None
                self._capture_future = None

    def resolve_capture(self, outcome: CaptureOutcome) -> bool:
        """Deliver the client's capture result. Returns False for stale ids."""
        future = self._capture_future
        if outcome.capture_id != self._capture_id or future is None or future.done():
            logger.debug(f"Ignoring result for stale capture {outcome.capture_id}")
            return False

        if outcome.succeeded:
            future.set_result(outcome.text.strip())
        else:
            logger.info(f"Capture {outcome.capture_id} failed on client: {outcome.error}")
            future.set_exception(CaptureError(outcome.error or "No speech recognized"))
        return True

    async def cancel_capture(self) -> None:
        if not self.capturing:
            return

        capture_id = self._capture_id
        self._capture_future.set_exception(CaptureError("Capture cancelled"))
        await self.outbound_queue.put(StopCaptureMessage(capture_id))

    # ===== Playback =====

    async def speak(self, text: str) -> bool:
        await self.cancel()

        utterance_id = uuid.uuid4().hex
        future = asyncio.get_running_loop().create_future()
        self._utterance_id = utterance_id
        self._utterance_future = future

        await self.outbound_queue.put(SpeakMessage(utterance_id, text))
        try:
            return await asyncio.wait_for(future, timeout=self.playback_timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(f"No playback completion for {utterance_id}, treating it as finished")
            return True
        finally:
            if self._utterance_id == utterance_id:
                self._utterance_id = None
                self._utterance_future = None

    def resolve_playback(self, outcome: PlaybackOutcome) -> bool:
        """Deliver the client's playback completion. Returns False for stale ids."""
        future = self._utterance_future
        if outcome.utterance_id != self._utterance_id or future is None or future.done():
            logger.debug(f"Ignoring completion for stale utterance {outcome.utterance_id}")
            return False

        future.set_result(True)
        return True

    async def cancel(self) -> None:
        if not self.speaking:
            return

        utterance_id = self._utterance_id
        self._utterance_future.set_result(False)
        self._utterance_id = None
        self._utterance_future = None
        await self.outbound_queue.put(CancelSpeechMessage(utterance_id))
