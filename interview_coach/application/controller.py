"""Interview Coach Controller for handling business logic and coordination."""

import asyncio
import hashlib
import logging
from typing import Optional

from fastapi import WebSocket

from .config import Settings
from .websocket_handler import WebSocketHandler
from ..domain.entities import InterviewSession, MotionSample
from ..domain.entities.messages import MotionMessage, OutboundMessage
from ..domain.interfaces.response_generator import ResponseGenerator
from ..domain.interfaces.transcript_store import TranscriptStore
from ..domain.services import MotionDetector, PersistenceSync, TurnCoordinator
from ..domain.services.prompts import ROLES_AND_STACKS
from ..infrastructure.client_frame_source import ClientFrameSource
from ..infrastructure.client_speech_bridge import ClientSpeechBridge
from ..infrastructure.http_transcript_store import HttpTranscriptStore

logger = logging.getLogger(__name__)

ANONYMOUS_OWNER = "anonymous"


def owner_key(token: Optional[str]) -> str:
    """Stable owner key for a token, so raw tokens are never stored."""
    if not token:
        return ANONYMOUS_OWNER
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class InterviewCoachController:
    """
    Controller for coordinating interview coach operations.

    The controller is injected with the response generator and, for the
    local and DynamoDB backends, one shared transcript store. With the HTTP
    backend there is no shared store: each caller gets a store bound to its
    own token. Every WebSocket connection gets its own coordinator, speech
    bridge, frame source and motion detector.
    """

    def __init__(
        self,
        response_generator: ResponseGenerator,
        settings: Settings,
        transcript_store: Optional[TranscriptStore] = None,
    ):
        """
        Initialize the controller with injected dependencies.

        Args:
            response_generator: Generator for questions and feedback
            settings: Application settings
            transcript_store: Shared store; None selects a per-token HTTP store
        """
        self.response_generator = response_generator
        self.settings = settings
        self.transcript_store = transcript_store

        logger.info("InterviewCoachController initialized with providers")

    def store_for(self, token: Optional[str]) -> TranscriptStore:
        """Return the transcript store to use for the caller's token."""
        if self.transcript_store is not None:
            return self.transcript_store

        return HttpTranscriptStore(
            base_url=self.settings.transcript_store_url,
            token=token or "",
            auth_header=self.settings.auth_header_name,
            timeout_seconds=self.settings.transcript_store_timeout_seconds,
        )

    def create_coordinator(self, token: Optional[str]) -> TurnCoordinator:
        """Build the per-connection object graph around one outbound queue."""
        outbound_queue: asyncio.Queue[OutboundMessage] = asyncio.Queue()

        def publish_motion(sample: MotionSample) -> None:
            outbound_queue.put_nowait(MotionMessage(sample.percentage))

        speech = ClientSpeechBridge(
            outbound_queue,
            capture_timeout_seconds=self.settings.capture_timeout_seconds,
            playback_timeout_seconds=self.settings.playback_timeout_seconds,
        )
        motion_detector = MotionDetector(
            interval_seconds=self.settings.motion_interval_seconds,
            channel_threshold=self.settings.motion_channel_threshold,
            on_sample=publish_motion,
        )

        return TurnCoordinator(
            generator=self.response_generator,
            persistence=PersistenceSync(self.store_for(token)),
            capture=speech,
            playback=speech,
            motion_detector=motion_detector,
            video_source=ClientFrameSource(),
            outbound_queue=outbound_queue,
            user_id=owner_key(token),
        )

    async def handle_websocket_connection(self, websocket: WebSocket, token: Optional[str]) -> None:
        logger.info(f"Handling new WebSocket connection from {websocket.client}")

        coordinator = self.create_coordinator(token)
        handler = WebSocketHandler(
            coordinator=coordinator,
            speech=coordinator.capture,
            frame_source=coordinator.video_source,
        )

        try:
            await handler.handle_websocket(websocket)
        finally:
            store = coordinator.persistence.store
            if store is not self.transcript_store and isinstance(store, HttpTranscriptStore):
                await store.close()
            logger.info("Interview connection finished")

    def get_health_status(self) -> dict:
        """
        Get application health status.

        Returns:
            Dict containing health status information
        """
        return {
            "status": "healthy",
            "providers": {
                "response_generator": type(self.response_generator).__name__,
                "transcript_store": (
                    type(self.transcript_store).__name__
                    if self.transcript_store is not None
                    else HttpTranscriptStore.__name__
                ),
            },
        }

    def get_roles(self) -> dict[str, list[str]]:
        return {role: list(stacks) for role, stacks in ROLES_AND_STACKS.items()}

    async def get_history(self, token: Optional[str]) -> list[InterviewSession]:
        """
        Past interviews for the caller, newest first.

        Raises:
            AuthenticationError: If the store rejects the token.
            UpstreamError: If the store cannot be reached.
        """
        store = self.store_for(token)
        try:
            return await store.list_history(user_id=owner_key(token))
        finally:
            if store is not self.transcript_store and isinstance(store, HttpTranscriptStore):
                await store.close()
