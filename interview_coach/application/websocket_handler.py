import asyncio
import logging

from pydantic import TypeAdapter
from pydantic import ValidationError as MessageValidationError
from starlette import status
from starlette.websockets import WebSocket, WebSocketDisconnect

from ..domain.entities import (
    AuthenticationError,
    CaptureOutcome,
    DeviceError,
    OutboundMessage,
    PlaybackOutcome,
    UpstreamError,
    ValidationError,
)
from ..domain.entities.messages import (
    CancelSpeechMessage,
    ErrorOutMessage,
    FeedbackMessage,
    MotionMessage,
    NoticeMessage,
    PhaseMessage,
    SessionStartedMessage,
    SpeakMessage,
    StartCaptureMessage,
    StopCaptureMessage,
    TranscriptMessage,
)
from ..domain.entities.websocket_messages import (
    AnswerSubmit,
    CaptureFailed,
    CaptureResult,
    ClientMessage,
    ErrorCode,
    ListenStart,
    ListenStop,
    PlaybackEnded,
    QuestionRetry,
    SessionEnd,
    SessionRestart,
    SessionStart,
    VideoToggle,
    VideoUnavailable,
)
from ..domain.services import TurnCoordinator
from ..infrastructure.client_frame_source import ClientFrameSource
from ..infrastructure.client_speech_bridge import ClientSpeechBridge

logger = logging.getLogger(__name__)

client_message_adapter = TypeAdapter(ClientMessage)


class WebSocketHandler:

    def __init__(
        self,
        coordinator: TurnCoordinator,
        speech: ClientSpeechBridge,
        frame_source: ClientFrameSource,
    ):
        self._coordinator = coordinator
        self._speech = speech
        self._frame_source = frame_source
        self._closed = False

    async def handle_websocket(self, websocket: WebSocket) -> None:
        # Note: websocket.accept() is called by the API endpoint before this
        send_task = asyncio.create_task(self._send_loop(websocket))
        receive_task = asyncio.create_task(self._receive_loop(websocket))
        done, pending = await asyncio.wait(
            {send_task, receive_task},
            return_when=asyncio.FIRST_COMPLETED,
        )
        try:
            for task in done:
                exc = task.exception()
                if exc:
                    raise exc
        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected: {websocket.client}")
        except Exception as e:
            logger.error(f"WebSocket error: {e}", exc_info=True)
        finally:
            await self._coordinator.teardown()
            for t in (send_task, receive_task):
                if not t.done():
                    t.cancel()
            await asyncio.gather(send_task, receive_task, return_exceptions=True)

            if not self._closed:
                try:
                    await websocket.close()
                except RuntimeError as e:
                    logger.debug(f"WebSocket already closed: {e}")
            logger.info(f"WebSocket connection closed: {websocket.client}")

    async def _send_loop(self, websocket: WebSocket) -> None:
        queue = self._coordinator.outbound_queue
        while True:
            item: OutboundMessage = await queue.get()
            logger.debug(f"_send_loop got message: {type(item).__name__}")

            match item:
                case SessionStartedMessage():
                    await websocket.send_text(item.started.model_dump_json())

                case TranscriptMessage():
                    await websocket.send_text(item.appended.model_dump_json())

                case PhaseMessage():
                    await websocket.send_text(item.phase_changed.model_dump_json())

                case FeedbackMessage():
                    await websocket.send_text(item.ready.model_dump_json())

                case MotionMessage():
                    await websocket.send_text(item.update.model_dump_json())

                case SpeakMessage():
                    await websocket.send_text(item.say.model_dump_json())

                case CancelSpeechMessage():
                    await websocket.send_text(item.cancel.model_dump_json())

                case StartCaptureMessage():
                    await websocket.send_text(item.start.model_dump_json())

                case StopCaptureMessage():
                    await websocket.send_text(item.stop.model_dump_json())

                case NoticeMessage():
                    await websocket.send_text(item.notice.model_dump_json())

                case ErrorOutMessage():
                    await websocket.send_text(item.error.model_dump_json())
                    if item.code == ErrorCode.AUTH_FAILED:
                        # The client goes back to sign-in; nothing else is sent.
                        logger.warning("Closing connection after authentication failure")
                        self._closed = True
                        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
                        return

                case _:
                    raise ValueError(f"Unknown OutboundMessage type: {type(item)}")

    async def _receive_loop(self, websocket: WebSocket) -> None:
        """Receive messages from client and forward to the coordinator."""
        while True:
            data = await websocket.receive()

            if data.get("type") == "websocket.disconnect":
                logger.info(f"Client disconnected: code={data.get('code')}")
                break

            if data.get("bytes") is not None:
                await self._handle_frame(data["bytes"])
            elif data.get("text") is not None:
                await self._handle_text(data["text"])

    async def _handle_frame(self, payload: bytes) -> None:
        """Keep the latest video frame and make sure motion sampling runs."""
        if not self._coordinator.video_enabled:
            return

        try:
            self._frame_source.push(payload)
        except ValueError as e:
            logger.warning(f"Dropping malformed video frame: {e}")
            return

        detector = self._coordinator.motion_detector
        if detector is not None and not detector.running:
            await self._coordinator.set_video_enabled(True)

    async def _handle_text(self, text: str) -> None:
        try:
            message = client_message_adapter.validate_json(text)
        except MessageValidationError as e:
            logger.warning(f"Invalid client message: {e.error_count()} errors")
            await self._send_error(ErrorCode.INVALID_MESSAGE, "Unrecognized or malformed message")
            return

        try:
            await self._dispatch(message)
        except Exception as e:
            logger.error(f"Error handling {message.type}: {e}", exc_info=True)
            await self._send_error(ErrorCode.INTERNAL_ERROR, f"Internal processing error: {e}")

    async def _dispatch(self, message) -> None:
        coordinator = self._coordinator

        match message:
            case SessionStart():
                try:
                    await coordinator.start_session(
                        message.role,
                        message.tech_stack,
                        message.candidate_name,
                    )
                except ValidationError as e:
                    await self._send_error(ErrorCode.VALIDATION_ERROR, str(e))
                except AuthenticationError as e:
                    logger.error(f"Transcript store rejected credentials: {e}")
                    await self._send_error(
                        ErrorCode.AUTH_FAILED, "Your session has expired. Please sign in again."
                    )
                except UpstreamError as e:
                    await self._send_error(ErrorCode.UPSTREAM_ERROR, str(e))

            case AnswerSubmit():
                await coordinator.submit_answer(message.text)

            case ListenStart():
                await coordinator.listen()

            case ListenStop():
                await coordinator.stop_listening()

            case QuestionRetry():
                await coordinator.request_question()

            case SessionEnd():
                await coordinator.end_session()

            case SessionRestart():
                await coordinator.restart()

            case VideoToggle():
                if not message.enabled:
                    self._frame_source.mark_unavailable()
                await coordinator.set_video_enabled(message.enabled)

            case VideoUnavailable():
                self._frame_source.mark_unavailable(DeviceError(message.reason or "Camera unavailable"))
                await coordinator.outbound_queue.put(
                    NoticeMessage("Camera unavailable. Motion tracking is paused.")
                )

            case CaptureResult():
                self._speech.resolve_capture(CaptureOutcome(message.capture_id, text=message.text))

            case CaptureFailed():
                self._speech.resolve_capture(
                    CaptureOutcome(message.capture_id, error=message.reason or "No speech recognized")
                )

            case PlaybackEnded():
                self._speech.resolve_playback(PlaybackOutcome(message.utterance_id))

    async def _send_error(self, code: ErrorCode, text: str) -> None:
        await self._coordinator.outbound_queue.put(ErrorOutMessage(code, text))
