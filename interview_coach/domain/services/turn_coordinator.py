"""Turn coordinator: the interview session's business logic."""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from ..entities.errors import AuthenticationError, CaptureError, UpstreamError, ValidationError
from ..entities.interview_session import InterviewSession, Message, Phase, Sender
from ..entities.messages import (
    ErrorOutMessage,
    FeedbackMessage,
    OutboundMessage,
    PhaseMessage,
    SessionStartedMessage,
    TranscriptMessage,
)
from ..entities.websocket_messages import ErrorCode
from ..interfaces.response_generator import ResponseGenerator
from ..interfaces.speech_io import SpeechCapture, SpeechPlayback
from ..interfaces.video_source import VideoSource
from . import prompts
from .motion_detector import MotionDetector
from .persistence_sync import PersistenceSync
from .session_state import SessionStateMachine

logger = logging.getLogger(__name__)


class CancellationToken:
    """Marks every piece of background work started for one session."""

    def __init__(self):
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class TurnCoordinator:
    """
    Per-connection orchestrator of one practice interview at a time.

    This coordinator owns:
    - The current ``InterviewSession`` and its ``SessionStateMachine``
    - Prompt construction and calls to the response generator
    - Speech capture and playback, and deciding whose turn it is
    - A persistence write after every transcript or feedback change
    - Starting and stopping the motion detector with the session
    - Emitting UI messages through ``outbound_queue``

    Network and speech work runs in background tasks so public methods return
    quickly. Each task carries the session's ``CancellationToken``;
    ``restart()`` cancels the token and the tasks, so a result that arrives
    late is dropped instead of touching the next session.
    """

    def __init__(
        self,
        generator: ResponseGenerator,
        persistence: PersistenceSync,
        capture: SpeechCapture,
        playback: SpeechPlayback,
        motion_detector: Optional[MotionDetector] = None,
        video_source: Optional[VideoSource] = None,
        outbound_queue: Optional[asyncio.Queue] = None,
        user_id: Optional[str] = None,
    ):
        self.generator = generator
        self.persistence = persistence
        self.capture = capture
        self.playback = playback
        self.motion_detector = motion_detector
        self.video_source = video_source
        self.user_id = user_id
        self.outbound_queue: asyncio.Queue[OutboundMessage] = outbound_queue or asyncio.Queue()

        self.state = SessionStateMachine(on_transition=self._on_transition)
        self.session: Optional[InterviewSession] = None
        self.video_enabled = True

        self._token = CancellationToken()
        self._tasks: set[asyncio.Task] = set()
        self._turn_task: Optional[asyncio.Task] = None
        self._listen_task: Optional[asyncio.Task] = None
        self._generation_in_flight = False
        self._feedback_in_flight = False
        self._starting = False

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def generation_in_flight(self) -> bool:
        return self._generation_in_flight or self._feedback_in_flight

    # ===== Public API =====

    async def start_session(
        self,
        role: str,
        tech_stack: str,
        candidate_name: Optional[str] = None,
    ) -> InterviewSession:
        """
        Create a session, greet the candidate and ask for the first question.

        The first question is requested in the background; if it fails the
        session still exists and stays in ``AWAITING_AI_QUESTION``.

        Raises:
            ValidationError: If role or tech stack is missing, or a session
                is already running.
            UpstreamError: If the transcript store rejects the new session.
        """
        if self.state.phase != Phase.SETUP or self._starting:
            raise ValidationError("An interview is already in progress.")

        role = (role or "").strip()
        tech_stack = (tech_stack or "").strip()
        if not role or not tech_stack:
            raise ValidationError("Please select a role and tech stack.")

        welcome = Message(
            sender=Sender.AI,
            text=prompts.greeting(role, tech_stack, candidate_name),
        )
        session = InterviewSession(
            role=role,
            tech_stack=tech_stack,
            messages=[welcome],
            candidate_name=candidate_name,
            user_id=self.user_id,
        )

        token = self._token
        self._starting = True
        try:
            stored = await self.persistence.create(session)
        finally:
            self._starting = False
        if token.cancelled:
            logger.info(f"Session {stored.id} created after restart, discarding")
            return stored

        session.id = stored.id
        self.session = session
        self.state.transition(Phase.AWAITING_AI_QUESTION)

        await self._emit(SessionStartedMessage(session.id, role, tech_stack, session.started_at))
        await self._emit(TranscriptMessage(0, welcome))
        self._start_motion()

        self._spawn(self._speak(welcome.text, token))
        self._request_question(prompts.first_question_prompt(role, tech_stack), token)

        logger.info(f"Interview {session.id} started for {role} / {tech_stack}")
        return session

    async def submit_answer(self, text: str) -> bool:
        """
        Append the candidate's answer and ask for the next question.

        Returns:
            True if the answer was accepted, False if it was ignored (blank,
            a generation already in flight, or no session taking answers).
        """
        if not text or not text.strip():
            if self.session is not None:
                await self._emit_error(ErrorCode.VALIDATION_ERROR, "Answer cannot be empty.")
            return False

        if not self._accepting_answer():
            logger.info(f"Ignoring answer in phase {self.phase.value}")
            return False

        await self.playback.cancel()
        self._begin_answer(text.strip(), self._token)
        return True

    async def listen(self) -> bool:
        """Start one speech capture for the candidate's answer."""
        if not self._accepting_answer():
            logger.info(f"Ignoring listen request in phase {self.phase.value}")
            return False

        await self.playback.cancel()
        self.state.transition(Phase.LISTENING)
        self._listen_task = self._spawn(self._capture_answer(self._token))
        return True

    async def stop_listening(self) -> bool:
        """Abort the outstanding capture and hand the turn back to the candidate."""
        if self.phase != Phase.LISTENING:
            return False

        self.state.transition(Phase.USER_TURN)
        await self.capture.cancel_capture()
        await self._cancel_tasks([self._listen_task])
        self._listen_task = None
        return True

    async def request_question(self) -> bool:
        """Ask again after a failed question request. Never called automatically."""
        if (
            self.session is None
            or self.phase != Phase.AWAITING_AI_QUESTION
            or self._generation_in_flight
        ):
            return False

        if any(m.sender == Sender.USER for m in self.session.messages):
            prompt = prompts.next_question_prompt(self.session.messages)
        else:
            prompt = prompts.first_question_prompt(self.session.role, self.session.tech_stack)

        self._request_question(prompt, self._token)
        return True

    async def end_session(self) -> bool:
        """
        Close the interview and generate feedback.

        Calling it again while the feedback request has failed retries the
        request; no second closing message is added.
        """
        if self.session is None or not self.state.is_active:
            return False

        token = self._token

        if self.phase == Phase.ENDING:
            if self._feedback_in_flight:
                return False
            self._feedback_in_flight = True
            self._spawn(self._generate_feedback(token))
            return True

        await self._cancel_tasks([self._turn_task, self._listen_task])
        self._generation_in_flight = False
        await self.playback.cancel()
        await self.capture.cancel_capture()
        await self._stop_motion()

        self.state.transition(Phase.ENDING)
        index = self._append_local(Sender.AI, prompts.CLOSING_MESSAGE)
        self._feedback_in_flight = True
        self._spawn(self._finish(index, token))
        return True

    async def restart(self) -> None:
        """Discard the session and everything in flight, back to setup."""
        await self._discard("restart")

    async def teardown(self) -> None:
        """Stop all session work (logout or disconnect)."""
        await self._discard("teardown")

    async def set_video_enabled(self, enabled: bool) -> None:
        """Switch motion sampling with the candidate's camera."""
        self.video_enabled = enabled
        if not enabled:
            await self._stop_motion()
        elif self.session is not None and self.state.is_active and self.phase != Phase.ENDING:
            self._start_motion()

    def elapsed_seconds(self) -> int:
        """Seconds since the current session started, 0 without a session."""
        if self.session is None:
            return 0
        return int((datetime.utcnow() - self.session.started_at).total_seconds())

    async def settle(self) -> None:
        """Wait until no background work is left."""
        current = asyncio.current_task()
        while True:
            pending = [t for t in self._tasks if t is not current and not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    # ===== Turn pipeline =====

    def _accepting_answer(self) -> bool:
        if self.session is None:
            return False
        if self.phase == Phase.USER_TURN:
            return True
        # The question is being spoken; the candidate may answer right away.
        return self.phase == Phase.AWAITING_AI_QUESTION and not self._generation_in_flight

    def _begin_answer(self, text: str, token: CancellationToken) -> None:
        self.state.transition(Phase.SUBMITTING_ANSWER)
        index = self._append_local(Sender.USER, text)
        self._generation_in_flight = True
        self._turn_task = self._spawn(self._answer_round(index, token))

    async def _answer_round(self, index: int, token: CancellationToken) -> None:
        await self._emit(TranscriptMessage(index, self.session.messages[index]))
        await self._persist(token, messages=True)
        if token.cancelled:
            return

        self.state.transition(Phase.AWAITING_AI_QUESTION)
        await self._ask(prompts.next_question_prompt(self.session.messages), token)

    def _request_question(self, prompt: str, token: CancellationToken) -> None:
        self._generation_in_flight = True
        self._turn_task = self._spawn(self._ask(prompt, token))

    async def _ask(self, prompt: str, token: CancellationToken) -> None:
        try:
            text = await self.generator.generate(prompt)
        except UpstreamError as e:
            if not token.cancelled:
                logger.warning(f"Question generation failed: {e}")
                await self._emit_error(ErrorCode.UPSTREAM_ERROR, f"Could not get the next question: {e}")
            return
        finally:
            if not token.cancelled:
                self._generation_in_flight = False

        if token.cancelled or self.phase != Phase.AWAITING_AI_QUESTION:
            logger.info("Dropping question that arrived after the turn moved on")
            return

        index = self._append_local(Sender.AI, text)
        await self._emit(TranscriptMessage(index, self.session.messages[index]))
        await self._persist(token, messages=True)
        if token.cancelled:
            return

        await self._speak(text, token)
        if not token.cancelled and self.phase == Phase.AWAITING_AI_QUESTION:
            self.state.transition(Phase.USER_TURN)

    async def _capture_answer(self, token: CancellationToken) -> None:
        try:
            text = await self.capture.capture()
        except CaptureError as e:
            if token.cancelled or self.phase != Phase.LISTENING:
                return
            logger.info(f"Speech capture failed: {e}")
            self.state.transition(Phase.USER_TURN)
            await self._emit_error(ErrorCode.CAPTURE_ERROR, "Speech recognition error. Please try again.")
            return

        if token.cancelled or self.phase != Phase.LISTENING:
            return

        if not text.strip():
            self.state.transition(Phase.USER_TURN)
            await self._emit_error(ErrorCode.CAPTURE_ERROR, "Speech recognition error. Please try again.")
            return

        self._begin_answer(text.strip(), token)

    async def _finish(self, index: int, token: CancellationToken) -> None:
        await self._emit(TranscriptMessage(index, self.session.messages[index]))
        await self._persist(token, messages=True)
        if token.cancelled:
            return
        await self._generate_feedback(token)

    async def _generate_feedback(self, token: CancellationToken) -> None:
        try:
            text = await self.generator.generate(prompts.feedback_prompt(self.session.messages))
        except UpstreamError as e:
            if not token.cancelled:
                logger.warning(f"Feedback generation failed: {e}")
                await self._emit_error(ErrorCode.UPSTREAM_ERROR, f"Could not generate feedback: {e}")
            return
        finally:
            if not token.cancelled:
                self._feedback_in_flight = False

        if token.cancelled:
            return

        self.session.feedback = text
        await self._emit(FeedbackMessage(text))
        await self._persist(token, feedback=True)
        if token.cancelled:
            return

        self.state.transition(Phase.FEEDBACK)
        logger.info(
            f"Interview {self.session.id} finished with {len(self.session.messages)} messages "
            f"after {self.elapsed_seconds()}s"
        )

    async def _speak(self, text: str, token: CancellationToken) -> bool:
        if token.cancelled:
            return False
        return await self.playback.speak(text)

    # ===== Persistence =====

    def _append_local(self, sender: Sender, text: str) -> int:
        self.session.messages.append(Message(sender=sender, text=text))
        return len(self.session.messages) - 1

    async def _persist(self, token: CancellationToken, messages: bool = False, feedback: bool = False) -> None:
        """One store write with the full current messages and/or feedback."""
        session = self.session
        try:
            await self.persistence.update(
                session.id,
                messages=session.messages if messages else None,
                feedback=session.feedback if feedback else None,
            )
        except AuthenticationError as e:
            if token.cancelled:
                return
            logger.error(f"Transcript store rejected credentials: {e}")
            await self._emit_error(ErrorCode.AUTH_FAILED, "Your session has expired. Please sign in again.")
            await self._discard("authentication failure")
        except UpstreamError as e:
            if not token.cancelled:
                # Local state stays ahead of the store until the next successful write.
                await self._emit_error(ErrorCode.UPSTREAM_ERROR, str(e))

    # ===== Lifecycle helpers =====

    async def _discard(self, reason: str) -> None:
        self._token.cancel()
        self._token = CancellationToken()

        await self._cancel_tasks(list(self._tasks))
        self._turn_task = None
        self._listen_task = None
        self._generation_in_flight = False
        self._feedback_in_flight = False

        await self.playback.cancel()
        await self.capture.cancel_capture()
        await self._stop_motion()

        if self.session is not None:
            logger.info(f"Interview {self.session.id} discarded ({reason})")
        self.session = None
        self.state.reset()

    def _start_motion(self) -> None:
        if self.motion_detector and self.video_enabled and not self.motion_detector.running:
            self.motion_detector.start(self.video_source)

    async def _stop_motion(self) -> None:
        if self.motion_detector:
            await self.motion_detector.stop()

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc:
            logger.error(f"Background task failed: {exc}", exc_info=exc)
            self.outbound_queue.put_nowait(
                ErrorOutMessage(ErrorCode.INTERNAL_ERROR, f"Internal processing error: {exc}")
            )

    async def _cancel_tasks(self, tasks: list[Optional[asyncio.Task]]) -> None:
        current = asyncio.current_task()
        pending = [t for t in tasks if t is not None and t is not current and not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    # ===== Outbound message helpers =====

    def _on_transition(self, previous: Phase, current: Phase) -> None:
        if self.session is not None:
            self.session.phase = current
        self.outbound_queue.put_nowait(PhaseMessage(current))

    async def _emit(self, message: OutboundMessage) -> None:
        await self.outbound_queue.put(message)

    async def _emit_error(self, code: ErrorCode, text: str) -> None:
        await self._emit(ErrorOutMessage(code, text))
