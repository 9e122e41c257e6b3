"""Outbound message entities."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .interview_session import Message, Phase
from .websocket_messages import (
    CaptureStart,
    CaptureStop,
    ErrorCode,
    ErrorMessage,
    FeedbackReady,
    MotionUpdate,
    PhaseChanged,
    ServerNotice,
    SessionStarted,
    SpeechCancel,
    SpeechSay,
    TranscriptAppended,
)


class OutboundMessage:
    """Base class for outbound messages."""

    pass


@dataclass
class SessionStartedMessage(OutboundMessage):
    """Message indicating the session was created in the store."""

    session_id: str
    role: str
    tech_stack: str
    started_at: datetime
    started: SessionStarted = field(init=False)

    def __post_init__(self):
        self.started = SessionStarted(
            session_id=self.session_id,
            role=self.role,
            tech_stack=self.tech_stack,
            started_at=self.started_at,
        )


@dataclass
class TranscriptMessage(OutboundMessage):
    """Message carrying a newly appended transcript entry."""

    index: int
    message: Message
    appended: TranscriptAppended = field(init=False)

    def __post_init__(self):
        self.appended = TranscriptAppended(index=self.index, message=self.message)


@dataclass
class PhaseMessage(OutboundMessage):
    """Message announcing a phase change."""

    phase: Phase
    phase_changed: PhaseChanged = field(init=False)

    def __post_init__(self):
        # The turn indicator is shown only when the candidate's turn begins.
        self.phase_changed = PhaseChanged(
            phase=self.phase,
            your_turn=self.phase == Phase.USER_TURN,
        )


@dataclass
class FeedbackMessage(OutboundMessage):
    """Message containing the final feedback."""

    feedback: str
    ready: FeedbackReady = field(init=False)

    def __post_init__(self):
        self.ready = FeedbackReady(feedback=self.feedback)


@dataclass
class MotionMessage(OutboundMessage):
    percentage: float
    update: MotionUpdate = field(init=False)

    def __post_init__(self):
        self.update = MotionUpdate(percentage=self.percentage)


@dataclass
class SpeakMessage(OutboundMessage):
    """Instruction to the client to speak an utterance."""

    utterance_id: str
    text: str
    say: SpeechSay = field(init=False)

    def __post_init__(self):
        self.say = SpeechSay(utterance_id=self.utterance_id, text=self.text)


@dataclass
class CancelSpeechMessage(OutboundMessage):
    utterance_id: Optional[str] = None
    cancel: SpeechCancel = field(init=False)

    def __post_init__(self):
        self.cancel = SpeechCancel(utterance_id=self.utterance_id)


@dataclass
class StartCaptureMessage(OutboundMessage):
    capture_id: str
    start: CaptureStart = field(init=False)

    def __post_init__(self):
        self.start = CaptureStart(capture_id=self.capture_id)


@dataclass
class StopCaptureMessage(OutboundMessage):
    capture_id: str
    stop: CaptureStop = field(init=False)

    def __post_init__(self):
        self.stop = CaptureStop(capture_id=self.capture_id)


@dataclass
class NoticeMessage(OutboundMessage):
    """Message containing a notice."""

    message: str
    notice: ServerNotice = field(init=False)

    def __post_init__(self):
        self.notice = ServerNotice(message=self.message)


@dataclass
class ErrorOutMessage(OutboundMessage):
    """Message containing an error."""

    code: ErrorCode
    message: str
    error: ErrorMessage = field(init=False)

    def __post_init__(self):
        self.error = ErrorMessage(code=self.code, message=self.message)
