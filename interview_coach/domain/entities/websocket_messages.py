"""WebSocket message models for the interview coach application."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from .interview_session import Message, Phase


# ===== Client → Server Messages =====


class SessionStart(BaseModel):
    """Start an interview for a role and tech stack."""

    type: Literal["session.start"] = "session.start"
    role: str = ""
    tech_stack: str = ""
    candidate_name: Optional[str] = None


class AnswerSubmit(BaseModel):
    """Typed answer from the candidate."""

    type: Literal["answer.submit"] = "answer.submit"
    text: str = ""


class ListenStart(BaseModel):
    type: Literal["listen.start"] = "listen.start"


class ListenStop(BaseModel):
    type: Literal["listen.stop"] = "listen.stop"


class QuestionRetry(BaseModel):
    type: Literal["question.retry"] = "question.retry"


class SessionEnd(BaseModel):
    type: Literal["session.end"] = "session.end"


class SessionRestart(BaseModel):
    type: Literal["session.restart"] = "session.restart"


class VideoToggle(BaseModel):
    """Candidate switched the camera on or off."""

    type: Literal["video.toggle"] = "video.toggle"
    enabled: bool


class VideoUnavailable(BaseModel):
    """The browser could not open the camera."""

    type: Literal["video.unavailable"] = "video.unavailable"
    reason: str = ""


class CaptureResult(BaseModel):
    """Recognized text for an outstanding capture."""

    type: Literal["speech.capture.result"] = "speech.capture.result"
    capture_id: str
    text: str = ""


class CaptureFailed(BaseModel):
    """Speech capture failed on the client (no speech, denied, timeout...)."""

    type: Literal["speech.capture.error"] = "speech.capture.error"
    capture_id: str
    reason: str = ""


class PlaybackEnded(BaseModel):
    """An utterance finished playing on the client."""

    type: Literal["speech.playback.ended"] = "speech.playback.ended"
    utterance_id: str


# Union type for all client messages
ClientMessage = Annotated[
    Union[
        SessionStart,
        AnswerSubmit,
        ListenStart,
        ListenStop,
        QuestionRetry,
        SessionEnd,
        SessionRestart,
        VideoToggle,
        VideoUnavailable,
        CaptureResult,
        CaptureFailed,
        PlaybackEnded,
    ],
    Field(discriminator="type"),
]


# ===== Server → Client Messages =====


class SessionStarted(BaseModel):
    """Session created in the transcript store."""

    type: Literal["session.started"] = "session.started"
    session_id: str
    role: str
    tech_stack: str
    started_at: datetime


class TranscriptAppended(BaseModel):
    """A message was appended to the transcript."""

    type: Literal["transcript.appended"] = "transcript.appended"
    index: int = Field(ge=0)
    message: Message


class PhaseChanged(BaseModel):
    """The session moved to a new phase."""

    type: Literal["phase.changed"] = "phase.changed"
    phase: Phase
    your_turn: bool = False


class FeedbackReady(BaseModel):
    """Markdown performance review."""

    type: Literal["feedback.ready"] = "feedback.ready"
    feedback: str


class MotionUpdate(BaseModel):
    type: Literal["motion.update"] = "motion.update"
    percentage: float = Field(ge=0, le=100)


class SpeechSay(BaseModel):
    """Ask the client to speak an utterance."""

    type: Literal["speech.say"] = "speech.say"
    utterance_id: str
    text: str


class SpeechCancel(BaseModel):
    type: Literal["speech.cancel"] = "speech.cancel"
    utterance_id: Optional[str] = None


class CaptureStart(BaseModel):
    """Ask the client to capture one utterance."""

    type: Literal["speech.capture.start"] = "speech.capture.start"
    capture_id: str


class CaptureStop(BaseModel):
    type: Literal["speech.capture.stop"] = "speech.capture.stop"
    capture_id: str


class ServerNotice(BaseModel):
    """Server notice message."""

    type: Literal["server_notice"] = "server_notice"
    message: str


class ErrorCode(str, Enum):
    """Error codes for WebSocket errors."""

    INVALID_MESSAGE = "INVALID_MESSAGE"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CAPTURE_ERROR = "CAPTURE_ERROR"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    AUTH_FAILED = "AUTH_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorMessage(BaseModel):
    """Error message from server."""

    type: Literal["error"] = "error"
    code: ErrorCode
    message: str


# Union type for all server messages
ServerMessage = Union[
    SessionStarted,
    TranscriptAppended,
    PhaseChanged,
    FeedbackReady,
    MotionUpdate,
    SpeechSay,
    SpeechCancel,
    CaptureStart,
    CaptureStop,
    ServerNotice,
    ErrorMessage,
]
