"""Domain entities for the interview coach application."""

from .errors import (
    AuthenticationError,
    CaptureError,
    DeviceError,
    InterviewError,
    InvalidTransitionError,
    UpstreamError,
    ValidationError,
)
from .events import CaptureOutcome, PlaybackOutcome
from .interview_session import InterviewSession, Message, Phase, Sender
from .messages import (
    CancelSpeechMessage,
    ErrorOutMessage,
    FeedbackMessage,
    MotionMessage,
    NoticeMessage,
    OutboundMessage,
    PhaseMessage,
    SessionStartedMessage,
    SpeakMessage,
    StartCaptureMessage,
    StopCaptureMessage,
    TranscriptMessage,
)
from .video import MotionSample, VideoFrame
from .websocket_messages import ClientMessage, ErrorCode, ServerMessage

__all__ = [
    # Session entities
    "InterviewSession",
    "Message",
    "Phase",
    "Sender",
    # Video entities
    "VideoFrame",
    "MotionSample",
    # Speech events
    "CaptureOutcome",
    "PlaybackOutcome",
    # Errors
    "InterviewError",
    "ValidationError",
    "CaptureError",
    "UpstreamError",
    "AuthenticationError",
    "DeviceError",
    "InvalidTransitionError",
    # Message entities
    "OutboundMessage",
    "SessionStartedMessage",
    "TranscriptMessage",
    "PhaseMessage",
    "FeedbackMessage",
    "MotionMessage",
    "SpeakMessage",
    "CancelSpeechMessage",
    "StartCaptureMessage",
    "StopCaptureMessage",
    "NoticeMessage",
    "ErrorOutMessage",
    # WebSocket message entities
    "ClientMessage",
    "ServerMessage",
    "ErrorCode",
]
