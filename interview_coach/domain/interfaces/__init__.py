"""Domain interfaces for the interview coach application."""

from .response_generator import ResponseGenerator
from .speech_io import SpeechCapture, SpeechPlayback
from .transcript_store import TranscriptStore
from .video_source import VideoSource

__all__ = [
    "ResponseGenerator",
    "SpeechCapture",
    "SpeechPlayback",
    "TranscriptStore",
    "VideoSource",
]
