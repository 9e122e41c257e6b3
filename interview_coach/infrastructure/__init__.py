"""Infrastructure layer components."""

from .client_frame_source import ClientFrameSource
from .client_speech_bridge import ClientSpeechBridge
from .dynamodb_transcript_store import DynamoDBTranscriptStore
from .gemini_response_client import GeminiConfig, GeminiResponseClient
from .http_transcript_store import HttpTranscriptStore
from .local_transcript_store import LocalTranscriptStore
from .simple_interviewer import SimpleInterviewer

__all__ = [
    "ClientFrameSource",
    "ClientSpeechBridge",
    "DynamoDBTranscriptStore",
    "GeminiConfig",
    "GeminiResponseClient",
    "HttpTranscriptStore",
    "LocalTranscriptStore",
    "SimpleInterviewer",
]
