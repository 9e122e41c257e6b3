"""FastAPI application entry point."""

import logging
from typing import Optional

from fastapi import FastAPI, Header, HTTPException, Query, WebSocket, status
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, settings
from .controller import InterviewCoachController
from ..domain.entities import AuthenticationError, UpstreamError
from ..domain.interfaces.response_generator import ResponseGenerator
from ..domain.interfaces.transcript_store import TranscriptStore
from ..infrastructure.dynamodb_transcript_store import DynamoDBTranscriptStore
from ..infrastructure.gemini_response_client import GeminiConfig, GeminiResponseClient
from ..infrastructure.local_transcript_store import LocalTranscriptStore
from ..infrastructure.simple_interviewer import SimpleInterviewer

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def build_response_generator(config: Settings) -> ResponseGenerator:
    """Create the response generator selected by ``response_generator_type``."""
    if config.response_generator_type == "gemini":
        if not config.gemini_api_key:
            raise ValueError("GEMINI_API_KEY is required when RESPONSE_GENERATOR_TYPE=gemini")
        return GeminiResponseClient(
            GeminiConfig(
                api_key=config.gemini_api_key,
                model=config.gemini_model,
                base_url=config.gemini_base_url,
                timeout_seconds=config.generation_timeout_seconds,
            )
        )
    if config.response_generator_type == "simple":
        return SimpleInterviewer()
    raise ValueError(f"Unknown response generator type: {config.response_generator_type}")


def build_transcript_store(config: Settings) -> Optional[TranscriptStore]:
    """
    Create the shared transcript store selected by ``transcript_store_type``.

    Returns None for the HTTP backend, whose stores are bound to each
    caller's token.
    """
    if config.transcript_store_type == "local":
        return LocalTranscriptStore()
    if config.transcript_store_type == "dynamodb":
        return DynamoDBTranscriptStore(
            table_name=config.interviews_table_name,
            region_name=config.aws_region,
        )
    if config.transcript_store_type == "http":
        return None
    raise ValueError(f"Unknown transcript store type: {config.transcript_store_type}")


# Create FastAPI app instance
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize controller with injected dependencies
controller = InterviewCoachController(
    response_generator=build_response_generator(settings),
    settings=settings,
    transcript_store=build_transcript_store(settings),
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return controller.get_health_status()


@app.get("/roles")
async def get_roles():
    """Roles the candidate can practise for, with their tech stacks."""
    return {"roles": controller.get_roles()}


@app.get("/interviews/history")
async def get_history(x_auth_token: Optional[str] = Header(None)):
    """Past interviews for the caller, newest first.

    Args:
        x_auth_token: Credential forwarded to the transcript store.

    Returns:
        List of interview records in the store's wire format.
    """
    if settings.require_token and not x_auth_token:
        raise HTTPException(status_code=401, detail="No token, authorization denied")

    try:
        sessions = await controller.get_history(x_auth_token)
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except UpstreamError as e:
        logger.error(f"Error loading interview history: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    return {
        "interviews": [
            session.model_dump(mode="json", by_alias=True, exclude={"phase", "candidate_name", "user_id"})
            for session in sessions
        ]
    }


@app.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: Optional[str] = Query(None)
):
    """
    WebSocket endpoint for practice interview sessions.

    Handles full-duplex communication for:
    - Video frames (binary messages)
    - JSON control, speech and session messages (text messages)

    Args:
        websocket: WebSocket connection
        token: Credential forwarded to the transcript store (query parameter)

    Connection lifecycle:
    1. Client connects with a token
    2. Client sends session.start with role and tech stack
    3. Server responds with session.started and the greeting
    4. Questions, answers, speech commands and motion updates flow both ways
    5. session.end produces feedback; session.restart goes back to setup
    6. On disconnect, server stops all session work

    Video frame format:
    - uint32 LE width, uint32 LE height
    - width * height RGBA bytes
    """
    if not _validate_token(token):
        logger.warning("Missing token for WebSocket connection")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    await controller.handle_websocket_connection(websocket, token)


def _validate_token(token: Optional[str]) -> bool:
    """
    Check that a token is present when one is required.

    The token is opaque here; the transcript store is the one that accepts
    or rejects it.
    """
    if not settings.require_token:
        return True
    return bool(token)
