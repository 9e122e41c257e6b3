"""Local in-memory implementation of TranscriptStore."""

import uuid
from typing import Dict, Optional

from ..domain.entities.interview_session import InterviewSession, Message
from ..domain.interfaces.transcript_store import TranscriptStore


class LocalTranscriptStore(TranscriptStore):
    """Local in-memory implementation of the TranscriptStore.

    Stores copies of sessions in a dictionary for testing and development
    purposes, so later changes to the caller's session do not leak in.
    """

    def __init__(self):
        """Initialize the local transcript store with an empty dictionary."""
        self._sessions: Dict[str, InterviewSession] = {}

    async def create(self, session: InterviewSession) -> InterviewSession:
        """Store a copy of the session under a new identifier.

        Args:
            session: The session entity to save.

        Returns:
            InterviewSession: The stored copy with its ``id`` set.
        """
        stored = session.model_copy(deep=True, update={"id": uuid.uuid4().hex})
        self._sessions[stored.id] = stored
        return stored.model_copy(deep=True)

    async def update(
        self,
        session_id: str,
        messages: Optional[list[Message]] = None,
        feedback: Optional[str] = None,
    ) -> InterviewSession:
        """Replace messages and/or feedback of a stored session.

        Raises:
            ValueError: If the session is not found.
        """
        if session_id not in self._sessions:
            raise ValueError(f"Session with id {session_id} not found")

        changes = {}
        if messages is not None:
            changes["messages"] = list(messages)
        if feedback is not None:
            changes["feedback"] = feedback

        updated = self._sessions[session_id].model_copy(update=changes, deep=True)
        self._sessions[session_id] = updated
        return updated.model_copy(deep=True)

    async def get(self, session_id: str) -> InterviewSession:
        """Retrieve a session by ID.

        Raises:
            ValueError: If the session is not found.
        """
        if session_id not in self._sessions:
            raise ValueError(f"Session with id {session_id} not found")

        return self._sessions[session_id].model_copy(deep=True)

    async def list_history(self, user_id: Optional[str] = None) -> list[InterviewSession]:
        """List sessions, newest first, optionally only those of one owner."""
        return sorted(
            (
                s.model_copy(deep=True)
                for s in self._sessions.values()
                if user_id is None or s.user_id == user_id
            ),
            key=lambda s: s.started_at,
            reverse=True,
        )

    def clear(self) -> None:
        """Clear all sessions from the dictionary."""
        self._sessions.clear()
