"""Transcript store interface."""

from typing import Optional, Protocol, runtime_checkable

from ..entities.interview_session import InterviewSession, Message


@runtime_checkable
class TranscriptStore(Protocol):
    """Protocol defining the interface for interview transcript stores.

    This interface can be implemented by different storage backends
    (in-memory, the remote interview API, DynamoDB) to persist sessions.
    """

    async def create(self, session: InterviewSession) -> InterviewSession:
        """Create a session record.

        Args:
            session: The session to store; its ``id`` is ignored.

        Returns:
            InterviewSession: The stored session with its assigned ``id``.
        """
        ...

    async def update(
        self,
        session_id: str,
        messages: Optional[list[Message]] = None,
        feedback: Optional[str] = None,
    ) -> InterviewSession:
        """Replace the messages and/or feedback of a stored session.

        Args:
            session_id: Identifier returned by ``create``.
            messages: Full transcript, if it changed.
            feedback: Feedback text, if it changed.

        Returns:
            InterviewSession: The updated session.

        Raises:
            ValueError: If the session is not found.
        """
        ...

    async def get(self, session_id: str) -> InterviewSession:
        """Retrieve a session by ID.

        Raises:
            ValueError: If the session is not found.
        """
        ...

    async def list_history(self, user_id: Optional[str] = None) -> list[InterviewSession]:
        """List stored sessions, newest first.

        Args:
            user_id: Only return sessions created under this owner key;
                None lists every session.
        """
        ...
