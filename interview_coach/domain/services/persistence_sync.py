"""Serialized writes of the session transcript to the transcript store."""

import asyncio
import logging
from typing import Optional

from ..entities.errors import UpstreamError
from ..entities.interview_session import InterviewSession, Message
from ..interfaces.transcript_store import TranscriptStore

logger = logging.getLogger(__name__)


class PersistenceSync:
    """
    Pushes session state to a ``TranscriptStore``.

    Writes go out one at a time, in the order they were issued. Every update
    carries the full value of what changed, so the last successful write
    wins. There is no retry and no offline queue: a failure is raised to the
    caller as ``UpstreamError`` and local state is left as it is.
    """

    def __init__(self, store: TranscriptStore):
        self.store = store
        self._lock = asyncio.Lock()
        self.writes_issued = 0

    async def create(self, session: InterviewSession) -> InterviewSession:
        async with self._lock:
            self.writes_issued += 1
            try:
                stored = await self.store.create(session)
            except UpstreamError:
                raise
            except Exception as e:
                logger.error(f"Error creating session: {e}", exc_info=True)
                raise UpstreamError(f"Failed to save interview: {e}") from e

        logger.info(f"Session {stored.id} created in {type(self.store).__name__}")
        return stored

    async def update(
        self,
        session_id: str,
        messages: Optional[list[Message]] = None,
        feedback: Optional[str] = None,
    ) -> InterviewSession:
        """Write ``messages`` and/or ``feedback`` for ``session_id``."""
        if messages is None and feedback is None:
            raise ValueError("update needs messages or feedback")

        # Snapshot so later appends do not leak into a write still in flight.
        if messages is not None:
            messages = list(messages)

        async with self._lock:
            self.writes_issued += 1
            try:
                updated = await self.store.update(session_id, messages=messages, feedback=feedback)
            except UpstreamError:
                raise
            except Exception as e:
                logger.error(f"Error updating session {session_id}: {e}", exc_info=True)
                raise UpstreamError(f"Failed to update interview: {e}") from e

        logger.debug(
            f"Session {session_id} updated "
            f"(messages={None if messages is None else len(messages)}, feedback={feedback is not None})"
        )
        return updated
