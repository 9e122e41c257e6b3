"""Session entities for the interview coach application."""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Sender(str, Enum):
    """Author of a transcript message."""
    AI = "ai"
    USER = "user"


class Phase(str, Enum):
    """Session phase enum.

    The ``active.*`` values are the subphases of an active session.
    """
    SETUP = "setup"
    AWAITING_AI_QUESTION = "active.awaiting_ai_question"
    USER_TURN = "active.user_turn"
    LISTENING = "active.listening"
    SUBMITTING_ANSWER = "active.submitting_answer"
    ENDING = "active.ending"
    FEEDBACK = "feedback"

    @property
    def is_active(self) -> bool:
        return self.value.startswith("active.")


class Message(BaseModel):
    """A single transcript entry. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    sender: Sender
    text: str = Field(min_length=1)
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class InterviewSession(BaseModel):
    """Session entity representing one practice interview.

    Field aliases match the transcript store's wire format (``_id``,
    ``techStack``); either name is accepted on input.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "_id": "66f1c0d2a4b5c6d7e8f90123",
                "role": "Backend Developer",
                "techStack": "Go",
                "messages": [
                    {
                        "sender": "ai",
                        "text": "Hello Candidate! I'll be your interviewer today.",
                        "timestamp": "2026-01-13T10:00:00",
                    }
                ],
                "feedback": "",
            }
        },
    )

    id: Optional[str] = Field(default=None, alias="_id")
    role: str = Field(min_length=1)
    tech_stack: str = Field(min_length=1, alias="techStack")
    messages: list[Message] = Field(default_factory=list)
    feedback: str = ""
    phase: Phase = Phase.SETUP
    candidate_name: Optional[str] = None
    started_at: datetime = Field(default_factory=datetime.utcnow)
    # Owner key of the candidate who created the session
    user_id: Optional[str] = Field(default=None, alias="userId")

    def to_store_payload(self) -> dict:
        """Body sent to the transcript store on create."""
        return {
            "role": self.role,
            "techStack": self.tech_stack,
            "messages": [m.model_dump(mode="json") for m in self.messages],
        }
