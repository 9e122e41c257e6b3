"""
End-to-end interview over the WebSocket using the in-process app.

The app runs with its default configuration: the scripted interviewer and
the in-memory transcript store. The test plays the browser's part, reporting
the end of every utterance it is asked to speak.
"""

import struct
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from interview_coach.application.api import app
from interview_coach.domain.services import prompts

TOKEN = "test-token"


@pytest.fixture
def client():
    return TestClient(app)


def receive_until(ws, predicate, limit: int = 50) -> list[dict]:
    """Read messages until ``predicate`` matches, acting as the client speaker."""
    received = []
    for _ in range(limit):
        message = ws.receive_json()
        received.append(message)
        if message["type"] == "speech.say":
            ws.send_json({"type": "speech.playback.ended", "utterance_id": message["utterance_id"]})
        if predicate(message):
            return received
    raise AssertionError(f"Expected message not received, got {[m['type'] for m in received]}")


def your_turn(message: dict) -> bool:
    return message["type"] == "phase.changed" and message["your_turn"]


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["providers"]["response_generator"] == "SimpleInterviewer"


def test_roles(client):
    response = client.get("/roles")

    assert response.status_code == 200
    assert response.json()["roles"]["Backend Developer"] == prompts.ROLES_AND_STACKS["Backend Developer"]


def test_history_requires_token(client):
    assert client.get("/interviews/history").status_code == 401


def test_websocket_requires_token(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()


def test_complete_interview(client):
    with client.websocket_connect(f"/ws?token={TOKEN}") as ws:
        ws.send_json({
            "type": "session.start",
            "role": "Backend Developer",
            "tech_stack": "Go",
            "candidate_name": "Ada",
        })

        opening = receive_until(ws, your_turn)
        started = next(m for m in opening if m["type"] == "session.started")
        assert datetime.fromisoformat(started["started_at"]) <= datetime.utcnow()
        transcript = [m["message"]["text"] for m in opening if m["type"] == "transcript.appended"]
        assert transcript[0] == prompts.greeting("Backend Developer", "Go", "Ada")
        assert len(transcript) == 2
        assert any(m["type"] == "motion.update" and m["percentage"] == 0 for m in opening)

        ws.send_json({"type": "answer.submit", "text": "Goroutines communicate over channels."})
        round_one = receive_until(ws, your_turn)
        appended = [m for m in round_one if m["type"] == "transcript.appended"]
        assert [m["index"] for m in appended] == [2, 3]
        assert appended[0]["message"]["sender"] == "user"

        ws.send_json({"type": "session.end"})
        closing = receive_until(ws, lambda m: m["type"] == "phase.changed" and m["phase"] == "feedback")
        feedback = next(m for m in closing if m["type"] == "feedback.ready")
        assert feedback["feedback"].startswith("## Strengths")
        assert any(
            m["type"] == "transcript.appended" and m["message"]["text"] == prompts.CLOSING_MESSAGE
            for m in closing
        )

    response = client.get("/interviews/history", headers={"x-auth-token": TOKEN})
    assert response.status_code == 200
    record = next(r for r in response.json()["interviews"] if r["_id"] == started["session_id"])
    assert record["techStack"] == "Go"
    assert len(record["messages"]) == 5
    assert record["feedback"] == feedback["feedback"]
    assert "userId" not in record

    other = client.get("/interviews/history", headers={"x-auth-token": "another-token"})
    assert other.status_code == 200
    assert all(r["_id"] != started["session_id"] for r in other.json()["interviews"])


def test_spoken_answer(client):
    with client.websocket_connect(f"/ws?token={TOKEN}") as ws:
        ws.send_json({"type": "session.start", "role": "QA Engineer", "tech_stack": "Playwright"})
        receive_until(ws, your_turn)

        ws.send_json({"type": "listen.start"})
        received = receive_until(ws, lambda m: m["type"] == "speech.capture.start")
        capture_id = received[-1]["capture_id"]
        ws.send_json({"type": "speech.capture.result", "capture_id": capture_id, "text": "Page objects."})

        round_one = receive_until(ws, your_turn)
        answers = [
            m["message"]["text"]
            for m in round_one
            if m["type"] == "transcript.appended" and m["message"]["sender"] == "user"
        ]
        assert answers == ["Page objects."]


def test_invalid_messages_are_reported(client):
    with client.websocket_connect(f"/ws?token={TOKEN}") as ws:
        # Malformed video frames are dropped silently.
        ws.send_bytes(struct.pack("<II", 4, 4) + b"\x00")

        ws.send_text("{not json")
        assert ws.receive_json()["code"] == "INVALID_MESSAGE"

        ws.send_json({"type": "session.teleport"})
        assert ws.receive_json()["code"] == "INVALID_MESSAGE"

        ws.send_json({"type": "session.start", "role": "", "tech_stack": "Go"})
        error = ws.receive_json()
        assert error["type"] == "error"
        assert error["code"] == "VALIDATION_ERROR"
        assert error["message"] == "Please select a role and tech stack."
