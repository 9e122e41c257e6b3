"""Tests for LocalTranscriptStore."""

from datetime import datetime

import pytest

from interview_coach.domain.entities import InterviewSession, Message, Sender
from interview_coach.infrastructure import LocalTranscriptStore


@pytest.fixture
def store():
    """Create a fresh LocalTranscriptStore for each test."""
    return LocalTranscriptStore()


@pytest.fixture
def sample_session():
    """Create a sample session for testing."""
    return InterviewSession(
        role="Frontend Developer",
        tech_stack="Vue.js",
        messages=[Message(sender=Sender.AI, text="Hello Candidate!")],
    )


@pytest.mark.asyncio
async def test_create_and_get_session(store, sample_session):
    """Test saving and retrieving a session."""
    stored = await store.create(sample_session)
    retrieved = await store.get(stored.id)

    assert stored.id
    assert sample_session.id is None
    assert retrieved.role == "Frontend Developer"
    assert retrieved.tech_stack == "Vue.js"
    assert [m.text for m in retrieved.messages] == ["Hello Candidate!"]


@pytest.mark.asyncio
async def test_get_nonexistent_session(store):
    """Test retrieving a session that doesn't exist."""
    with pytest.raises(ValueError, match="Session with id nonexistent not found"):
        await store.get("nonexistent")


@pytest.mark.asyncio
async def test_update_messages_and_feedback(store, sample_session):
    stored = await store.create(sample_session)
    messages = sample_session.messages + [Message(sender=Sender.USER, text="Hi!")]

    await store.update(stored.id, messages=messages)
    await store.update(stored.id, feedback="## Strengths")

    retrieved = await store.get(stored.id)
    assert len(retrieved.messages) == 2
    assert retrieved.feedback == "## Strengths"


@pytest.mark.asyncio
async def test_update_nonexistent_session(store):
    """Test updating a session that doesn't exist."""
    with pytest.raises(ValueError, match="Session with id .* not found"):
        await store.update("missing", feedback="x")


@pytest.mark.asyncio
async def test_stored_copy_is_isolated(store, sample_session):
    stored = await store.create(sample_session)

    sample_session.messages.append(Message(sender=Sender.USER, text="Not saved"))

    retrieved = await store.get(stored.id)
    assert len(retrieved.messages) == 1


@pytest.mark.asyncio
async def test_list_history_newest_first(store):
    older = InterviewSession(role="QA Engineer", tech_stack="Cypress", started_at=datetime(2026, 1, 1))
    newer = InterviewSession(role="QA Engineer", tech_stack="Playwright", started_at=datetime(2026, 2, 1))
    await store.create(older)
    await store.create(newer)

    history = await store.list_history()

    assert [s.tech_stack for s in history] == ["Playwright", "Cypress"]


@pytest.mark.asyncio
async def test_clear(store, sample_session):
    await store.create(sample_session)

    store.clear()

    assert await store.list_history() == []


@pytest.mark.asyncio
async def test_list_history_filters_by_owner(store):
    await store.create(InterviewSession(role="QA Engineer", tech_stack="Cypress", user_id="alice"))
    await store.create(InterviewSession(role="QA Engineer", tech_stack="Playwright", user_id="bob"))

    alice = await store.list_history(user_id="alice")
    everyone = await store.list_history()

    assert [s.tech_stack for s in alice] == ["Cypress"]
    assert alice[0].user_id == "alice"
    assert len(everyone) == 2
