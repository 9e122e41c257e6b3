"""Tests for InterviewCoachController wiring."""

import pytest

from interview_coach.application.config import Settings
from interview_coach.application.controller import ANONYMOUS_OWNER, InterviewCoachController, owner_key
from interview_coach.domain.entities import InterviewSession
from interview_coach.infrastructure import (
    ClientFrameSource,
    ClientSpeechBridge,
    HttpTranscriptStore,
    LocalTranscriptStore,
    SimpleInterviewer,
)


@pytest.fixture
def settings():
    return Settings(_env_file=None, motion_channel_threshold=30)


def test_shared_store_is_used_for_every_token(settings):
    store = LocalTranscriptStore()
    controller = InterviewCoachController(SimpleInterviewer(), settings, transcript_store=store)

    assert controller.store_for("a") is store
    assert controller.store_for(None) is store


def test_http_store_per_token(settings):
    controller = InterviewCoachController(SimpleInterviewer(), settings)

    first = controller.store_for("token-a")
    second = controller.store_for("token-b")

    assert isinstance(first, HttpTranscriptStore)
    assert first is not second


@pytest.mark.asyncio
async def test_coordinator_wiring(settings):
    controller = InterviewCoachController(SimpleInterviewer(), settings, transcript_store=LocalTranscriptStore())

    coordinator = controller.create_coordinator("token")

    assert isinstance(coordinator.capture, ClientSpeechBridge)
    assert coordinator.capture is coordinator.playback
    assert coordinator.capture.outbound_queue is coordinator.outbound_queue
    assert isinstance(coordinator.video_source, ClientFrameSource)
    assert coordinator.motion_detector.channel_threshold == 30


@pytest.mark.asyncio
async def test_history_from_shared_store(settings):
    store = LocalTranscriptStore()
    await store.create(
        InterviewSession(role="DevOps Engineer", tech_stack="Terraform", user_id=owner_key("token"))
    )
    controller = InterviewCoachController(SimpleInterviewer(), settings, transcript_store=store)

    history = await controller.get_history("token")

    assert [s.tech_stack for s in history] == ["Terraform"]


@pytest.mark.asyncio
async def test_history_is_scoped_to_the_callers_token(settings):
    store = LocalTranscriptStore()
    controller = InterviewCoachController(SimpleInterviewer(), settings, transcript_store=store)

    alice = controller.create_coordinator("token-alice")
    await alice.start_session("Backend Developer", "Go")
    await alice.restart()
    bob = controller.create_coordinator("token-bob")
    await bob.start_session("QA Engineer", "Cypress")
    await bob.restart()

    alice_history = await controller.get_history("token-alice")
    bob_history = await controller.get_history("token-bob")

    assert [s.tech_stack for s in alice_history] == ["Go"]
    assert [s.tech_stack for s in bob_history] == ["Cypress"]
    assert await controller.get_history("token-carol") == []


def test_owner_key_does_not_expose_the_token():
    key = owner_key("secret-token")

    assert key == owner_key("secret-token")
    assert "secret-token" not in key
    assert key != owner_key("other-token")
    assert owner_key(None) == owner_key("") == ANONYMOUS_OWNER


def test_health_status(settings):
    controller = InterviewCoachController(SimpleInterviewer(), settings, transcript_store=LocalTranscriptStore())

    assert controller.get_health_status() == {
        "status": "healthy",
        "providers": {
            "response_generator": "SimpleInterviewer",
            "transcript_store": "LocalTranscriptStore",
        },
    }
