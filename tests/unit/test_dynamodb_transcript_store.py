"""Tests for DynamoDB transcript store."""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from interview_coach.domain.entities import InterviewSession, Message, Sender
from interview_coach.infrastructure import DynamoDBTranscriptStore


class ConditionalCheckFailedException(Exception):
    """Stand-in for the botocore modeled exception class."""


@pytest.fixture
def mock_dynamodb_table():
    """Create a mock DynamoDB table."""
    mock_table = AsyncMock()
    return mock_table


@pytest.fixture
def mock_dynamodb_resource(mock_dynamodb_table):
    """Create a mock DynamoDB resource."""
    mock_resource = MagicMock()
    mock_resource.Table = AsyncMock(return_value=mock_dynamodb_table)
    mock_resource.meta.client.exceptions.ConditionalCheckFailedException = ConditionalCheckFailedException
    return mock_resource


@pytest.fixture
def mock_aioboto3_session(mock_dynamodb_resource):
    """Create a mock aioboto3 session."""
    with patch("interview_coach.infrastructure.dynamodb_transcript_store.aioboto3.Session") as mock_session_class:
        mock_session_instance = MagicMock()
        mock_session_class.return_value = mock_session_instance

        # Setup async context manager for resource
        mock_session_instance.resource.return_value.__aenter__ = AsyncMock(return_value=mock_dynamodb_resource)
        mock_session_instance.resource.return_value.__aexit__ = AsyncMock(return_value=None)

        yield mock_session_instance


@pytest.fixture
def store(mock_aioboto3_session):
    """Create a DynamoDB transcript store instance."""
    return DynamoDBTranscriptStore(table_name="test-interviews", region_name="us-east-1")


@pytest.fixture
def sample_session():
    """Create a sample session entity."""
    return InterviewSession(
        id="session-123",
        role="Backend Developer",
        tech_stack="Rust",
        messages=[
            Message(sender=Sender.AI, text="Hello Candidate!", timestamp=datetime(2026, 1, 13, 10, 0, 0)),
        ],
        started_at=datetime(2026, 1, 13, 10, 0, 0),
    )


@pytest.fixture
def sample_dynamodb_item():
    """Create a sample DynamoDB item."""
    return {
        "id": "session-123",
        "role": "Backend Developer",
        "tech_stack": "Rust",
        "messages": [
            {"sender": "ai", "text": "Hello Candidate!", "timestamp": "2026-01-13T10:00:00"},
            {"sender": "user", "text": "Ownership and borrowing.", "timestamp": "2026-01-13T10:01:00"},
        ],
        "feedback": "",
        "started_at": "2026-01-13T10:00:00",
    }


class TestDynamoDBTranscriptStore:
    """Test cases for DynamoDBTranscriptStore."""

    def test_init(self, store):
        """Test store initialization."""
        assert store.table_name == "test-interviews"
        assert store.region_name == "us-east-1"

    @pytest.mark.asyncio
    async def test_create(self, store, mock_dynamodb_table, sample_session):
        """Test saving a new session to DynamoDB."""
        stored = await store.create(sample_session.model_copy(update={"id": None}))

        mock_dynamodb_table.put_item.assert_called_once()
        item = mock_dynamodb_table.put_item.call_args.kwargs["Item"]

        assert stored.id
        assert item["id"] == stored.id
        assert item["role"] == "Backend Developer"
        assert item["tech_stack"] == "Rust"
        assert item["messages"] == [
            {"sender": "ai", "text": "Hello Candidate!", "timestamp": "2026-01-13T10:00:00"}
        ]
        assert item["feedback"] == ""
        assert item["started_at"] == "2026-01-13T10:00:00"

    @pytest.mark.asyncio
    async def test_get_success(self, store, mock_dynamodb_table, sample_dynamodb_item):
        """Test successful session retrieval."""
        mock_dynamodb_table.get_item.return_value = {"Item": sample_dynamodb_item}

        result = await store.get("session-123")

        assert isinstance(result, InterviewSession)
        assert result.id == "session-123"
        assert result.tech_stack == "Rust"
        assert [m.sender for m in result.messages] == [Sender.AI, Sender.USER]
        assert result.messages[1].timestamp == datetime(2026, 1, 13, 10, 1, 0)

        mock_dynamodb_table.get_item.assert_called_once_with(Key={"id": "session-123"})

    @pytest.mark.asyncio
    async def test_get_not_found(self, store, mock_dynamodb_table):
        """Test session not found scenario."""
        mock_dynamodb_table.get_item.return_value = {}

        with pytest.raises(ValueError, match="Session with id session-123 not found"):
            await store.get("session-123")

    @pytest.mark.asyncio
    async def test_update_feedback(self, store, mock_dynamodb_table, sample_dynamodb_item):
        """Test setting feedback on an existing session."""
        mock_dynamodb_table.update_item.return_value = {
            "Attributes": {**sample_dynamodb_item, "feedback": "## Strengths"}
        }

        result = await store.update("session-123", feedback="## Strengths")

        assert result.feedback == "## Strengths"
        kwargs = mock_dynamodb_table.update_item.call_args.kwargs
        assert kwargs["Key"] == {"id": "session-123"}
        assert kwargs["UpdateExpression"] == "SET feedback = :feedback"
        assert kwargs["ExpressionAttributeValues"] == {":feedback": "## Strengths"}
        assert kwargs["ConditionExpression"] == "attribute_exists(id)"

    @pytest.mark.asyncio
    async def test_update_messages_and_feedback(self, store, mock_dynamodb_table, sample_session, sample_dynamodb_item):
        mock_dynamodb_table.update_item.return_value = {"Attributes": sample_dynamodb_item}

        await store.update("session-123", messages=sample_session.messages, feedback="done")

        kwargs = mock_dynamodb_table.update_item.call_args.kwargs
        assert kwargs["UpdateExpression"] == "SET messages = :messages, feedback = :feedback"
        assert kwargs["ExpressionAttributeValues"][":messages"][0]["text"] == "Hello Candidate!"

    @pytest.mark.asyncio
    async def test_update_not_found(self, store, mock_dynamodb_table):
        """Test updating a session that doesn't exist."""
        mock_dynamodb_table.update_item.side_effect = ConditionalCheckFailedException()

        with pytest.raises(ValueError, match="Session with id missing not found"):
            await store.update("missing", feedback="x")

    @pytest.mark.asyncio
    async def test_list_history_newest_first(self, store, mock_dynamodb_table, sample_dynamodb_item):
        newer = {**sample_dynamodb_item, "id": "session-456", "started_at": "2026-02-01T09:00:00"}
        mock_dynamodb_table.scan.return_value = {"Items": [sample_dynamodb_item, newer]}

        history = await store.list_history()

        assert [s.id for s in history] == ["session-456", "session-123"]

    @pytest.mark.asyncio
    async def test_list_history_follows_pages(self, store, mock_dynamodb_table, sample_dynamodb_item):
        second = {**sample_dynamodb_item, "id": "session-456", "started_at": "2026-02-01T09:00:00"}
        mock_dynamodb_table.scan.side_effect = [
            {"Items": [sample_dynamodb_item], "LastEvaluatedKey": {"id": "session-123"}},
            {"Items": [second]},
        ]

        history = await store.list_history()

        assert [s.id for s in history] == ["session-456", "session-123"]
        first_call, second_call = mock_dynamodb_table.scan.call_args_list
        assert "ExclusiveStartKey" not in first_call.kwargs
        assert second_call.kwargs["ExclusiveStartKey"] == {"id": "session-123"}

    @pytest.mark.asyncio
    async def test_list_history_filters_by_owner(self, store, mock_dynamodb_table, sample_dynamodb_item):
        mock_dynamodb_table.scan.return_value = {"Items": [{**sample_dynamodb_item, "user_id": "alice"}]}

        history = await store.list_history(user_id="alice")

        mock_dynamodb_table.scan.assert_awaited_once_with(
            FilterExpression="user_id = :user_id",
            ExpressionAttributeValues={":user_id": "alice"},
        )
        assert history[0].user_id == "alice"

    def test_item_round_trip(self, store, sample_session):
        """Test conversion between the entity and the DynamoDB item."""
        result = store._item_to_session(store._session_to_item(sample_session))

        assert result.id == sample_session.id
        assert result.messages == sample_session.messages
        assert result.started_at == sample_session.started_at

    def test_owner_is_stored_with_the_item(self, store, sample_session):
        owned = sample_session.model_copy(update={"user_id": "alice"})

        item = store._session_to_item(owned)

        assert item["user_id"] == "alice"
        assert "user_id" not in store._session_to_item(sample_session)
        assert store._item_to_session(item).user_id == "alice"
