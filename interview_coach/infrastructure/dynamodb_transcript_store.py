"""DynamoDB implementation of TranscriptStore."""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

import aioboto3

from ..domain.entities.interview_session import InterviewSession, Message, Sender
from ..domain.interfaces.transcript_store import TranscriptStore


class DynamoDBTranscriptStore(TranscriptStore):
    """DynamoDB store for interview transcripts."""

    def __init__(self, table_name: str, region_name: str = "us-east-1"):
        """Initialize the DynamoDB transcript store.

        Args:
            table_name: The name of the DynamoDB table.
            region_name: AWS region name (default: us-east-1).
        """
        self.table_name = table_name
        self.region_name = region_name
        self._session = aioboto3.Session()

    async def create(self, session: InterviewSession) -> InterviewSession:
        """Save a new session to DynamoDB under a fresh identifier.

        Args:
            session: The session entity to save.

        Returns:
            InterviewSession: The stored session.
        """
        stored = session.model_copy(deep=True, update={"id": str(uuid.uuid4())})
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            await table.put_item(Item=self._session_to_item(stored))
        return stored

    async def update(
        self,
        session_id: str,
        messages: Optional[list[Message]] = None,
        feedback: Optional[str] = None,
    ) -> InterviewSession:
        """Set messages and/or feedback on an existing item.

        Raises:
            ValueError: If the session is not found.
        """
        assignments = []
        values: Dict[str, Any] = {}
        if messages is not None:
            assignments.append("messages = :messages")
            values[":messages"] = [self._message_to_item(m) for m in messages]
        if feedback is not None:
            assignments.append("feedback = :feedback")
            values[":feedback"] = feedback

        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            try:
                response = await table.update_item(
                    Key={"id": session_id},
                    UpdateExpression="SET " + ", ".join(assignments),
                    ExpressionAttributeValues=values,
                    ConditionExpression="attribute_exists(id)",
                    ReturnValues="ALL_NEW",
                )
            except dynamodb.meta.client.exceptions.ConditionalCheckFailedException as e:
                raise ValueError(f"Session with id {session_id} not found") from e

        return self._item_to_session(response["Attributes"])

    async def get(self, session_id: str) -> InterviewSession:
        """Retrieve a session by ID from DynamoDB.

        Raises:
            ValueError: If the session is not found.
        """
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            response = await table.get_item(Key={"id": session_id})

            if "Item" not in response:
                raise ValueError(f"Session with id {session_id} not found")

            return self._item_to_session(response["Item"])

    async def list_history(self, user_id: Optional[str] = None) -> list[InterviewSession]:
        """Scan sessions, following every page, newest first.

        Args:
            user_id: Only return items stored under this owner key.
        """
        scan_kwargs: Dict[str, Any] = {}
        if user_id is not None:
            scan_kwargs["FilterExpression"] = "user_id = :user_id"
            scan_kwargs["ExpressionAttributeValues"] = {":user_id": user_id}

        items: list[Dict[str, Any]] = []
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            while True:
                response = await table.scan(**scan_kwargs)
                items.extend(response.get("Items", []))
                if "LastEvaluatedKey" not in response:
                    break
                scan_kwargs["ExclusiveStartKey"] = response["LastEvaluatedKey"]

        sessions = [self._item_to_session(item) for item in items]
        return sorted(sessions, key=lambda s: s.started_at, reverse=True)

    def _session_to_item(self, session: InterviewSession) -> Dict[str, Any]:
        """Convert a Session entity to a DynamoDB item."""
        item = {
            "id": session.id,
            "role": session.role,
            "tech_stack": session.tech_stack,
            "messages": [self._message_to_item(m) for m in session.messages],
            "feedback": session.feedback,
            "started_at": session.started_at.isoformat(),
        }
        if session.user_id is not None:
            item["user_id"] = session.user_id
        return item

    def _message_to_item(self, message: Message) -> Dict[str, Any]:
        return {
            "sender": message.sender.value,
            "text": message.text,
            "timestamp": message.timestamp.isoformat(),
        }

    def _item_to_session(self, item: Dict[str, Any]) -> InterviewSession:
        """Convert a DynamoDB item to a Session entity."""
        return InterviewSession(
            id=item["id"],
            role=item["role"],
            tech_stack=item["tech_stack"],
            messages=[
                Message(
                    sender=Sender(m["sender"]),
                    text=m["text"],
                    timestamp=datetime.fromisoformat(m["timestamp"]),
                )
                for m in item.get("messages", [])
            ],
            feedback=item.get("feedback", ""),
            started_at=datetime.fromisoformat(item["started_at"]),
            user_id=item.get("user_id"),
        )
