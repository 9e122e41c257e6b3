"""Remote interview API implementation of TranscriptStore."""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from ..domain.entities.errors import AuthenticationError, UpstreamError
from ..domain.entities.interview_session import InterviewSession, Message
from ..domain.interfaces.transcript_store import TranscriptStore

logger = logging.getLogger(__name__)


class HttpTranscriptStore(TranscriptStore):
    """Talks to the interview records API on behalf of one signed-in user.

    Every request carries the user's opaque credential in ``auth_header``.
    A 401 raises ``AuthenticationError``; any other failure raises
    ``UpstreamError``.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str],
        auth_header: str = "x-auth-token",
        timeout_seconds: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the store.

        Args:
            base_url: Root URL of the interview API.
            token: Credential of the user the session belongs to.
            auth_header: Header carrying the credential.
            timeout_seconds: Per-request timeout.
            client: Optional pre-built client (tests inject a mock transport).
        """
        headers = {"Content-Type": "application/json"}
        if token:
            headers[auth_header] = token
        self._headers = headers
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout_seconds)

    async def create(self, session: InterviewSession) -> InterviewSession:
        data = await self._request("POST", "/api/interviews", json=session.to_store_payload())
        return self._to_session(data)

    async def update(
        self,
        session_id: str,
        messages: Optional[list[Message]] = None,
        feedback: Optional[str] = None,
    ) -> InterviewSession:
        body: dict[str, Any] = {}
        if messages is not None:
            body["messages"] = [m.model_dump(mode="json") for m in messages]
        if feedback is not None:
            body["feedback"] = feedback

        data = await self._request("PUT", f"/api/interviews/{session_id}", json=body)
        if data is None:
            raise UpstreamError(f"Interview {session_id} not found")
        return self._to_session(data)

    async def get(self, session_id: str) -> InterviewSession:
        for session in await self.list_history():
            if session.id == session_id:
                return session
        raise ValueError(f"Session with id {session_id} not found")

    async def list_history(self, user_id: Optional[str] = None) -> list[InterviewSession]:
        # The store scopes history by the bearer token, so user_id is not sent
        data = await self._request("GET", "/api/interviews/history")
        if not isinstance(data, list):
            raise UpstreamError("Interview history is not a list")
        return [self._to_session(item) for item in data]

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        try:
            response = await self._client.request(method, path, json=json, headers=self._headers)
        except httpx.HTTPError as e:
            logger.error(f"Transcript store {method} {path} failed: {e}")
            raise UpstreamError(f"Transcript store unreachable: {e}") from e

        if response.status_code == 401:
            raise AuthenticationError(self._error_text(response) or "Token is not valid")
        if not response.is_success:
            logger.error(f"Transcript store {method} {path} returned {response.status_code}")
            raise UpstreamError(self._error_text(response) or f"Transcript store returned {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError("Transcript store returned a non-JSON body") from e

    @staticmethod
    def _error_text(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text
        if isinstance(body, dict):
            return body.get("msg") or body.get("error") or ""
        return ""

    @staticmethod
    def _to_session(data: Any) -> InterviewSession:
        try:
            return InterviewSession.model_validate(data)
        except PydanticValidationError as e:
            raise UpstreamError(f"Unexpected interview record: {e}") from e
