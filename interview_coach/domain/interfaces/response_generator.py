"""Response generator interface."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ResponseGenerator(Protocol):
    """Protocol for the text generation service behind the interviewer."""

    async def generate(self, prompt: str) -> str:
        """Generate a completion for a free-text prompt.

        Args:
            prompt: The full prompt, transcript included.

        Returns:
            str: The first candidate's first text part.

        Raises:
            UpstreamError: If the call fails or the response carries no text.
        """
        ...
