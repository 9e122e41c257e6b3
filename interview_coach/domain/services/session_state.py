"""Explicit phase machine for an interview session."""

import logging
from typing import Callable, Optional

from ..entities.errors import InvalidTransitionError
from ..entities.interview_session import Phase

logger = logging.getLogger(__name__)

_ANSWERING = {Phase.LISTENING, Phase.SUBMITTING_ANSWER}

_TRANSITIONS: dict[Phase, set[Phase]] = {
    Phase.SETUP: {Phase.AWAITING_AI_QUESTION},
    Phase.AWAITING_AI_QUESTION: {Phase.USER_TURN, Phase.ENDING} | _ANSWERING,
    Phase.USER_TURN: {Phase.ENDING} | _ANSWERING,
    Phase.LISTENING: {Phase.USER_TURN, Phase.SUBMITTING_ANSWER, Phase.ENDING},
    Phase.SUBMITTING_ANSWER: {Phase.AWAITING_AI_QUESTION, Phase.ENDING},
    Phase.ENDING: {Phase.FEEDBACK},
    Phase.FEEDBACK: set(),
}


class SessionStateMachine:
    """
    Holds the current phase and enforces the allowed transitions.

    ``reset()`` is the only way back to ``Phase.SETUP`` and works from any
    phase. Observers get ``(previous, current)`` after every change.
    """

    def __init__(self, on_transition: Optional[Callable[[Phase, Phase], None]] = None):
        self._phase = Phase.SETUP
        self._on_transition = on_transition

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def is_active(self) -> bool:
        return self._phase.is_active

    def can_transition(self, target: Phase) -> bool:
        return target in _TRANSITIONS[self._phase]

    def transition(self, target: Phase) -> None:
        """Move to ``target``.

        Raises:
            InvalidTransitionError: If ``target`` is not reachable from the
                current phase.
        """
        if not self.can_transition(target):
            raise InvalidTransitionError(self._phase, target)
        self._set(target)

    def reset(self) -> None:
        """Return to setup (restart)."""
        self._set(Phase.SETUP)

    def _set(self, target: Phase) -> None:
        previous = self._phase
        self._phase = target
        logger.info(f"Phase {previous.value} -> {target.value}")
        if self._on_transition and previous != target:
            self._on_transition(previous, target)
