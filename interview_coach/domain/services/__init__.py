"""Domain services for the interview coach application."""

from .motion_detector import MotionDetector
from .persistence_sync import PersistenceSync
from .session_state import SessionStateMachine
from .turn_coordinator import CancellationToken, TurnCoordinator

__all__ = [
    "CancellationToken",
    "MotionDetector",
    "PersistenceSync",
    "SessionStateMachine",
    "TurnCoordinator",
]
