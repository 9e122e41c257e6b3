"""Error taxonomy for interview sessions."""


class InterviewError(Exception):
    """Base class for recoverable interview session errors."""


class ValidationError(InterviewError):
    """Rejected locally: missing role/tech stack, empty answer, session already running."""


class CaptureError(InterviewError):
    """Speech capture failed, whatever the cause."""


class UpstreamError(InterviewError):
    """The generation service or the transcript store failed."""


class AuthenticationError(UpstreamError):
    """The transcript store rejected the session credential."""


class DeviceError(InterviewError):
    """The camera is unavailable."""


class InvalidTransitionError(ValueError):
    """A phase transition not allowed by the session state machine."""

    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(f"Cannot transition from {current.value} to {target.value}")
