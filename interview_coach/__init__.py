"""Practice technical interviews with an AI interviewer."""

__version__ = "0.1.0"
