"""Exception hierarchy shared across quizwith modules."""

from __future__ import annotations

__all__ = [
    "QuizwithError",
    "MalformedResponse",
    "QuizNotFound",
    "StorageError",
    "LiveSessionError",
]


class QuizwithError(RuntimeError):
    """Base class for recoverable quizwith failures."""


class MalformedResponse(QuizwithError):
    """Raised when a stored row or model response has an unexpected shape."""


class QuizNotFound(QuizwithError):
    """Raised when a quiz lookup misses."""

    def __init__(self, quiz_id: str) -> None:
        super().__init__(f"Quiz not found: {quiz_id}")
        self.quiz_id = quiz_id


class StorageError(QuizwithError):
    """Raised when the JSONL stores cannot be read or written."""


class LiveSessionError(QuizwithError):
    """Raised for invalid live session operations."""
