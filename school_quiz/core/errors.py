"""Exceptions raised by the quiz core."""

from __future__ import annotations


class QuizAppError(Exception):
    """Base class for quiz application errors."""


class QuizNotFound(QuizAppError):
    """Raised when a quiz identifier does not resolve to a quiz."""

    def __init__(self, quiz_id: str) -> None:
        super().__init__(f"Quiz not found: {quiz_id}")
        self.quiz_id = quiz_id


class DataUnavailable(QuizAppError):
    """Raised when quiz or result data cannot be read from the store."""


class MalformedQuiz(DataUnavailable):
    """Raised when a stored quiz document does not describe a valid quiz."""


class ResultPersistFailure(QuizAppError):
    """Raised when a finished session's result could not be written."""


class SessionStateError(QuizAppError, RuntimeError):
    """Raised when a session operation is attempted in the wrong state."""


class StoreError(QuizAppError):
    """Raised by the document store when a read or write fails."""


class DuplicateDocumentError(StoreError):
    """Raised when a document is added under a key that already exists."""


class SessionNotFound(QuizAppError, LookupError):
    """Raised when a student has no open quiz session."""
