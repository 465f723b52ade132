"""Service exposing quiz and result records stored in the document store."""

from __future__ import annotations

import logging

from school_quiz.core.config import AppSettings
from school_quiz.core.document_store import Document, DocumentStore
from school_quiz.core.errors import (
    DataUnavailable,
    DuplicateDocumentError,
    ResultPersistFailure,
    StoreError,
)
from school_quiz.core.models import Result

logger = logging.getLogger(__name__)


class QuizGateway:
    """Point-in-time reads and writes of quizzes and results."""

    def __init__(self, store: DocumentStore, settings: AppSettings) -> None:
        self._store = store
        self._settings = settings

    def get_quiz(self, quiz_id: str) -> Document | None:
        """Return the raw quiz document, or None when it does not exist."""
        try:
            return self._store.get(self._settings.quizzes_collection, quiz_id)
        except StoreError as exc:
            raise DataUnavailable(f"Failed to load quiz: {exc}") from exc

    def list_quiz_documents(self) -> list[tuple[str, Document]]:
        try:
            return self._store.query(self._settings.quizzes_collection)
        except StoreError as exc:
            raise DataUnavailable(f"Failed to load quizzes: {exc}") from exc

    def put_quiz(self, quiz_id: str, document: Document) -> None:
        try:
            self._store.set(self._settings.quizzes_collection, quiz_id, document)
        except StoreError as exc:
            raise DataUnavailable(f"Failed to store quiz '{quiz_id}': {exc}") from exc

    def find_result(self, student_id: str, quiz_id: str) -> Result | None:
        """Return an existing result for the pair, if any."""
        try:
            matches = self._store.query(
                self._settings.results_collection,
                studentId=student_id,
                quizId=quiz_id,
            )
        except StoreError as exc:
            raise DataUnavailable(f"Failed to check past attempts: {exc}") from exc
        if not matches:
            return None
        if len(matches) > 1:
            logger.warning(
                "Found %d results for student %s on quiz %s", len(matches), student_id, quiz_id
            )
        doc_id, document = min(matches, key=lambda item: item[1].get("timestamp", 0))
        return Result.from_document(doc_id, document)

    def list_results(self, student_id: str) -> list[Result]:
        try:
            matches = self._store.query(self._settings.results_collection, studentId=student_id)
        except StoreError as exc:
            raise DataUnavailable(f"Failed to load results: {exc}") from exc
        return [Result.from_document(doc_id, document) for doc_id, document in matches]

    def save_result(self, result: Result) -> str:
        """Persist a result and return its document id."""
        key = None
        if self._settings.enforce_single_result:
            key = f"{result.student_id}:{result.quiz_id}"
        try:
            return self._store.add(self._settings.results_collection, result.to_document(), key=key)
        except DuplicateDocumentError as exc:
            raise ResultPersistFailure(
                "A result for this quiz has already been recorded."
            ) from exc
        except StoreError as exc:
            raise ResultPersistFailure(f"Failed to save result: {exc}") from exc
