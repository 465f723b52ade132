"""Service listing the quizzes a student can see, with attempt status."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
import logging

from school_quiz.core.config import AppSettings
from school_quiz.core.errors import MalformedQuiz
from school_quiz.core.models import SubjectType
from school_quiz.core.services.quiz_gateway import QuizGateway
from school_quiz.core.services.quiz_loader import parse_quiz_document, resolve_duration

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CatalogEntry:
    quiz_id: str
    title: str
    subject_type: str
    subject_name: str
    question_count: int
    duration_seconds: int
    attempted: bool
    score: float | None = None


class QuizCatalog:
    """Builds the quiz list shown to a student."""

    def __init__(self, gateway: QuizGateway, settings: AppSettings) -> None:
        self._gateway = gateway
        self._settings = settings

    def list_for_student(
        self, student_id: str, subjects: Iterable[str] | None = None
    ) -> list[CatalogEntry]:
        """Return every core quiz plus the electives named in ``subjects``.

        With ``subjects`` left as None no elective is filtered out.
        """
        wanted = {name.strip().lower() for name in subjects} if subjects is not None else None
        results = {result.quiz_id: result for result in self._gateway.list_results(student_id)}

        entries: list[CatalogEntry] = []
        for quiz_id, document in self._gateway.list_quiz_documents():
            try:
                quiz = parse_quiz_document(quiz_id, document)
            except MalformedQuiz as exc:
                logger.warning("Skipping malformed quiz %s: %s", quiz_id, exc)
                continue
            if (
                wanted is not None
                and quiz.subject.type is SubjectType.ELECTIVE
                and quiz.subject.name.lower() not in wanted
            ):
                continue
            result = results.get(quiz_id)
            entries.append(
                CatalogEntry(
                    quiz_id=quiz_id,
                    title=quiz.title,
                    subject_type=quiz.subject.type.value,
                    subject_name=quiz.subject.name,
                    question_count=quiz.question_count,
                    duration_seconds=resolve_duration(
                        quiz.duration_seconds, self._settings.default_duration_seconds
                    ),
                    attempted=result is not None,
                    score=result.score if result is not None else None,
                )
            )
        entries.sort(key=lambda e: (e.subject_name.lower(), e.title.lower()))
        return entries
