"""Service that turns a stored quiz into a ready-to-play question set."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import random

from school_quiz.constants.quiz_constants import OPTIONS_PER_QUESTION
from school_quiz.core.config import AppSettings
from school_quiz.core.document_store import Document
from school_quiz.core.errors import MalformedQuiz, QuizNotFound
from school_quiz.core.models import Question, Quiz, Result, Subject, SubjectType
from school_quiz.core.services.quiz_gateway import QuizGateway

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LoadedQuiz:
    """A shuffled quiz together with the student's eligibility."""

    quiz: Quiz
    eligible: bool
    duration_seconds: int
    existing_result: Result | None = None


class QuestionSetLoader:
    """Fetches quizzes, shuffles their questions and checks prior attempts."""

    def __init__(
        self,
        gateway: QuizGateway,
        settings: AppSettings,
        rng: random.Random | None = None,
    ) -> None:
        self._gateway = gateway
        self._settings = settings
        self._rng = rng or random.Random()

    def load(self, quiz_id: str, student_id: str) -> LoadedQuiz:
        if not quiz_id or not quiz_id.strip():
            raise ValueError("A quiz id is required.")
        if not student_id or not student_id.strip():
            raise ValueError("A student id is required.")

        document = self._gateway.get_quiz(quiz_id)
        if document is None:
            raise QuizNotFound(quiz_id)
        quiz = parse_quiz_document(quiz_id, document)

        shuffled = Quiz(
            id=quiz.id,
            title=quiz.title,
            subject=quiz.subject,
            duration_seconds=quiz.duration_seconds,
            questions=tuple(shuffle_questions(quiz.questions, self._rng)),
        )

        existing = self._gateway.find_result(student_id, quiz_id)
        if existing is not None:
            logger.info("Student %s already attempted quiz %s", student_id, quiz_id)

        return LoadedQuiz(
            quiz=shuffled,
            eligible=existing is None,
            duration_seconds=resolve_duration(
                quiz.duration_seconds, self._settings.default_duration_seconds
            ),
            existing_result=existing,
        )


def resolve_duration(duration_seconds: int | None, default_seconds: int) -> int:
    """Stored duration, or ``default_seconds`` when it is unset or not positive."""
    if duration_seconds is None or duration_seconds <= 0:
        return default_seconds
    return duration_seconds


def shuffle_questions(questions: tuple[Question, ...], rng: random.Random) -> list[Question]:
    """Return a uniformly shuffled copy using Fisher-Yates."""
    shuffled = list(questions)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def parse_quiz_document(quiz_id: str, data: Document) -> Quiz:
    """Validate a raw quiz document and convert it into a Quiz."""
    title = _require_text(data.get("title"), "Quiz title")
    subject = Subject(
        type=_parse_subject_type(data.get("subjectType")),
        name=_require_text(data.get("subjectName"), "Subject name"),
    )

    raw_questions = data.get("questions")
    if not isinstance(raw_questions, list) or not raw_questions:
        raise MalformedQuiz(f"Quiz '{quiz_id}' must contain at least one question.")
    questions = tuple(
        _parse_question(quiz_id, position, raw)
        for position, raw in enumerate(raw_questions, start=1)
    )

    return Quiz(
        id=quiz_id,
        title=title,
        subject=subject,
        duration_seconds=_parse_duration(data.get("duration")),
        questions=questions,
    )


def _parse_question(quiz_id: str, position: int, raw: object) -> Question:
    if not isinstance(raw, dict):
        raise MalformedQuiz(f"Question {position} of quiz '{quiz_id}' is not a mapping.")
    text = _require_text(raw.get("questionText"), f"Question {position} text")
    options = raw.get("options")
    if not isinstance(options, list) or len(options) != OPTIONS_PER_QUESTION:
        raise MalformedQuiz(f"Question {position} must have exactly four options.")
    cleaned = tuple(_require_text(option, f"Question {position} option") for option in options)

    correct = raw.get("correctAnswerIndex")
    if isinstance(correct, bool) or not isinstance(correct, int):
        raise MalformedQuiz(f"Question {position} is missing its correct answer index.")
    if not 0 <= correct < OPTIONS_PER_QUESTION:
        raise MalformedQuiz(f"Question {position} correct answer index must be between 0 and 3.")
    return Question(question_text=text, options=cleaned, correct_option_index=correct)


def _parse_subject_type(value: object) -> SubjectType:
    try:
        return SubjectType(str(value).strip().lower())
    except ValueError as exc:
        raise MalformedQuiz(f"Unknown subject type: {value!r}") from exc


def _parse_duration(value: object) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedQuiz("Duration must be a whole number of seconds.")
    if isinstance(value, float) and not value.is_integer():
        raise MalformedQuiz("Duration must be a whole number of seconds.")
    return int(value)


def _require_text(value: object, label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise MalformedQuiz(f"{label} must not be empty.")
    return value.strip()
