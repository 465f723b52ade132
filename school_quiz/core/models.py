"""Domain models for the quiz application."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from school_quiz.constants.quiz_constants import OPTIONS_PER_QUESTION


class SubjectType(str, Enum):
    CORE = "core"
    ELECTIVE = "elective"


class AnswerStatus(str, Enum):
    UNANSWERED = "unanswered"
    ANSWERED = "answered"
    SKIPPED = "skipped"


class SessionState(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class FinishReason(str, Enum):
    MANUAL = "manual"
    TIMEOUT = "timeout"


@dataclass(frozen=True, slots=True)
class Subject:
    """Subject classification a quiz belongs to."""

    type: SubjectType
    name: str


@dataclass(frozen=True, slots=True)
class Question:
    """Multiple-choice question with exactly four options."""

    question_text: str
    options: tuple[str, ...]
    correct_option_index: int

    def __post_init__(self) -> None:
        if len(self.options) != OPTIONS_PER_QUESTION:
            raise ValueError("Each question must have exactly four options.")
        if not 0 <= self.correct_option_index < len(self.options):
            raise ValueError("Correct option index must be between 0 and 3.")


@dataclass(frozen=True, slots=True)
class Quiz:
    """A timed set of questions tied to a subject."""

    id: str
    title: str
    subject: Subject
    duration_seconds: int | None
    questions: tuple[Question, ...]

    @property
    def question_count(self) -> int:
        return len(self.questions)


@dataclass(slots=True)
class QuestionStatus:
    """Per-question progress inside a single session."""

    status: AnswerStatus = AnswerStatus.UNANSWERED
    selected_option: int | None = None


@dataclass(frozen=True, slots=True)
class Result:
    """Persisted outcome of a completed session."""

    student_id: str
    quiz_id: str
    quiz_title: str
    score: float
    total_questions: int
    correct_questions: int
    subject_type: str
    subject_name: str
    created_at: datetime
    id: str | None = None

    def to_document(self) -> dict[str, object]:
        return {
            "studentId": self.student_id,
            "quizId": self.quiz_id,
            "quizTitle": self.quiz_title,
            "score": self.score,
            "totalQuestions": self.total_questions,
            "correctQuestions": self.correct_questions,
            "subjectType": self.subject_type,
            "subjectName": self.subject_name,
            "timestamp": int(self.created_at.timestamp() * 1000),
        }

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, object]) -> "Result":
        return cls(
            id=doc_id,
            student_id=str(data["studentId"]),
            quiz_id=str(data["quizId"]),
            quiz_title=str(data.get("quizTitle", "")),
            score=float(data.get("score", 0.0)),
            total_questions=int(data.get("totalQuestions", 0)),
            correct_questions=int(data.get("correctQuestions", 0)),
            subject_type=str(data.get("subjectType") or "unknown"),
            subject_name=str(data.get("subjectName") or "Unknown"),
            created_at=datetime.fromtimestamp(
                int(data.get("timestamp", 0)) / 1000, tz=timezone.utc
            ),
        )


@dataclass(slots=True)
class SessionOutcome:
    """Score computed when a session finishes, plus how it was recorded."""

    score: float
    correct_questions: int
    total_questions: int
    reason: FinishReason
    persisted: bool = False
    warning: str | None = None
    result: Result | None = field(default=None, repr=False)

