"""Service that scores a finished session and records its result."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime, timezone
import logging

from school_quiz.constants.quiz_constants import RESULT_NOT_SAVED_MESSAGE
from school_quiz.core.errors import ResultPersistFailure
from school_quiz.core.models import (
    AnswerStatus,
    FinishReason,
    Question,
    QuestionStatus,
    Result,
    SessionOutcome,
)
from school_quiz.core.services.quiz_gateway import QuizGateway
from school_quiz.core.services.quiz_session import QuizSession

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def score_answers(
    questions: Sequence[Question], statuses: Sequence[QuestionStatus]
) -> tuple[int, float]:
    """Return ``(correct_count, score_percentage)`` for the final answers."""
    if len(questions) != len(statuses):
        raise ValueError("Every question needs exactly one status entry.")
    if not questions:
        raise ValueError("Cannot score a quiz without questions.")
    correct = sum(
        1
        for question, status in zip(questions, statuses)
        if status.status is AnswerStatus.ANSWERED
        and status.selected_option == question.correct_option_index
    )
    return correct, 100.0 * correct / len(questions)


class ResultRecorder:
    """Finishes sessions exactly once and persists their results."""

    def __init__(
        self,
        gateway: QuizGateway,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._gateway = gateway
        self._clock = clock

    def finalize(self, session: QuizSession, reason: FinishReason) -> SessionOutcome | None:
        """Finish the session and record its result.

        Returns the existing outcome when the session had already finished and
        None when it was never started.
        """
        if not session.mark_finished(reason):
            return session.get_outcome()

        quiz = session.quiz
        correct, score = score_answers(quiz.questions, session.get_statuses())
        result = Result(
            student_id=session.student_id,
            quiz_id=quiz.id,
            quiz_title=quiz.title,
            score=score,
            total_questions=quiz.question_count,
            correct_questions=correct,
            subject_type=quiz.subject.type.value,
            subject_name=quiz.subject.name,
            created_at=self._clock(),
        )
        outcome = SessionOutcome(
            score=score,
            correct_questions=correct,
            total_questions=quiz.question_count,
            reason=reason,
            result=result,
        )
        # A finished session always carries an outcome, even if saving raises.
        session.set_outcome(outcome)

        try:
            self._gateway.save_result(result)
        except ResultPersistFailure as exc:
            logger.error(
                "Could not save result for student %s on quiz %s: %s",
                session.student_id,
                quiz.id,
                exc,
            )
            outcome.warning = f"{RESULT_NOT_SAVED_MESSAGE} ({exc})"
            session.set_outcome(outcome)
        else:
            outcome.persisted = True
            logger.info(
                "Saved result for student %s on quiz %s: %.2f%%",
                session.student_id,
                quiz.id,
                score,
            )
        return outcome
