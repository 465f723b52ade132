"""Service holding one student's in-memory attempt at a quiz."""

from __future__ import annotations

from collections.abc import Callable
import logging

from school_quiz.constants.quiz_constants import (
    ALREADY_ATTEMPTED_MESSAGE,
    OPTIONS_PER_QUESTION,
)
from school_quiz.core.errors import SessionStateError
from school_quiz.core.models import (
    AnswerStatus,
    FinishReason,
    Question,
    QuestionStatus,
    Quiz,
    SessionOutcome,
    SessionState,
)
from school_quiz.core.services.countdown_timer import CountdownTimer
from school_quiz.core.services.quiz_loader import LoadedQuiz

logger = logging.getLogger(__name__)


class QuizSession:
    """State machine tracking progress through a shuffled question sequence.

    ``on_timeout`` is invoked with the session when the countdown reaches
    zero while the quiz is still in progress. It is expected to finish the
    session through the same path as a manual submit. Without it the session
    simply moves to finished with reason ``timeout``.
    """

    def __init__(
        self,
        student_id: str,
        loaded: LoadedQuiz,
        on_timeout: Callable[["QuizSession"], None] | None = None,
    ) -> None:
        self._student_id = student_id
        self._quiz = loaded.quiz
        self._eligible = loaded.eligible
        self._existing_result = loaded.existing_result
        self._state = SessionState.NOT_STARTED
        self._current_index: int = 0
        self._statuses: list[QuestionStatus] = [QuestionStatus() for _ in self._quiz.questions]
        self._timer = CountdownTimer(loaded.duration_seconds, on_expire=self._handle_expiry)
        self._on_timeout = on_timeout
        self._finish_reason: FinishReason | None = None
        self._outcome: SessionOutcome | None = None
        self._message: str | None = None if self._eligible else ALREADY_ATTEMPTED_MESSAGE

    # --- Lifecycle ---

    @property
    def student_id(self) -> str:
        return self._student_id

    @property
    def quiz(self) -> Quiz:
        return self._quiz

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def message(self) -> str | None:
        return self._message

    @property
    def timer(self) -> CountdownTimer:
        return self._timer

    def is_eligible(self) -> bool:
        return self._eligible

    def is_in_progress(self) -> bool:
        return self._state is SessionState.IN_PROGRESS

    def is_finished(self) -> bool:
        return self._state is SessionState.FINISHED

    def start(self) -> bool:
        """Enter the in-progress state. Returns False when the student is ineligible."""
        if self._state is SessionState.FINISHED:
            raise SessionStateError("This quiz session has already finished.")
        if self._state is SessionState.IN_PROGRESS:
            return True
        if not self._eligible:
            self._message = ALREADY_ATTEMPTED_MESSAGE
            return False
        self._state = SessionState.IN_PROGRESS
        self._message = None
        self._timer.start()
        logger.info("Student %s started quiz %s", self._student_id, self._quiz.id)
        return True

    def mark_finished(self, reason: FinishReason) -> bool:
        """Move to the finished state once. Returns False if that cannot happen."""
        if self._state is not SessionState.IN_PROGRESS:
            return False
        self._state = SessionState.FINISHED
        self._finish_reason = reason
        self._timer.stop()
        logger.info(
            "Student %s finished quiz %s (%s)", self._student_id, self._quiz.id, reason.value
        )
        return True

    def get_finish_reason(self) -> FinishReason | None:
        return self._finish_reason

    def get_outcome(self) -> SessionOutcome | None:
        return self._outcome

    def set_outcome(self, outcome: SessionOutcome) -> None:
        if self._state is not SessionState.FINISHED:
            raise SessionStateError("An outcome can only be attached to a finished session.")
        self._outcome = outcome
        if outcome.warning:
            self._message = outcome.warning

    def tick(self) -> None:
        if self._state is SessionState.IN_PROGRESS:
            self._timer.tick()

    def abandon(self) -> None:
        """Stop the clock without recording anything."""
        self._timer.stop()

    def _handle_expiry(self) -> None:
        if self._state is not SessionState.IN_PROGRESS:
            return
        if self._on_timeout is None:
            self.mark_finished(FinishReason.TIMEOUT)
        else:
            self._on_timeout(self)

    # --- Answers ---

    def select_option(self, question_index: int, option_index: int) -> None:
        self._require_in_progress()
        self._check_question_index(question_index)
        if not 0 <= option_index < OPTIONS_PER_QUESTION:
            raise ValueError("Option index must be between 0 and 3.")
        self._statuses[question_index] = QuestionStatus(
            status=AnswerStatus.ANSWERED, selected_option=option_index
        )

    def skip(self) -> None:
        self._require_in_progress()
        current = self._statuses[self._current_index]
        if current.status is AnswerStatus.UNANSWERED:
            self._statuses[self._current_index] = QuestionStatus(status=AnswerStatus.SKIPPED)
        self._advance()

    # --- Navigation ---

    def go_to(self, question_index: int) -> None:
        self._require_in_progress()
        self._check_question_index(question_index)
        self._current_index = question_index

    def next(self) -> None:
        self._require_in_progress()
        self._advance()

    def previous(self) -> None:
        self._require_in_progress()
        self._current_index = max(0, self._current_index - 1)

    def _advance(self) -> None:
        if self._current_index < len(self._statuses) - 1:
            self._current_index += 1

    # --- Observable state ---

    def get_current_index(self) -> int:
        return self._current_index

    def get_current_question(self) -> Question:
        return self._quiz.questions[self._current_index]

    def get_question_count(self) -> int:
        return len(self._statuses)

    def get_status(self, question_index: int) -> QuestionStatus:
        self._check_question_index(question_index)
        status = self._statuses[question_index]
        return QuestionStatus(status=status.status, selected_option=status.selected_option)

    def get_statuses(self) -> list[QuestionStatus]:
        return [
            QuestionStatus(status=status.status, selected_option=status.selected_option)
            for status in self._statuses
        ]

    def get_remaining_seconds(self) -> int:
        return self._timer.remaining_seconds

    def snapshot(self) -> dict[str, object]:
        """Plain data view for rendering; never includes correct answers."""
        question = self.get_current_question()
        outcome = self._outcome
        existing = self._existing_result
        return {
            "quiz_id": self._quiz.id,
            "title": self._quiz.title,
            "subject_type": self._quiz.subject.type.value,
            "subject_name": self._quiz.subject.name,
            "state": self._state.value,
            "eligible": self._eligible,
            "message": self._message,
            "current_index": self._current_index,
            "question_count": len(self._statuses),
            "question_text": question.question_text,
            "options": list(question.options),
            "statuses": [
                {"status": status.status.value, "selected_option": status.selected_option}
                for status in self._statuses
            ],
            "remaining_seconds": self._timer.remaining_seconds,
            "remaining_display": self._timer.format_remaining(),
            "previous_score": existing.score if existing is not None else None,
            "outcome": None
            if outcome is None
            else {
                "score": outcome.score,
                "correct_questions": outcome.correct_questions,
                "total_questions": outcome.total_questions,
                "reason": outcome.reason.value,
                "persisted": outcome.persisted,
                "warning": outcome.warning,
            },
        }

    def _require_in_progress(self) -> None:
        if self._state is not SessionState.IN_PROGRESS:
            raise SessionStateError(
                f"Quiz is not in progress (current state: {self._state.value})."
            )

    def _check_question_index(self, question_index: int) -> None:
        if not 0 <= question_index < len(self._statuses):
            raise IndexError(f"Question index {question_index} out of range")
