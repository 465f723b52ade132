"""Business logic for managing quiz sessions shared between the API and the clock."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime
import logging
import random
from threading import Lock

from school_quiz.core.config import AppSettings
from school_quiz.core.document_store import DocumentStore
from school_quiz.core.errors import SessionNotFound, SessionStateError
from school_quiz.core.models import FinishReason, SessionOutcome
from school_quiz.core.services.countdown_timer import SessionTicker
from school_quiz.core.services.performance_report import (
    PerformanceReport,
    build_performance_report,
)
from school_quiz.core.services.quiz_catalog import CatalogEntry, QuizCatalog
from school_quiz.core.services.quiz_gateway import QuizGateway
from school_quiz.core.services.quiz_loader import QuestionSetLoader
from school_quiz.core.services.quiz_session import QuizSession
from school_quiz.core.services.result_recorder import ResultRecorder

logger = logging.getLogger(__name__)


class QuizManager:
    """Facade over the loader, sessions, recorder and catalog.

    Holds at most one session per student. Every public call runs under a
    single lock, including ticks from the background clock, so a timer
    expiry and a manual submit are never processed at the same time.
    """

    def __init__(
        self,
        settings: AppSettings,
        gateway: QuizGateway,
        *,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] | None = None,
        auto_tick: bool = True,
    ) -> None:
        self._lock = Lock()
        self._settings = settings
        self._gateway = gateway
        self._auto_tick = auto_tick

        # Services
        self._loader = QuestionSetLoader(gateway, settings, rng=rng)
        self._recorder = ResultRecorder(gateway) if clock is None else ResultRecorder(gateway, clock)
        self._catalog = QuizCatalog(gateway, settings)

        self._sessions: dict[str, QuizSession] = {}
        self._tickers: dict[str, SessionTicker] = {}

    @classmethod
    def in_memory(cls, settings: AppSettings | None = None, **kwargs) -> "QuizManager":
        """Build a manager backed by a fresh in-memory document store."""
        settings = settings or AppSettings()
        return cls(settings, QuizGateway(DocumentStore(), settings), **kwargs)

    @property
    def gateway(self) -> QuizGateway:
        return self._gateway

    # --- Session lifecycle ---

    def open_session(self, student_id: str, quiz_id: str) -> dict[str, object]:
        """Load a quiz for the student, replacing any session they had open."""
        with self._lock:
            loaded = self._loader.load(quiz_id, student_id)
            self._discard_session(student_id)
            session = QuizSession(student_id, loaded, on_timeout=self._handle_timeout)
            self._sessions[student_id] = session
            logger.info(
                "Opened quiz %s for student %s (eligible=%s)",
                quiz_id,
                student_id,
                loaded.eligible,
            )
            return session.snapshot()

    def start_session(self, student_id: str) -> bool:
        with self._lock:
            session = self._get_session(student_id)
            started = session.start()
            if started and self._auto_tick and student_id not in self._tickers:
                ticker = SessionTicker(
                    on_tick=lambda: self._tick_if_current(student_id, session),
                    interval_seconds=self._settings.tick_interval_seconds,
                    name=f"QuizTicker-{student_id}",
                )
                self._tickers[student_id] = ticker
                ticker.start()
            return started

    def submit(self, student_id: str) -> SessionOutcome:
        with self._lock:
            session = self._get_session(student_id)
            outcome = self._recorder.finalize(session, FinishReason.MANUAL)
            if outcome is None:
                raise SessionStateError("Start the quiz before submitting it.")
            self._stop_ticker(student_id)
            return outcome

    def tick(self, student_id: str) -> bool:
        """Advance the student's clock by one second. Returns False once it stops."""
        with self._lock:
            return self._tick_session(student_id)

    def _tick_if_current(self, student_id: str, session: QuizSession) -> bool:
        with self._lock:
            if self._sessions.get(student_id) is not session:
                return False
            return self._tick_session(student_id)

    def abandon_session(self, student_id: str) -> None:
        with self._lock:
            self._discard_session(student_id)

    def get_snapshot(self, student_id: str) -> dict[str, object]:
        with self._lock:
            return self._get_session(student_id).snapshot()

    def has_session(self, student_id: str) -> bool:
        with self._lock:
            return student_id in self._sessions

    # --- Answers & navigation ---

    def select_option(
        self, student_id: str, question_index: int, option_index: int
    ) -> dict[str, object]:
        with self._lock:
            session = self._get_session(student_id)
            session.select_option(question_index, option_index)
            return session.snapshot()

    def skip_question(self, student_id: str) -> dict[str, object]:
        with self._lock:
            session = self._get_session(student_id)
            session.skip()
            return session.snapshot()

    def go_to_question(self, student_id: str, question_index: int) -> dict[str, object]:
        with self._lock:
            session = self._get_session(student_id)
            session.go_to(question_index)
            return session.snapshot()

    def next_question(self, student_id: str) -> dict[str, object]:
        with self._lock:
            session = self._get_session(student_id)
            session.next()
            return session.snapshot()

    def previous_question(self, student_id: str) -> dict[str, object]:
        with self._lock:
            session = self._get_session(student_id)
            session.previous()
            return session.snapshot()

    # --- Catalog & results ---

    def list_quizzes(
        self, student_id: str, subjects: Iterable[str] | None = None
    ) -> list[CatalogEntry]:
        return self._catalog.list_for_student(student_id, subjects)

    def get_performance_report(self, student_id: str) -> PerformanceReport:
        return build_performance_report(self._gateway.list_results(student_id))

    # --- Internals (call with the lock held) ---

    def _handle_timeout(self, session: QuizSession) -> None:
        logger.info("Time is up for student %s on quiz %s", session.student_id, session.quiz.id)
        self._recorder.finalize(session, FinishReason.TIMEOUT)

    def _tick_session(self, student_id: str) -> bool:
        session = self._sessions.get(student_id)
        if session is None or not session.is_in_progress():
            return False
        session.tick()
        if session.is_in_progress():
            return True
        self._tickers.pop(student_id, None)
        return False

    def _get_session(self, student_id: str) -> QuizSession:
        session = self._sessions.get(student_id)
        if session is None:
            raise SessionNotFound(f"No quiz session is open for student {student_id}.")
        return session

    def _discard_session(self, student_id: str) -> None:
        session = self._sessions.pop(student_id, None)
        self._stop_ticker(student_id)
        if session is not None:
            session.abandon()
            if session.is_in_progress():
                logger.info(
                    "Student %s abandoned quiz %s without submitting",
                    student_id,
                    session.quiz.id,
                )

    def _stop_ticker(self, student_id: str) -> None:
        ticker = self._tickers.pop(student_id, None)
        if ticker is not None:
            ticker.stop()
