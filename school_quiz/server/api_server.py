"""FastAPI server that exposes the quiz-taking endpoints to students."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from pydantic import BaseModel
import uvicorn

from school_quiz.constants.network_constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    STUDENT_ID_HEADER,
)
from school_quiz.core.errors import (
    DataUnavailable,
    MalformedQuiz,
    QuizNotFound,
    SessionNotFound,
    SessionStateError,
)
from school_quiz.core.markdown_renderer import renderer
from school_quiz.core.models import Result, SessionOutcome
from school_quiz.core.quiz_manager import QuizManager


class AnswerPayload(BaseModel):
    """Payload schema for selecting an option."""

    question_index: int
    option_index: int


class GoToPayload(BaseModel):
    """Payload schema for jumping to a question."""

    question_index: int


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def _require_student_id(
    student_id: str | None = Header(default=None, alias=STUDENT_ID_HEADER),
) -> str:
    if student_id is None or not student_id.strip():
        raise HTTPException(status_code=401, detail="Please log in to take quizzes.")
    return student_id.strip()


@contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except QuizNotFound as exc:
        raise HTTPException(status_code=404, detail="Quiz not found.") from exc
    except MalformedQuiz as exc:
        raise HTTPException(status_code=422, detail=f"This quiz is not set up correctly: {exc}") from exc
    except DataUnavailable as exc:
        raise HTTPException(status_code=503, detail=f"{exc} Please try again.") from exc
    except SessionNotFound as exc:
        raise HTTPException(status_code=404, detail="Open a quiz first.") from exc
    except SessionStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except (IndexError, ValueError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


def _render_snapshot(snapshot: dict[str, object]) -> dict[str, object]:
    rendered = dict(snapshot)
    rendered["question_html"] = renderer.render_fragment(str(snapshot["question_text"]))
    rendered["options_html"] = [renderer.render_inline(str(option)) for option in snapshot["options"]]
    return rendered


def _outcome_payload(outcome: SessionOutcome) -> dict[str, object]:
    return {
        "score": round(outcome.score, 2),
        "correct_questions": outcome.correct_questions,
        "total_questions": outcome.total_questions,
        "reason": outcome.reason.value,
        "persisted": outcome.persisted,
        "warning": outcome.warning,
    }


def _result_payload(result: Result) -> dict[str, object]:
    return {
        "id": result.id,
        "quiz_id": result.quiz_id,
        "quiz_title": result.quiz_title,
        "score": round(result.score, 2),
        "total_questions": result.total_questions,
        "correct_questions": result.correct_questions,
        "created_at": result.created_at.isoformat(),
    }


def create_api_app(quiz_manager: QuizManager) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""
    app = FastAPI(title="School Quiz API", version="0.1.0")
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/quizzes")
    def list_quizzes(
        subject: list[str] | None = Query(default=None),
        student_id: str = Depends(_require_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        with _translate_errors():
            entries = manager.list_quizzes(student_id, subject)
        return [
            {
                "quiz_id": entry.quiz_id,
                "title": entry.title,
                "subject_type": entry.subject_type,
                "subject_name": entry.subject_name,
                "question_count": entry.question_count,
                "duration_seconds": entry.duration_seconds,
                "attempted": entry.attempted,
                "score": entry.score,
            }
            for entry in entries
        ]

    @app.post("/quizzes/{quiz_id}/session", status_code=201)
    def open_session(
        quiz_id: str,
        student_id: str = Depends(_require_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            snapshot = manager.open_session(student_id, quiz_id)
        return _render_snapshot(snapshot)

    @app.get("/session")
    def get_session(
        student_id: str = Depends(_require_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            snapshot = manager.get_snapshot(student_id)
        return _render_snapshot(snapshot)

    @app.delete("/session", status_code=204)
    def abandon_session(
        student_id: str = Depends(_require_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> None:
        manager.abandon_session(student_id)

    @app.post("/session/start")
    def start_session(
        student_id: str = Depends(_require_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            started = manager.start_session(student_id)
            snapshot = manager.get_snapshot(student_id)
        if not started:
            raise HTTPException(status_code=409, detail=snapshot["message"])
        return _render_snapshot(snapshot)

    @app.post("/session/answer")
    def select_option(
        payload: AnswerPayload,
        student_id: str = Depends(_require_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            snapshot = manager.select_option(
                student_id, payload.question_index, payload.option_index
            )
        return _render_snapshot(snapshot)

    @app.post("/session/skip")
    def skip_question(
        student_id: str = Depends(_require_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            snapshot = manager.skip_question(student_id)
        return _render_snapshot(snapshot)

    @app.post("/session/next")
    def next_question(
        student_id: str = Depends(_require_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            snapshot = manager.next_question(student_id)
        return _render_snapshot(snapshot)

    @app.post("/session/previous")
    def previous_question(
        student_id: str = Depends(_require_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            snapshot = manager.previous_question(student_id)
        return _render_snapshot(snapshot)

    @app.post("/session/goto")
    def go_to_question(
        payload: GoToPayload,
        student_id: str = Depends(_require_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            snapshot = manager.go_to_question(student_id, payload.question_index)
        return _render_snapshot(snapshot)

    @app.post("/session/submit")
    def submit(
        student_id: str = Depends(_require_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            outcome = manager.submit(student_id)
        return _outcome_payload(outcome)

    @app.get("/results")
    def get_results(
        student_id: str = Depends(_require_student_id),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            report = manager.get_performance_report(student_id)
        return {
            "quizzes_taken": report.quizzes_taken,
            "overall_average": round(report.overall_average, 2),
            "overall_grade": report.overall_grade,
            "subjects": [
                {
                    "subject_type": subject.subject_type,
                    "subject_name": subject.subject_name,
                    "quizzes_taken": subject.quizzes_taken,
                    "average_score": round(subject.average_score, 2),
                    "grade": subject.grade,
                    "results": [_result_payload(result) for result in subject.results],
                }
                for subject in report.subjects
            ],
        }

    return app


def run_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Serve the API in the foreground until interrupted."""
    app = create_api_app(quiz_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)
    server.run()
