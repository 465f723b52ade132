from __future__ import annotations

import time

import pytest

from conftest import algebra_document
from school_quiz.core.config import AppSettings
from school_quiz.core.errors import QuizNotFound, SessionNotFound, SessionStateError
from school_quiz.core.quiz_manager import QuizManager


def test_full_quiz_flow(manager, settings):
    snapshot = manager.open_session("student-1", "algebra")
    assert snapshot["state"] == "not_started"
    assert snapshot["eligible"]
    assert snapshot["question_count"] == 4

    assert manager.start_session("student-1")
    manager.select_option("student-1", 0, 1)
    manager.next_question("student-1")
    manager.select_option("student-1", 1, 0)
    manager.skip_question("student-1")
    snapshot = manager.skip_question("student-1")
    assert snapshot["current_index"] == 3
    assert [s["status"] for s in snapshot["statuses"]] == [
        "answered",
        "answered",
        "skipped",
        "unanswered",
    ]

    outcome = manager.submit("student-1")

    assert outcome.score == 25.0
    assert outcome.persisted
    assert manager.get_snapshot("student-1")["state"] == "finished"
    assert len(manager.gateway.list_results("student-1")) == 1


def test_second_attempt_is_refused(manager):
    manager.open_session("student-1", "algebra")
    manager.start_session("student-1")
    manager.submit("student-1")

    snapshot = manager.open_session("student-1", "algebra")

    assert not snapshot["eligible"]
    assert snapshot["previous_score"] == 0.0
    assert manager.start_session("student-1") is False
    assert manager.get_snapshot("student-1")["state"] == "not_started"


def test_submit_before_start_is_rejected(manager):
    manager.open_session("student-1", "algebra")

    with pytest.raises(SessionStateError):
        manager.submit("student-1")


def test_double_submit_records_one_result(manager):
    manager.open_session("student-1", "algebra")
    manager.start_session("student-1")

    first = manager.submit("student-1")
    second = manager.submit("student-1")

    assert first is second
    assert len(manager.gateway.list_results("student-1")) == 1


def test_timer_expiry_auto_submits(manager):
    manager.gateway.put_quiz("short", algebra_document(duration=2))
    manager.open_session("student-1", "short")
    manager.start_session("student-1")
    manager.select_option("student-1", 0, 1)

    assert manager.tick("student-1") is True
    assert manager.tick("student-1") is False

    snapshot = manager.get_snapshot("student-1")
    assert snapshot["state"] == "finished"
    assert snapshot["outcome"]["reason"] == "timeout"
    assert snapshot["outcome"]["score"] == 25.0
    # The manual path after expiry returns the same outcome.
    assert manager.submit("student-1").reason.value == "timeout"
    assert len(manager.gateway.list_results("student-1")) == 1


def test_abandoning_discards_progress(manager):
    manager.open_session("student-1", "algebra")
    manager.start_session("student-1")
    manager.select_option("student-1", 0, 1)

    manager.abandon_session("student-1")

    assert not manager.has_session("student-1")
    assert manager.gateway.list_results("student-1") == []
    with pytest.raises(SessionNotFound):
        manager.get_snapshot("student-1")
    # A reload grants a fresh countdown and fresh statuses.
    snapshot = manager.open_session("student-1", "algebra")
    assert snapshot["remaining_seconds"] == 300
    assert snapshot["statuses"][0]["status"] == "unanswered"


def test_sessions_are_per_student(manager):
    manager.open_session("student-1", "algebra")
    manager.open_session("student-2", "algebra")
    manager.start_session("student-1")

    manager.select_option("student-1", 0, 1)

    assert manager.get_snapshot("student-2")["state"] == "not_started"


def test_unknown_quiz_leaves_existing_session(manager):
    manager.open_session("student-1", "algebra")

    with pytest.raises(QuizNotFound):
        manager.open_session("student-1", "missing")

    assert manager.has_session("student-1")


def test_ticker_runs_in_background(gateway, settings):
    fast = AppSettings(app_id=settings.app_id, tick_interval_seconds=0.01)
    gateway.put_quiz("short", algebra_document(duration=3))
    manager = QuizManager(fast, gateway)
    manager.open_session("student-1", "short")
    manager.start_session("student-1")

    deadline = time.monotonic() + 5
    while manager.get_snapshot("student-1")["state"] != "finished" and time.monotonic() < deadline:
        time.sleep(0.01)

    assert manager.get_snapshot("student-1")["outcome"]["reason"] == "timeout"
    assert len(gateway.list_results("student-1")) == 1


def test_catalog_and_report(manager):
    manager.gateway.put_quiz(
        "cells",
        {
            "title": "Cell Biology",
            "subjectType": "elective",
            "subjectName": "Biology",
            "duration": 600,
            "questions": algebra_document()["questions"][:2],
        },
    )
    manager.open_session("student-1", "algebra")
    manager.start_session("student-1")
    for index, answer in enumerate([1, 2, 0, 3]):
        manager.select_option("student-1", index, answer)
    manager.submit("student-1")

    entries = manager.list_quizzes("student-1")
    assert [(e.quiz_id, e.attempted, e.score) for e in entries] == [
        ("cells", False, None),
        ("algebra", True, 100.0),
    ]
    assert [e.quiz_id for e in manager.list_quizzes("student-1", ["mathematics"])] == ["algebra"]

    report = manager.get_performance_report("student-1")
    assert report.quizzes_taken == 1
    assert report.overall_grade == "A1"
