from __future__ import annotations

from collections import Counter
import random

import pytest

from conftest import FIXED_NOW, algebra_document
from school_quiz.core.document_store import DocumentStore
from school_quiz.core.errors import DataUnavailable, MalformedQuiz, QuizNotFound, StoreError
from school_quiz.core.models import Result, SubjectType
from school_quiz.core.services.quiz_gateway import QuizGateway
from school_quiz.core.services.quiz_loader import (
    QuestionSetLoader,
    parse_quiz_document,
    shuffle_questions,
)


def _result(student_id: str = "student-1", quiz_id: str = "algebra") -> Result:
    return Result(
        student_id=student_id,
        quiz_id=quiz_id,
        quiz_title="Algebra Basics",
        score=50.0,
        total_questions=4,
        correct_questions=2,
        subject_type="core",
        subject_name="Mathematics",
        created_at=FIXED_NOW,
    )


def test_load_returns_eligible_quiz_with_all_questions(loader):
    loaded = loader.load("algebra", "student-1")

    assert loaded.eligible
    assert loaded.existing_result is None
    assert loaded.duration_seconds == 300
    assert loaded.quiz.title == "Algebra Basics"
    assert loaded.quiz.subject.type is SubjectType.CORE
    assert loaded.quiz.question_count == 4


def test_missing_quiz_raises_not_found(loader):
    with pytest.raises(QuizNotFound):
        loader.load("does-not-exist", "student-1")


def test_blank_identifiers_are_rejected(loader):
    with pytest.raises(ValueError):
        loader.load("", "student-1")
    with pytest.raises(ValueError):
        loader.load("algebra", "  ")


def test_existing_result_marks_student_ineligible(gateway, loader):
    gateway.save_result(_result())

    loaded = loader.load("algebra", "student-1")

    assert not loaded.eligible
    assert loaded.existing_result is not None
    assert loaded.existing_result.score == 50.0
    # Another student is unaffected.
    assert loader.load("algebra", "student-2").eligible


@pytest.mark.parametrize("duration", [None, 0, -30])
def test_duration_falls_back_to_default(gateway, settings, duration):
    document = algebra_document(duration=duration)
    if duration is None:
        del document["duration"]
    gateway.put_quiz("fallback", document)

    loaded = QuestionSetLoader(gateway, settings).load("fallback", "student-1")

    assert loaded.duration_seconds == settings.default_duration_seconds == 300


def test_store_failure_is_reported_as_data_unavailable(settings):
    class BrokenStore(DocumentStore):
        def get(self, collection, doc_id):
            raise StoreError("connection reset")

    loader = QuestionSetLoader(QuizGateway(BrokenStore(), settings), settings)

    with pytest.raises(DataUnavailable):
        loader.load("algebra", "student-1")


def test_canonical_quiz_document_is_not_mutated(gateway, settings):
    loader = QuestionSetLoader(gateway, settings, rng=random.Random(7))
    before = gateway.get_quiz("algebra")

    loader.load("algebra", "student-1")

    assert gateway.get_quiz("algebra") == before


def test_shuffle_is_a_permutation_and_varies():
    questions = parse_quiz_document("algebra", algebra_document()).questions
    rng = random.Random(1234)
    orders = set()
    for _ in range(200):
        shuffled = shuffle_questions(questions, rng)
        assert Counter(shuffled) == Counter(questions)
        orders.add(tuple(q.question_text for q in shuffled))

    assert len(orders) > 1


def test_shuffle_covers_every_permutation_of_three():
    questions = parse_quiz_document("algebra", algebra_document()).questions[:3]
    rng = random.Random(99)
    counts = Counter(
        tuple(q.question_text for q in shuffle_questions(questions, rng)) for _ in range(6000)
    )

    assert len(counts) == 6
    # Each of the six orders should appear close to 1000 times.
    assert all(800 < count < 1200 for count in counts.values())


@pytest.mark.parametrize(
    "mutate, message",
    [
        (lambda d: d["questions"][0]["options"].pop(), "exactly four options"),
        (lambda d: d["questions"][1].pop("correctAnswerIndex"), "correct answer index"),
        (lambda d: d["questions"][2].update(correctAnswerIndex=4), "between 0 and 3"),
        (lambda d: d.update(questions=[]), "at least one question"),
        (lambda d: d.update(subjectType="optional"), "Unknown subject type"),
        (lambda d: d.update(title="   "), "Quiz title"),
        (lambda d: d.update(duration="five minutes"), "whole number"),
        (lambda d: d["questions"][3].update(questionText=""), "Question 4 text"),
    ],
)
def test_malformed_documents_are_rejected(mutate, message):
    document = algebra_document()
    mutate(document)

    with pytest.raises(MalformedQuiz, match=message):
        parse_quiz_document("broken", document)


def test_malformed_quiz_blocks_loading(gateway, loader):
    document = algebra_document()
    document["questions"][0]["options"] = ["only", "three", "options"]
    gateway.put_quiz("broken", document)

    with pytest.raises(MalformedQuiz):
        loader.load("broken", "student-1")
