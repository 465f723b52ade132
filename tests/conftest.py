from __future__ import annotations

from datetime import datetime, timezone
import random

import pytest

from school_quiz.core.config import AppSettings
from school_quiz.core.document_store import DocumentStore
from school_quiz.core.quiz_manager import QuizManager
from school_quiz.core.services.quiz_gateway import QuizGateway
from school_quiz.core.services.quiz_loader import QuestionSetLoader

FIXED_NOW = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)


class NoShuffle(random.Random):
    """Random source that keeps questions in their authored order."""

    def randint(self, a: int, b: int) -> int:
        return b


def algebra_document(duration: object = 300) -> dict[str, object]:
    return {
        "title": "Algebra Basics",
        "subjectType": "core",
        "subjectName": "Mathematics",
        "duration": duration,
        "questions": [
            {"questionText": "2 + 2 = ?", "options": ["3", "4", "5", "22"], "correctAnswerIndex": 1},
            {"questionText": "x + 3 = 7", "options": ["3", "10", "4", "7"], "correctAnswerIndex": 2},
            {"questionText": "3 * 5 = ?", "options": ["15", "8", "35", "53"], "correctAnswerIndex": 0},
            {"questionText": "2x = ?", "options": ["x^2", "x + 2", "x / 2", "x + x"], "correctAnswerIndex": 3},
        ],
    }


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(app_id="test-app")


@pytest.fixture
def store() -> DocumentStore:
    return DocumentStore()


@pytest.fixture
def gateway(store: DocumentStore, settings: AppSettings) -> QuizGateway:
    gateway = QuizGateway(store, settings)
    gateway.put_quiz("algebra", algebra_document())
    return gateway


@pytest.fixture
def loader(gateway: QuizGateway, settings: AppSettings) -> QuestionSetLoader:
    return QuestionSetLoader(gateway, settings, rng=NoShuffle())


@pytest.fixture
def manager(gateway: QuizGateway, settings: AppSettings) -> QuizManager:
    return QuizManager(
        settings,
        gateway,
        rng=NoShuffle(),
        clock=lambda: FIXED_NOW,
        auto_tick=False,
    )
