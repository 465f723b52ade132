from __future__ import annotations

from pathlib import Path

import pytest

from school_quiz.core.config import AppSettings


def test_defaults():
    settings = AppSettings.from_env({})

    assert settings.app_id == "school-quiz"
    assert settings.default_duration_seconds == 300
    assert settings.tick_interval_seconds == 1.0
    assert settings.enforce_single_result
    assert settings.port == 8000
    assert settings.quiz_directory is None
    assert settings.quizzes_collection == "artifacts/school-quiz/public/data/quizzes"
    assert settings.results_collection == "artifacts/school-quiz/public/data/results"


def test_environment_overrides():
    settings = AppSettings.from_env(
        {
            "SCHOOL_QUIZ_APP_ID": "greenfield",
            "SCHOOL_QUIZ_DEFAULT_DURATION": "600",
            "SCHOOL_QUIZ_TICK_INTERVAL": "0.5",
            "SCHOOL_QUIZ_ENFORCE_SINGLE_RESULT": "no",
            "SCHOOL_QUIZ_HOST": "127.0.0.1",
            "SCHOOL_QUIZ_PORT": "9000",
            "SCHOOL_QUIZ_QUIZ_DIR": "/srv/quizzes",
        }
    )

    assert settings.app_id == "greenfield"
    assert settings.default_duration_seconds == 600
    assert settings.tick_interval_seconds == 0.5
    assert not settings.enforce_single_result
    assert settings.host == "127.0.0.1"
    assert settings.port == 9000
    assert settings.quiz_directory == Path("/srv/quizzes")
    assert settings.results_collection == "artifacts/greenfield/public/data/results"


def test_blank_values_fall_back_to_defaults():
    settings = AppSettings.from_env({"SCHOOL_QUIZ_APP_ID": "   ", "SCHOOL_QUIZ_PORT": ""})

    assert settings.app_id == "school-quiz"
    assert settings.port == 8000


@pytest.mark.parametrize(
    "kwargs",
    [
        {"app_id": ""},
        {"default_duration_seconds": 0},
        {"tick_interval_seconds": -1.0},
    ],
)
def test_invalid_settings_are_rejected(kwargs):
    with pytest.raises(ValueError):
        AppSettings(**kwargs)
