"""Application settings injected into the store, loader and manager."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from school_quiz.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from school_quiz.constants.quiz_constants import (
    DEFAULT_APP_ID,
    DEFAULT_DURATION_SECONDS,
    TICK_INTERVAL_SECONDS,
)

_ENV_PREFIX = "SCHOOL_QUIZ_"
_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class AppSettings:
    """Configuration values for one running application."""

    app_id: str = DEFAULT_APP_ID
    default_duration_seconds: int = DEFAULT_DURATION_SECONDS
    tick_interval_seconds: float = TICK_INTERVAL_SECONDS
    enforce_single_result: bool = True
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    quiz_directory: Path | None = None

    def __post_init__(self) -> None:
        if not self.app_id.strip():
            raise ValueError("Application id must not be empty.")
        if self.default_duration_seconds <= 0:
            raise ValueError("Default duration must be a positive integer.")
        if self.tick_interval_seconds <= 0:
            raise ValueError("Tick interval must be positive.")

    @property
    def quizzes_collection(self) -> str:
        return f"artifacts/{self.app_id}/public/data/quizzes"

    @property
    def results_collection(self) -> str:
        return f"artifacts/{self.app_id}/public/data/results"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "AppSettings":
        """Build settings from ``SCHOOL_QUIZ_*`` environment variables."""
        env = os.environ if environ is None else environ

        def read(name: str) -> str | None:
            value = env.get(_ENV_PREFIX + name)
            return value.strip() if value and value.strip() else None

        quiz_directory = read("QUIZ_DIR")
        enforce = read("ENFORCE_SINGLE_RESULT")
        return cls(
            app_id=read("APP_ID") or DEFAULT_APP_ID,
            default_duration_seconds=int(read("DEFAULT_DURATION") or DEFAULT_DURATION_SECONDS),
            tick_interval_seconds=float(read("TICK_INTERVAL") or TICK_INTERVAL_SECONDS),
            enforce_single_result=True if enforce is None else enforce.lower() in _TRUE_VALUES,
            host=read("HOST") or DEFAULT_HOST,
            port=int(read("PORT") or DEFAULT_PORT),
            quiz_directory=Path(quiz_directory) if quiz_directory else None,
        )
