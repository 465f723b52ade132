"""Application entry point for the school quiz server."""

from __future__ import annotations

from school_quiz.core.config import AppSettings
from school_quiz.core.quiz_importer import import_quiz_directory
from school_quiz.core.quiz_manager import QuizManager
from school_quiz.server.api_server import run_api_server
from school_quiz.utils.logging_config import configure_logging


def main() -> None:
    """Initialize logging, seed the quiz store and serve the API."""
    logger = configure_logging()
    settings = AppSettings.from_env()
    logger.info("Starting school quiz server (app id %s)", settings.app_id)

    quiz_manager = QuizManager.in_memory(settings)
    if settings.quiz_directory is not None:
        imported = import_quiz_directory(quiz_manager.gateway, settings.quiz_directory)
        logger.info("Imported %d quizzes from %s", len(imported), settings.quiz_directory)
    else:
        logger.warning("SCHOOL_QUIZ_QUIZ_DIR is not set; the quiz list will be empty.")

    run_api_server(quiz_manager, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
