"""Utilities for importing quizzes from a human-friendly text file.

File format: a header block followed by question blocks, separated by blank
lines or '---'. The file name (without extension) becomes the quiz id.

    TITLE: Quiz title
    SUBJECT: core|elective: Subject name
    DURATION: seconds   (optional - the default duration applies otherwise)

    ---

    Q: Question text (supports markdown). Additional lines until the next
       marker are treated as part of the question.
    A: First option text
    B: Second option text
    C: Third option text
    D: Fourth option text
    CORRECT: A|B|C|D

Example:

    TITLE: Algebra Basics
    SUBJECT: core: Mathematics
    DURATION: 300

    Q: What is $2 + 2$?
    A: 3
    B: 4
    C: 5
    D: 22
    CORRECT: B

The importer produces the same document shape the store holds, so imported
quizzes go through the loader's validation like any other stored quiz.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path

from school_quiz.core.document_store import Document
from school_quiz.core.errors import MalformedQuiz, QuizAppError
from school_quiz.core.services.quiz_gateway import QuizGateway
from school_quiz.core.services.quiz_loader import parse_quiz_document

logger = logging.getLogger(__name__)


class QuizImportError(QuizAppError):
    """Raised when a quiz definition cannot be parsed."""


@dataclass(slots=True)
class ImportedQuiz:
    """Container for an imported quiz document."""

    source_path: Path
    quiz_id: str
    document: Document


_OPTION_ORDER = ["A", "B", "C", "D"]
_HEADER_KEYS = ("TITLE", "SUBJECT", "DURATION")
QUIZ_FILE_SUFFIX = ".quiz"


def load_quiz_from_file(file_path: Path) -> ImportedQuiz:
    text = file_path.read_text(encoding="utf-8")
    quiz_id = file_path.stem
    document = parse_quiz_text(text)
    try:
        parse_quiz_document(quiz_id, document)
    except MalformedQuiz as exc:
        raise QuizImportError(str(exc)) from exc
    return ImportedQuiz(source_path=file_path, quiz_id=quiz_id, document=document)


def import_quiz_directory(gateway: QuizGateway, directory: Path) -> list[str]:
    """Store every ``*.quiz`` file in ``directory``; bad files are logged and skipped."""
    imported: list[str] = []
    if not directory.is_dir():
        logger.warning("Quiz directory %s does not exist; nothing imported.", directory)
        return imported
    for file_path in sorted(directory.glob(f"*{QUIZ_FILE_SUFFIX}")):
        try:
            quiz = load_quiz_from_file(file_path)
        except (QuizImportError, OSError) as exc:
            logger.error("Skipping %s: %s", file_path.name, exc)
            continue
        gateway.put_quiz(quiz.quiz_id, quiz.document)
        imported.append(quiz.quiz_id)
        logger.info("Imported quiz %s from %s", quiz.quiz_id, file_path.name)
    return imported


def parse_quiz_text(text: str) -> Document:
    blocks = _split_blocks(text)
    if not blocks:
        raise QuizImportError("Quiz file is empty.")

    document = _parse_header(blocks[0])
    questions = [_parse_block(block) for block in blocks[1:]]
    if not questions:
        raise QuizImportError("Quiz file did not contain any questions.")
    document["questions"] = questions
    return document


def _split_blocks(text: str) -> list[str]:
    """Split on blank lines and '---' separators, dropping empty blocks."""
    blocks: list[str] = []
    pending: list[str] = []
    for raw_line in [*text.splitlines(), ""]:
        line = raw_line.strip()
        if line and line != "---":
            pending.append(line)
            continue
        if pending:
            blocks.append("\n".join(pending))
            pending = []
    return blocks


def _parse_header(block: str) -> Document:
    values: dict[str, str] = {}
    for raw_line in block.splitlines():
        line = raw_line.strip()
        key, sep, value = line.partition(":")
        key = key.strip().upper()
        if not sep or key not in _HEADER_KEYS:
            raise QuizImportError(f"Unexpected line in quiz header: '{line}'.")
        values[key] = value.strip()

    if not values.get("TITLE"):
        raise QuizImportError("Quiz header must include a TITLE.")
    subject_type, sep, subject_name = values.get("SUBJECT", "").partition(":")
    if not sep or not subject_name.strip():
        raise QuizImportError("SUBJECT must look like 'core: Mathematics'.")

    document: Document = {
        "title": values["TITLE"],
        "subjectType": subject_type.strip().lower(),
        "subjectName": subject_name.strip(),
    }
    raw_duration = values.get("DURATION")
    if raw_duration:
        try:
            document["duration"] = int(raw_duration)
        except ValueError as exc:
            raise QuizImportError("DURATION must be an integer number of seconds.") from exc
    return document


def _parse_block(block: str) -> Document:
    # Section name ("Q" or an option letter) -> its lines.
    sections: dict[str, list[str]] = {}
    correct_letter: str | None = None
    section: str | None = None

    for line in block.splitlines():
        marker, sep, rest = line.partition(":")
        marker = marker.strip().upper()
        if sep and marker == "CORRECT":
            correct_letter = rest.strip().upper()
            section = None
        elif sep and (marker == "Q" or marker in _OPTION_ORDER):
            section = marker
            sections[section] = [rest.strip()]
        elif section is not None:
            sections[section].append(line)
        else:
            raise QuizImportError(f"Encountered text outside of a known section: '{line}'.")

    question_lines = sections.pop("Q", None)
    if not question_lines:
        raise QuizImportError("Question text missing (Q: ...)")
    if len(sections) != len(_OPTION_ORDER):
        raise QuizImportError("Each question must define exactly four options (A-D).")
    if correct_letter is None:
        raise QuizImportError("Each question must name its CORRECT option.")
    if correct_letter not in _OPTION_ORDER:
        raise QuizImportError("CORRECT must be one of A, B, C, or D.")

    return {
        "questionText": "\n".join(question_lines).strip(),
        "options": ["\n".join(sections[letter]).strip() for letter in _OPTION_ORDER],
        "correctAnswerIndex": _OPTION_ORDER.index(correct_letter),
    }
