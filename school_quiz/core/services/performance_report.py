"""Service summarising a student's results per subject."""

from __future__ import annotations

from dataclasses import dataclass, field

from school_quiz.constants.quiz_constants import FAILING_GRADE, GRADE_BANDS
from school_quiz.core.models import Result, SubjectType


def grade_for_score(score: float) -> str:
    for lower_bound, grade in GRADE_BANDS:
        if score >= lower_bound:
            return grade
    return FAILING_GRADE


@dataclass(slots=True)
class SubjectEntry:
    """Mutable per-subject accumulator used internally."""

    subject_type: str
    subject_name: str
    results: list[Result] = field(default_factory=list)
    total_score: float = 0.0


@dataclass(slots=True)
class SubjectPerformance:
    """Immutable snapshot returned to consumers."""

    subject_type: str
    subject_name: str
    quizzes_taken: int
    average_score: float
    grade: str
    results: list[Result]


@dataclass(slots=True)
class PerformanceReport:
    subjects: list[SubjectPerformance]
    quizzes_taken: int
    overall_average: float
    overall_grade: str


def build_performance_report(results: list[Result]) -> PerformanceReport:
    """Group results by subject; core subjects first, then by name."""
    entries: dict[tuple[str, str], SubjectEntry] = {}
    for result in sorted(results, key=lambda r: r.created_at):
        key = (result.subject_type, result.subject_name)
        entry = entries.get(key)
        if entry is None:
            entry = SubjectEntry(subject_type=result.subject_type, subject_name=result.subject_name)
            entries[key] = entry
        entry.results.append(result)
        entry.total_score += result.score

    sorted_entries = sorted(
        entries.values(),
        key=lambda e: (e.subject_type != SubjectType.CORE.value, e.subject_name.lower()),
    )
    subjects = []
    for entry in sorted_entries:
        average = entry.total_score / len(entry.results)
        subjects.append(
            SubjectPerformance(
                subject_type=entry.subject_type,
                subject_name=entry.subject_name,
                quizzes_taken=len(entry.results),
                average_score=average,
                grade=grade_for_score(average),
                results=list(entry.results),
            )
        )

    total = len(results)
    overall = sum(r.score for r in results) / total if total else 0.0
    return PerformanceReport(
        subjects=subjects,
        quizzes_taken=total,
        overall_average=overall,
        overall_grade=grade_for_score(overall),
    )
