"""Quiz-related constants shared by the core and the HTTP shell."""

DEFAULT_DURATION_SECONDS: int = 300
OPTIONS_PER_QUESTION: int = 4
TICK_INTERVAL_SECONDS: float = 1.0
DEFAULT_APP_ID: str = "school-quiz"

ALREADY_ATTEMPTED_MESSAGE: str = (
    "You have already completed this quiz. You can only take each quiz once."
)
RESULT_NOT_SAVED_MESSAGE: str = (
    "Your score is shown below, but it could not be saved. "
    "Please tell your teacher."
)

# Lower bound of each grade band, highest first.
GRADE_BANDS: tuple[tuple[float, str], ...] = (
    (75.0, "A1"),
    (70.0, "B2"),
    (65.0, "B3"),
    (60.0, "C4"),
    (55.0, "C5"),
    (50.0, "C6"),
    (45.0, "D7"),
    (40.0, "E8"),
)
FAILING_GRADE: str = "F9"
