import math
from datetime import datetime


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (2/3 -> 67, 12.5 -> 13)."""
    return int(math.floor(value + 0.5))


def score_percentage(total_correct: int, total_questions: int) -> int:
    if total_questions <= 0:
        return 0
    return round_half_up(total_correct / total_questions * 100)


def elapsed_minutes(started_at: datetime, finished_at: datetime) -> int:
    return round_half_up((finished_at - started_at).total_seconds() / 60)
