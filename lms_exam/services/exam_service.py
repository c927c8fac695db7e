"""
services/exam_service.py

Percentage and grade-bucket mapping for submitted attempts.
Pure Python functions, no UI code and no global state.
"""

from typing import Dict, List, Optional, Tuple

# (lower bound in percent, grade), highest first
GRADE_BUCKETS: List[Tuple[float, str]] = [
    (90.0, "A"),
    (80.0, "B"),
    (70.0, "C"),
    (60.0, "D"),
]
FAILING_GRADE = "F"
PASS_PERCENTAGE = 60.0


def count_correct(answer_key: Dict[str, str], user_answers: Dict[str, str]) -> int:
    """
    Number of questions answered correctly.

    Unanswered questions (missing key) count as wrong.
    Questions with an empty key are not gradable and never count.
    """
    return sum(
        1
        for qid, correct in answer_key.items()
        if correct and user_answers.get(qid) == correct
    )


def calculate_percentage(score: float, total: float) -> float:
    """
    Score as a percentage of total, rounded to two decimals.
    A zero total yields 0.0.
    """
    if not total:
        return 0.0
    return round(score / total * 100, 2)


def calculate_score(
    answer_key: Dict[str, str],
    user_answers: Dict[str, str],
    total: Optional[int] = None,
) -> float:
    """
    Grade an attempt on a 100 point scale.

    Args:
        answer_key:   {question.id: correct option}
        user_answers: {question.id: selected option}
        total:        Question count, when the key does not cover every question.

    Returns:
        0.0 - 100.0, rounded to two decimals. 0.0 for an empty key.
    """
    if total is None:
        total = len(answer_key)
    return calculate_percentage(count_correct(answer_key, user_answers), total)


def get_grade(percentage: float) -> str:
    for lower_bound, grade in GRADE_BUCKETS:
        if percentage >= lower_bound:
            return grade
    return FAILING_GRADE


def is_passed(percentage: float, pass_percentage: float = PASS_PERCENTAGE) -> bool:
    """True when percentage >= pass_percentage (60 by default)."""
    return percentage >= pass_percentage
