"""
api/sample_tests.py — in-memory backend used when no BACKEND_URL is set

Serves a bundled sample test, keeps saved progress per test and grades
submissions with the answer key that never leaves this module.
"""

import asyncio
import logging

from lms_exam.errors import ErrorKind, ProviderError
from lms_exam.models.question_model import AnswerMap, Question, SubmissionResult, Test
from lms_exam.services.exam_service import (
    calculate_score, count_correct, get_grade, is_passed
)

logger = logging.getLogger(__name__)

_SAMPLE_ITEMS = [
    ("1", "What is 7 x 8?", ["54", "56", "58", "64"], "56"),
    ("2", "Which gas do plants absorb from the atmosphere?",
     ["Oxygen", "Nitrogen", "Carbon dioxide", "Hydrogen"], "Carbon dioxide"),
    ("3", "What is the boiling point of water at sea level?",
     ["90 °C", "100 °C", "110 °C", "120 °C"], "100 °C"),
    ("4", "Which planet is known as the Red Planet?",
     ["Venus", "Jupiter", "Mars", "Mercury"], "Mars"),
    ("5", "What is the square root of 144?", ["10", "11", "12", "14"], "12"),
]

SAMPLE_TEST = Test(
    id="sample",
    title="Sample Practice Test",
    subject="General Science & Maths",
    duration=10,
    questions=[Question(id=qid, text=text, options=options) for qid, text, options, _ in _SAMPLE_ITEMS],
)
SAMPLE_ANSWER_KEY: dict[str, str] = {qid: answer for qid, _, _, answer in _SAMPLE_ITEMS}


class SampleBackend:
    """TestContentProvider + ProgressSink backed by dictionaries."""

    def __init__(
        self,
        tests: list[Test] | None = None,
        answer_keys: dict[str, dict[str, str]] | None = None,
    ):
        if tests is None:
            tests = [SAMPLE_TEST]
            answer_keys = {SAMPLE_TEST.id: SAMPLE_ANSWER_KEY}
        self._tests: dict[str, Test] = {t.id: t for t in tests}
        self._answer_keys: dict[str, dict[str, str]] = answer_keys or {}
        self._saved: dict[str, AnswerMap] = {}
        self.submissions: dict[str, AnswerMap] = {}

    def available_tests(self) -> list[Test]:
        return list(self._tests.values())

    def _get(self, test_id: str) -> Test:
        test = self._tests.get(str(test_id))
        if test is None:
            raise ProviderError(ErrorKind.NOT_FOUND, f"Test {test_id} not found", status_code=404)
        return test

    async def fetch_test(self, test_id: str) -> Test:
        await asyncio.sleep(0)
        return self._get(test_id)

    async def fetch_saved_answers(self, test_id: str) -> AnswerMap:
        await asyncio.sleep(0)
        self._get(test_id)
        return dict(self._saved.get(str(test_id), {}))

    async def save_progress(self, test_id: str, answers: AnswerMap) -> None:
        await asyncio.sleep(0)
        test = self._get(test_id)
        if str(test_id) in self.submissions:
            raise ProviderError(ErrorKind.SERVER, f"Test {test_id} already submitted", status_code=409)
        self._saved[test.id] = dict(answers)

    async def submit_test(self, test_id: str, answers: AnswerMap) -> SubmissionResult:
        await asyncio.sleep(0)
        test = self._get(test_id)
        if test.id in self.submissions:
            raise ProviderError(ErrorKind.SERVER, f"Test {test_id} already submitted", status_code=409)

        self.submissions[test.id] = dict(answers)
        self._saved.pop(test.id, None)

        key = self._answer_keys.get(test.id, {})
        score = count_correct(key, answers)
        total = len(test.questions)
        percentage = calculate_score(key, answers, total)
        logger.info(f"Graded test {test.id}: {score}/{total} ({percentage}%)")
        return SubmissionResult(
            test_id=test.id,
            score=score,
            total=total,
            percentage=percentage,
            grade=get_grade(percentage),
            passed=is_passed(percentage),
            message="Test submitted successfully!",
        )
