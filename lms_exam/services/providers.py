"""
services/providers.py

Interfaces TestSession consumes. Implementations live in api/backend.py
(REST) and api/sample_tests.py (in-memory).
All methods raise ProviderError on failure.
"""

from typing import Protocol

from lms_exam.models.question_model import AnswerMap, SubmissionResult, Test


class TestContentProvider(Protocol):

    async def fetch_test(self, test_id: str) -> Test:
        ...

    async def fetch_saved_answers(self, test_id: str) -> AnswerMap:
        ...


class ProgressSink(Protocol):

    async def save_progress(self, test_id: str, answers: AnswerMap) -> None:
        ...

    async def submit_test(self, test_id: str, answers: AnswerMap) -> SubmissionResult:
        ...
