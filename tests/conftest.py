import asyncio
from typing import Dict, List, Optional

import pytest

from lms_exam.errors import ErrorKind, ProviderError
from lms_exam.models import question_model as qm


def make_test(test_id="t1", duration=1, count=2) -> qm.Test:
    return qm.Test(
        id=test_id,
        title="Unit Test",
        subject="Maths",
        duration=duration,
        questions=[
            qm.Question(id=f"q{i}", text=f"Question {i}?", options=["A", "B", "C", "D"])
            for i in range(1, count + 1)
        ],
    )


class FakeBackend:
    """Scriptable TestContentProvider + ProgressSink."""

    def __init__(self, test: Optional[qm.Test] = None, saved: Optional[Dict[str, str]] = None):
        self.test = test if test is not None else make_test()
        self.saved = saved or {}
        self.fail_fetch_test: Optional[ErrorKind] = None
        self.fail_fetch_saved = False
        self.save_failures = 0
        self.submit_failures = 0
        self.hang_fetch_test = False
        # raised once, then cleared
        self.fetch_test_error: Optional[Exception] = None
        self.submit_error: Optional[Exception] = None
        self.save_gate: Optional[asyncio.Event] = None
        self.submit_gate: Optional[asyncio.Event] = None
        self.save_started = asyncio.Event()
        self.submit_started = asyncio.Event()

        self.save_calls: List[Dict[str, str]] = []
        self.submit_calls: List[Dict[str, str]] = []

    async def fetch_test(self, test_id):
        if self.hang_fetch_test:
            await asyncio.Event().wait()
        if self.fail_fetch_test is not None:
            raise ProviderError(self.fail_fetch_test, "fetch failed")
        if self.fetch_test_error is not None:
            error, self.fetch_test_error = self.fetch_test_error, None
            raise error
        return self.test

    async def fetch_saved_answers(self, test_id):
        if self.fail_fetch_saved:
            raise ProviderError(ErrorKind.NETWORK, "saved answers unavailable")
        return dict(self.saved)

    async def save_progress(self, test_id, answers):
        self.save_calls.append(dict(answers))
        self.save_started.set()
        if self.save_gate is not None:
            await self.save_gate.wait()
        if self.save_failures > 0:
            self.save_failures -= 1
            raise ProviderError(ErrorKind.SERVER, "save failed")

    async def submit_test(self, test_id, answers):
        self.submit_calls.append(dict(answers))
        self.submit_started.set()
        if self.submit_gate is not None:
            await self.submit_gate.wait()
        if self.submit_failures > 0:
            self.submit_failures -= 1
            raise ProviderError(ErrorKind.NETWORK, "submit failed")
        if self.submit_error is not None:
            error, self.submit_error = self.submit_error, None
            raise error
        return qm.SubmissionResult(test_id=test_id, message="ok")


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()
