"""
services/session_manager.py

One student's attempt at one test.

States:
  LOADING -> ACTIVE -> SUBMITTING -> SUBMITTED
  LOADING -> FAILED
  SUBMITTING -> ACTIVE   (submit failed, user may retry)

While ACTIVE two periodic tasks run on the event loop: the clock (every
second) and autosave (every 30 seconds). Everything is serialized on one
loop, so plain boolean guards are enough to keep at most one save and at
most one submit in flight.
"""

import asyncio
import logging
from typing import Any, Awaitable, Dict, FrozenSet, Optional, Set

from config import (
    API_TIMEOUT,
    AUTOSAVE_INTERVAL_SECONDS,
    TICK_INTERVAL_SECONDS,
)
from lms_exam.errors import ErrorKind, LoadFailure, ProviderError, SaveFailure, SubmitFailure
from lms_exam.models.question_model import AnswerMap, Question, SubmissionResult, Test
from lms_exam.models.session_state import SessionSnapshot, SessionState, SubmitMode
from lms_exam.services.providers import ProgressSink, TestContentProvider
from lms_exam.services.scheduler import PeriodicTask
from lms_exam.views.components import timer

logger = logging.getLogger(__name__)

AUTOSAVE_FAILED_NOTICE = "Autosave failed. Your answers will be saved again shortly."


def _failure_kind(error: Exception) -> ErrorKind:
    if isinstance(error, ProviderError):
        return error.kind
    if isinstance(error, asyncio.TimeoutError):
        return ErrorKind.NETWORK
    return ErrorKind.SERVER


class TestSession:
    """
    Manages the lifecycle of a single test attempt.

    Args:
        test_id:          Test to attempt.
        provider:         Source of the test and previously saved answers.
        sink:             Destination for saved progress and the final submission.
        timeout:          Upper bound for every provider / sink call (seconds).
        tick_interval:    Clock period (seconds).
        autosave_interval: Autosave period (seconds).
        start_timers:     Start the clock and autosave tasks on open(). Off when
                          the caller drives tick() / autosave() itself.
    """

    def __init__(
        self,
        test_id: Any,
        provider: TestContentProvider,
        sink: ProgressSink,
        *,
        timeout: float = API_TIMEOUT,
        tick_interval: float = TICK_INTERVAL_SECONDS,
        autosave_interval: float = AUTOSAVE_INTERVAL_SECONDS,
        start_timers: bool = True,
    ) -> None:
        self.test_id = str(test_id)
        self._provider = provider
        self._sink = sink
        self._timeout = timeout
        self._start_timers = start_timers

        self._state = SessionState.LOADING
        self._test: Optional[Test] = None
        self._answers: AnswerMap = {}
        self._flagged: Set[int] = set()
        self._index = 0
        self._remaining = 0
        self._result: Optional[SubmissionResult] = None
        self._notice: Optional[str] = None

        # guards
        self._saving = False
        self._confirmation_pending = False
        self._confirmed = False
        self._auto_submit_attempted = False
        self._disposed = False

        self._clock = PeriodicTask(f"clock:{self.test_id}", tick_interval, self.tick)
        self._autosave = PeriodicTask(f"autosave:{self.test_id}", autosave_interval, self.autosave)

    # ── read-only view ────────────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def test(self) -> Optional[Test]:
        return self._test

    @property
    def answers(self) -> Dict[str, str]:
        return dict(self._answers)

    @property
    def flagged(self) -> FrozenSet[int]:
        return frozenset(self._flagged)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_question(self) -> Optional[Question]:
        if self._test is None or not self._test.questions:
            return None
        return self._test.questions[self._index]

    @property
    def remaining_seconds(self) -> int:
        return self._remaining

    @property
    def result(self) -> Optional[SubmissionResult]:
        return self._result

    @property
    def confirmation_pending(self) -> bool:
        return self._confirmation_pending

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def timers_running(self) -> bool:
        return self._clock.running or self._autosave.running

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            test_id=self.test_id,
            state=self._state,
            test=self._test,
            current_index=self._index,
            answers=dict(self._answers),
            flagged=sorted(self._flagged),
            remaining_seconds=self._remaining,
            is_urgent=self._state is SessionState.ACTIVE and timer.is_urgent(self._remaining),
            confirmation_pending=self._confirmation_pending,
            saving=self._saving,
            notice=self._notice,
        )

    # ── lifecycle ─────────────────────────────────────────────────────────

    async def open(self) -> Test:
        """
        Load the test and any saved answers, then start the clock.

        Raises:
            LoadFailure: the test itself could not be fetched. The session
                         moves to FAILED and cannot be used.
        """
        if self._state is not SessionState.LOADING:
            raise RuntimeError(f"Session for test {self.test_id} was already opened")

        try:
            test = await self._call(self._provider.fetch_test(self.test_id))
        except Exception as e:
            kind = _failure_kind(e)
            self._state = SessionState.FAILED
            logger.error(f"Failed to load test {self.test_id} ({kind.value}): {e}")
            raise LoadFailure(self.test_id, kind) from e

        try:
            saved = await self._call(self._provider.fetch_saved_answers(self.test_id))
        except Exception as e:
            # an interrupted earlier attempt is optional, start from scratch
            logger.warning(f"Could not fetch saved answers for test {self.test_id}: {e}")
            saved = {}

        known = set(test.question_ids)
        self._answers = {
            str(qid): option
            for qid, option in (saved or {}).items()
            if str(qid) in known and option
        }
        self._test = test
        self._remaining = test.duration_seconds
        self._index = 0
        self._flagged.clear()
        self._state = SessionState.ACTIVE
        logger.info(
            f"Test {self.test_id} opened: {len(test.questions)} questions, "
            f"{self._remaining}s, {len(self._answers)} saved answers"
        )

        if self._start_timers and not self._disposed:
            self._clock.start()
            self._autosave.start()
        return test

    async def dispose(self, flush: bool = True) -> None:
        """
        Stop both timers without submitting (user navigated away).

        With `flush`, answers are saved one last time on a best-effort basis.
        The flagged set is dropped.
        """
        if self._disposed:
            return
        # a save cut short by cancellation clears its in-flight flag on unwind
        await self._clock.stop()
        await self._autosave.stop()
        if flush and self._state is SessionState.ACTIVE and self._answers:
            await self._save(manual=False)
        self._disposed = True
        self._flagged.clear()
        self._confirmation_pending = False
        logger.info(f"Session for test {self.test_id} disposed in state {self._state.value}")

    # ── answers / navigation / flags ──────────────────────────────────────

    def set_answer(self, question_id: Any, option: str) -> None:
        """Record the selected option. Last write wins, options are not re-validated."""
        if not self._is_editable():
            return
        qid = str(question_id)
        if qid not in self._question_ids():
            logger.warning(f"Ignoring answer for unknown question {qid} in test {self.test_id}")
            return
        self._answers[qid] = option

    def go_to(self, index: int) -> int:
        """Move the cursor, clamped to the question range. Returns the new index."""
        if self._test is None or not self._test.questions or self._state.is_terminal:
            return self._index
        self._index = max(0, min(index, len(self._test.questions) - 1))
        return self._index

    def next(self) -> int:
        return self.go_to(self._index + 1)

    def previous(self) -> int:
        return self.go_to(self._index - 1)

    def toggle_flag(self, index: int) -> bool:
        """Flag / unflag a question position. Out-of-range positions are ignored."""
        if self._test is None or self._state.is_terminal or self._disposed:
            return False
        if not 0 <= index < len(self._test.questions):
            return False
        if index in self._flagged:
            self._flagged.discard(index)
            return False
        self._flagged.add(index)
        return True

    # ── persistence ───────────────────────────────────────────────────────

    async def autosave(self) -> bool:
        """Periodic save. Skipped without answers or while a save is in flight."""
        if not self._answers:
            return False
        return await self._save(manual=False)

    async def save_progress(self) -> bool:
        """
        Explicit "Save Progress".

        Returns False when skipped because another save is in flight.

        Raises:
            SaveFailure: the backend rejected the save.
        """
        return await self._save(manual=True)

    async def _save(self, manual: bool) -> bool:
        if self._state is not SessionState.ACTIVE or self._disposed:
            return False
        if self._saving:
            logger.debug(f"Save for test {self.test_id} still in flight, skipping")
            return False

        self._saving = True
        answers = dict(self._answers)
        try:
            await self._call(self._sink.save_progress(self.test_id, answers))
        except Exception as e:
            if manual:
                raise SaveFailure(f"Failed to save progress for test {self.test_id}") from e
            logger.warning(f"Autosave failed for test {self.test_id}, retrying next interval: {e}")
            self._notice = AUTOSAVE_FAILED_NOTICE
            return False
        finally:
            self._saving = False

        self._notice = None
        logger.debug(f"Saved {len(answers)} answers for test {self.test_id}")
        return True

    # ── clock ─────────────────────────────────────────────────────────────

    async def tick(self) -> None:
        """One second of the clock. Reaching zero submits automatically, once."""
        if self._auto_submit_attempted or self._disposed:
            return
        if self._state not in (SessionState.ACTIVE, SessionState.SUBMITTING):
            return

        if self._remaining > 0:
            self._remaining -= 1
        if self._remaining > 0:
            return

        self._auto_submit_attempted = True
        logger.info(f"Time is up for test {self.test_id}")
        try:
            if self._state is SessionState.ACTIVE:
                await self.submit(SubmitMode.AUTOMATIC)
        except SubmitFailure:
            logger.warning(f"Automatic submission of test {self.test_id} failed, manual retry required")
        finally:
            self._clock.cancel()

    # ── submission ────────────────────────────────────────────────────────

    def request_manual_submit(self) -> bool:
        """First step of a manual submit: ask the user to confirm."""
        if not self._is_editable():
            return False
        self._confirmation_pending = True
        return True

    def cancel_submit(self) -> None:
        self._confirmation_pending = False

    async def confirm_submit(self) -> Optional[SubmissionResult]:
        """Second step of a manual submit. No-op without a pending request."""
        if not self._confirmation_pending:
            logger.warning(f"Submit confirmation for test {self.test_id} without a pending request")
            return None
        self._confirmation_pending = False
        self._confirmed = True
        try:
            return await self.submit(SubmitMode.MANUAL)
        finally:
            self._confirmed = False

    async def submit(self, mode: SubmitMode) -> Optional[SubmissionResult]:
        """
        Send the final answers.

        Manual mode only goes through after confirm_submit(). Calls made while
        another submit is in flight, or after success, return None.

        Raises:
            SubmitFailure: the backend call failed; the session is ACTIVE again.
        """
        if self._state is not SessionState.ACTIVE or self._disposed:
            logger.info(f"Submit ({mode.value}) for test {self.test_id} ignored in state {self._state.value}")
            return None
        if mode is SubmitMode.MANUAL and not self._confirmed:
            logger.warning(f"Manual submit for test {self.test_id} without confirmation ignored")
            return None

        self._confirmed = False
        self._confirmation_pending = False
        self._state = SessionState.SUBMITTING
        answers = dict(self._answers)
        logger.info(f"Submitting test {self.test_id} ({mode.value}, {len(answers)} answers)")

        try:
            result = await self._call(self._sink.submit_test(self.test_id, answers))
        except asyncio.CancelledError:
            self._state = SessionState.ACTIVE
            raise
        except Exception as e:
            self._state = SessionState.ACTIVE
            logger.error(f"Submission of test {self.test_id} failed: {e}")
            raise SubmitFailure(f"Failed to submit test {self.test_id}") from e

        self._result = result
        self._state = SessionState.SUBMITTED
        self._confirmation_pending = False
        self._stop_timers()
        logger.info(f"Test {self.test_id} submitted")
        return result

    # ── helpers ───────────────────────────────────────────────────────────

    def _is_editable(self) -> bool:
        return self._state is SessionState.ACTIVE and not self._disposed

    def _question_ids(self) -> Set[str]:
        return set(self._test.question_ids) if self._test else set()

    def _stop_timers(self) -> None:
        self._clock.cancel()
        self._autosave.cancel()

    async def _call(self, awaitable: Awaitable):
        return await asyncio.wait_for(awaitable, timeout=self._timeout)
