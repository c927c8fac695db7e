"""
models/session_state.py

State of one test attempt as seen by the UI.
Pydantic BaseModel based, serializable, no UI code.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from lms_exam.models.question_model import Test


class SessionState(str, Enum):
    LOADING = "loading"
    ACTIVE = "active"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.SUBMITTED, SessionState.FAILED)


class SubmitMode(str, Enum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"


class SessionSnapshot(BaseModel):
    """
    Read-only view of a TestSession.

    Attributes:
        test_id:              Test being attempted.
        state:                Lifecycle state.
        test:                 Loaded test (None while loading or after a failed load).
        current_index:        Navigation cursor (0-based).
        answers:              AnswerMap, {question.id: selected option}.
        flagged:              Flagged question positions, ascending.
        remaining_seconds:    Time left on the clock.
        is_urgent:            True under the warning threshold (presentation only).
        confirmation_pending: A manual submit is waiting for yes/no.
        saving:               An autosave or manual save is in flight.
        notice:               Last passive notice (e.g. autosave failure), if any.
    """

    test_id: str
    state: SessionState
    test: Optional[Test] = None
    current_index: int = Field(default=0, ge=0)
    answers: Dict[str, str] = Field(default_factory=dict)
    flagged: List[int] = Field(default_factory=list)
    remaining_seconds: int = Field(default=0, ge=0)
    is_urgent: bool = False
    confirmation_pending: bool = False
    saving: bool = False
    notice: Optional[str] = None

    @property
    def answered_count(self) -> int:
        return len(self.answers)

    @property
    def total(self) -> int:
        return len(self.test.questions) if self.test else 0
