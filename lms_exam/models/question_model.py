from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# question id -> selected option text
AnswerMap = Dict[str, str]


def _to_id(value: Any) -> str:
    if value is None:
        raise ValueError("id is required")
    return str(value)


class Question(BaseModel):
    """
    Multiple-choice question as delivered to the student.

    The correct answer is never sent to the client during an attempt,
    grading happens on the backend.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(
        ...,
        description="Question identifier, unique within a test"
    )
    text: str = Field(
        ...,
        alias="question",
        min_length=1,
        description="Prompt shown to the student"
    )
    image: Optional[str] = Field(
        None,
        description="Optional image URL shown under the prompt"
    )
    options: List[str] = Field(
        ...,
        description="Answer options in display order"
    )

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, v: Any) -> str:
        return _to_id(v)

    @field_validator("options")
    @classmethod
    def validate_options_length(cls, v: List[str]) -> List[str]:
        """A multiple-choice question needs at least two options."""
        if len(v) < 2:
            raise ValueError("A question needs at least 2 options.")
        return v


class Test(BaseModel):
    """A timed, ordered set of questions. Immutable once loaded."""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    subject: str = ""
    duration: int = Field(..., ge=0, description="Time limit in minutes")
    questions: List[Question] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, v: Any) -> str:
        return _to_id(v)

    @property
    def question_ids(self) -> List[str]:
        return [q.id for q in self.questions]

    @property
    def duration_seconds(self) -> int:
        return self.duration * 60


class SubmissionResult(BaseModel):
    """Backend acknowledgement of a submitted attempt."""
    test_id: str
    score: Optional[float] = None
    total: Optional[float] = None
    percentage: Optional[float] = None
    grade: Optional[str] = None
    passed: Optional[bool] = None
    message: str = ""

    @field_validator("test_id", mode="before")
    @classmethod
    def normalize_test_id(cls, v: Any) -> str:
        return _to_id(v)
