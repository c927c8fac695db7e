"""
api/routes.py — FastAPI endpoints for the test-taking page
"""

import logging

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, field_validator

import api.session as session
from config import LANDING_PATH
from lms_exam.errors import ErrorKind, LoadFailure, SaveFailure, SubmitFailure
from lms_exam.models.question_model import Question, SubmissionResult
from lms_exam.models.session_state import SessionState
from lms_exam.services.session_manager import TestSession
from lms_exam.views.components import navigator, timer

logger = logging.getLogger(__name__)

router = APIRouter()

# ── Pydantic request bodies ──────────────────────────────────────────────────

class SaveAnswerBody(BaseModel):
    question_id: int | str
    answer: str

    @field_validator("question_id")
    @classmethod
    def question_id_to_str(cls, v: int | str) -> str:
        return str(v)


class NavigateBody(BaseModel):
    index: int = 0


class FlagBody(BaseModel):
    index: int


# ── Helpers ──────────────────────────────────────────────────────────────────

def _question_to_dict(q: Question) -> dict:
    return {
        "id": q.id,
        "question": q.text,
        "image": q.image,
        "options": q.options,
    }


def _result_to_dict(result: SubmissionResult | None) -> dict | None:
    return result.model_dump(mode="json") if result else None


def _state_dict(ts: TestSession) -> dict:
    snap = ts.snapshot()
    data = snap.model_dump(mode="json", exclude={"test"})
    data.update({
        "title": snap.test.title if snap.test else "",
        "subject": snap.test.subject if snap.test else "",
        "total": snap.total,
        "answered_count": snap.answered_count,
        "question_ids": snap.test.question_ids if snap.test else [],
        "timer": timer.render(snap.remaining_seconds),
        "result": _result_to_dict(ts.result),
    })
    return data


def _sid(request: Request) -> str:
    return request.state.session_id


def _require(request: Request) -> TestSession:
    ts = session.get_test_session(_sid(request))
    if ts is None:
        raise HTTPException(status_code=404, detail="No test in progress.")
    return ts


def _require_active(request: Request) -> TestSession:
    ts = _require(request)
    if ts.state is SessionState.SUBMITTED:
        raise HTTPException(status_code=400, detail="This test has already been submitted.")
    return ts


# ── Endpoints ────────────────────────────────────────────────────────────────

@router.post("/api/tests/{test_id}/open")
async def open_test(test_id: str, request: Request):
    app_state = request.app.state
    ts = TestSession(
        test_id,
        app_state.provider,
        app_state.sink,
        start_timers=app_state.start_timers,
    )
    try:
        await ts.open()
    except LoadFailure as e:
        logger.info(f"Open failed for test {test_id}, sending client to {LANDING_PATH}")
        status = 404 if e.kind is ErrorKind.NOT_FOUND else 502
        raise HTTPException(
            status_code=status,
            detail={"message": "Failed to load test", "redirect": LANDING_PATH},
        )

    previous = session.put_test_session(_sid(request), ts)
    if previous is not None:
        await previous.dispose()

    data = _state_dict(ts)
    data["test"] = {
        "id": ts.test.id,
        "title": ts.test.title,
        "subject": ts.test.subject,
        "duration": ts.test.duration,
        "questions": [_question_to_dict(q) for q in ts.test.questions],
    }
    return data


@router.get("/api/session")
async def get_session_state(request: Request):
    return _state_dict(_require(request))


@router.get("/api/question/{index}")
async def get_question(index: int, request: Request):
    ts = _require(request)
    questions = ts.test.questions if ts.test else []
    if not (0 <= index < len(questions)):
        raise HTTPException(status_code=404, detail="Question not found.")

    q = questions[index]
    d = _question_to_dict(q)
    d.update({
        "saved_answer": ts.answers.get(q.id, ""),
        "flagged": index in ts.flagged,
        "index": index,
        "total": len(questions),
    })
    return d


@router.get("/api/navigator")
async def get_navigator(request: Request):
    return navigator.render(_require(request).snapshot())


@router.post("/api/answer")
async def save_answer(body: SaveAnswerBody, request: Request):
    ts = _require_active(request)
    if ts.state is not SessionState.ACTIVE:
        raise HTTPException(status_code=409, detail="Answers cannot be changed right now.")
    if ts.test and body.question_id not in ts.test.question_ids:
        raise HTTPException(status_code=404, detail="Question not found.")

    ts.set_answer(body.question_id, body.answer)
    return {"ok": True, "answered_count": len(ts.answers)}


@router.post("/api/navigate")
async def navigate(body: NavigateBody, request: Request):
    ts = _require_active(request)
    return {"index": ts.go_to(body.index), "ok": True}


@router.post("/api/next")
async def next_question(request: Request):
    return {"index": _require_active(request).next(), "ok": True}


@router.post("/api/previous")
async def previous_question(request: Request):
    return {"index": _require_active(request).previous(), "ok": True}


@router.post("/api/flag")
async def toggle_flag(body: FlagBody, request: Request):
    ts = _require_active(request)
    flagged = ts.toggle_flag(body.index)
    return {"index": body.index, "flagged": flagged, "ok": True}


@router.post("/api/save")
async def save_progress(request: Request):
    ts = _require_active(request)
    try:
        saved = await ts.save_progress()
    except SaveFailure:
        raise HTTPException(status_code=502, detail="Failed to save progress")
    return {"ok": True, "saved": saved}


@router.post("/api/submit/request")
async def request_submit(request: Request):
    ts = _require_active(request)
    if not ts.request_manual_submit():
        raise HTTPException(status_code=409, detail="The test cannot be submitted right now.")
    unanswered = len(ts.test.questions) - len(ts.answers) if ts.test else 0
    return {
        "confirmation_required": True,
        "message": "Are you sure you want to submit your test? This action cannot be undone.",
        "unanswered": unanswered,
    }


@router.post("/api/submit/confirm")
async def confirm_submit(request: Request):
    ts = _require_active(request)
    try:
        result = await ts.confirm_submit()
    except SubmitFailure:
        raise HTTPException(
            status_code=502,
            detail={"message": "Failed to submit test", "retryable": True},
        )
    if result is None:
        raise HTTPException(status_code=409, detail="No confirmed submission is pending.")
    return {"ok": True, "result": _result_to_dict(result)}


@router.post("/api/submit/cancel")
async def cancel_submit(request: Request):
    _require(request).cancel_submit()
    return {"ok": True}


@router.post("/api/session/dispose")
async def dispose_session(request: Request):
    ts = session.pop_test_session(_sid(request))
    if ts is not None:
        await ts.dispose()
    return {"ok": True}
