from conftest import make_test
from lms_exam.models.session_state import SessionSnapshot, SessionState
from lms_exam.views.components import navigator, timer


def test_format_time():
    assert timer.format_time(0) == "0:00"
    assert timer.format_time(59) == "0:59"
    assert timer.format_time(600) == "10:00"
    assert timer.format_time(3600) == "1:00:00"
    assert timer.format_time(3725) == "1:02:05"
    assert timer.format_time(-4) == "0:00"


def test_urgency_threshold():
    assert timer.is_urgent(299)
    assert not timer.is_urgent(300)
    assert not timer.is_urgent(0)
    assert timer.render(0)["urgent"] is False
    assert timer.render(120)["css_class"] == "timer-display timer-warning"
    assert timer.render(900)["display"] == "15:00"


def test_navigator_cells():
    snapshot = SessionSnapshot(
        test_id="t1",
        state=SessionState.ACTIVE,
        test=make_test(count=3),
        current_index=1,
        answers={"q1": "A", "q3": "C"},
        flagged=[2],
        remaining_seconds=30,
    )

    data = navigator.render(snapshot)

    assert data["total"] == 3
    assert data["answered"] == 2
    assert data["unanswered"] == 1
    assert data["progress"] == 67
    assert [c["current"] for c in data["cells"]] == [False, True, False]
    assert [c["answered"] for c in data["cells"]] == [True, False, True]
    assert [c["flagged"] for c in data["cells"]] == [False, False, True]
    assert data["cells"][0]["number"] == 1


def test_navigator_without_test():
    snapshot = SessionSnapshot(test_id="t1", state=SessionState.LOADING)
    assert navigator.render(snapshot) == {
        "total": 0, "answered": 0, "unanswered": 0, "progress": 0, "cells": [],
    }
