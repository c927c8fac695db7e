"""
views/components/navigator.py

Question navigator grid: one cell per question, click jumps to it.
"""

from __future__ import annotations

from lms_exam.models.session_state import SessionSnapshot


def render(snapshot: SessionSnapshot) -> dict:
    """
    Build the navigator payload and progress summary.

    Colour coding (client side):
      - current:  dark blue
      - answered: green (saved answers from an earlier attempt count too)
      - other:    grey
    A flag marker is drawn on flagged cells regardless of colour.
    """
    questions = snapshot.test.questions if snapshot.test else []
    total = len(questions)
    answered = sum(1 for q in questions if q.id in snapshot.answers)
    flagged = set(snapshot.flagged)

    cells = []
    for idx, q in enumerate(questions):
        cells.append({
            "index": idx,
            "number": idx + 1,
            "question_id": q.id,
            "current": idx == snapshot.current_index,
            "answered": q.id in snapshot.answers,
            "flagged": idx in flagged,
        })

    return {
        "total": total,
        "answered": answered,
        "unanswered": total - answered,
        "progress": round(answered / total * 100) if total else 0,
        "cells": cells,
    }
