"""
api/session.py — in-memory browser sessions (cookie based)

Each browser gets a UUID session id holding at most one TestSession.
Sessions expire after SESSION_TTL without access; the caller disposes the
TestSessions handed back by cleanup_expired().
"""

import threading
import time
import uuid

from config import SESSION_TTL
from lms_exam.services.session_manager import TestSession

_lock = threading.Lock()
_sessions: dict[str, TestSession | None] = {}
_timestamps: dict[str, float] = {}


def create_session() -> str:
    """Create a new browser session and return its id."""
    sid = uuid.uuid4().hex
    with _lock:
        _sessions[sid] = None
        _timestamps[sid] = time.time()
    return sid


def exists(sid: str) -> bool:
    """True if the session is known and not expired. Refreshes its timestamp."""
    with _lock:
        if sid not in _timestamps:
            return False
        if time.time() - _timestamps[sid] > SESSION_TTL:
            return False
        _timestamps[sid] = time.time()
        return True


def get_test_session(sid: str) -> TestSession | None:
    with _lock:
        return _sessions.get(sid)


def put_test_session(sid: str, test_session: TestSession | None) -> TestSession | None:
    """Attach a TestSession to the browser session. Returns the one it replaced."""
    with _lock:
        previous = _sessions.get(sid)
        _sessions[sid] = test_session
        _timestamps[sid] = time.time()
    return previous


def pop_test_session(sid: str) -> TestSession | None:
    return put_test_session(sid, None)


def cleanup_expired() -> list[TestSession]:
    """Drop expired sessions. Returns their TestSessions for disposal."""
    now = time.time()
    orphaned: list[TestSession] = []
    with _lock:
        expired = [sid for sid, ts in _timestamps.items() if now - ts > SESSION_TTL]
        for sid in expired:
            test_session = _sessions.pop(sid, None)
            del _timestamps[sid]
            if test_session is not None:
                orphaned.append(test_session)
    return orphaned


def clear() -> list[TestSession]:
    """Drop every session (shutdown). Returns the TestSessions for disposal."""
    with _lock:
        orphaned = [s for s in _sessions.values() if s is not None]
        _sessions.clear()
        _timestamps.clear()
    return orphaned
