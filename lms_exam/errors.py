"""
errors.py

Exceptions raised by content providers / progress sinks and by TestSession.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    NETWORK = "network"
    AUTH = "auth"
    SERVER = "server"


class ProviderError(Exception):
    """A backend call did not succeed."""

    def __init__(self, kind: ErrorKind, message: str = "", status_code: Optional[int] = None):
        super().__init__(message or kind.value)
        self.kind = kind
        self.status_code = status_code


class SessionError(Exception):
    """Base class for test session failures."""


class LoadFailure(SessionError):
    """The test could not be loaded. The session is unusable."""

    def __init__(self, test_id: str, kind: ErrorKind = ErrorKind.SERVER):
        super().__init__(f"Failed to load test {test_id}")
        self.test_id = test_id
        self.kind = kind


class SaveFailure(SessionError):
    """Saving progress failed. Never fatal."""


class SubmitFailure(SessionError):
    """Submitting failed. The session is back to active and can retry."""
