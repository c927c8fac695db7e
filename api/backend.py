"""
api/backend.py — REST client for the LMS backend

Implements TestContentProvider and ProgressSink over HTTP.
The bearer token is passed in explicitly, nothing is read from global state.
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from config import API_TIMEOUT
from lms_exam.errors import ErrorKind, ProviderError
from lms_exam.models.question_model import AnswerMap, SubmissionResult, Test

logger = logging.getLogger(__name__)


def _error_kind(status_code: int) -> ErrorKind:
    if status_code == 404:
        return ErrorKind.NOT_FOUND
    if status_code in (401, 403):
        return ErrorKind.AUTH
    return ErrorKind.SERVER


class BackendClient:
    """
    Async client for the student test endpoints.

    Args:
        base_url:  API root, e.g. "http://localhost:8080/api".
        token:     JWT sent as "Authorization: Bearer ...". Empty → no header.
        timeout:   Per-request timeout in seconds.
        transport: Optional httpx transport (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float = API_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    # ── TestContentProvider ───────────────────────────────────────────────

    async def fetch_test(self, test_id: str) -> Test:
        data = await self._request("GET", f"/student/tests/{test_id}")
        try:
            return Test.model_validate(data)
        except ValidationError as e:
            raise ProviderError(ErrorKind.SERVER, f"Malformed test payload: {e}") from e

    async def fetch_saved_answers(self, test_id: str) -> AnswerMap:
        data = await self._request("GET", f"/student/tests/{test_id}/answers")
        if isinstance(data, dict) and isinstance(data.get("answers"), dict):
            data = data["answers"]
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items() if v is not None}

    # ── ProgressSink ──────────────────────────────────────────────────────

    async def save_progress(self, test_id: str, answers: AnswerMap) -> None:
        await self._request("POST", f"/student/tests/{test_id}/save", json={"answers": answers})

    async def submit_test(self, test_id: str, answers: AnswerMap) -> SubmissionResult:
        data = await self._request("POST", f"/student/tests/{test_id}/submit", json={"answers": answers})
        payload: dict[str, Any] = data if isinstance(data, dict) else {}
        payload.setdefault("test_id", test_id)
        try:
            return SubmissionResult.model_validate(payload)
        except ValidationError as e:
            # the submission went through, only the receipt is unreadable
            logger.warning(f"Unexpected submit response for test {test_id}: {e}")
            return SubmissionResult(test_id=test_id)

    # ── helpers ───────────────────────────────────────────────────────────

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {url} failed: {e!r}")
            raise ProviderError(ErrorKind.NETWORK, str(e) or type(e).__name__) from e

        if response.status_code >= 400:
            kind = _error_kind(response.status_code)
            if kind is ErrorKind.AUTH:
                logger.warning(f"{method} {url}: authentication failed ({response.status_code})")
            raise ProviderError(kind, _error_message(response), status_code=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(ErrorKind.SERVER, "Response is not JSON") from e


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(data, dict):
        return str(data.get("message") or data.get("detail") or f"HTTP {response.status_code}")
    return f"HTTP {response.status_code}"
