"""
api/app.py — FastAPI app instance + session middleware + backend wiring
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

import api.session as session
from api.backend import BackendClient
from api.routes import router
from api.sample_tests import SampleBackend
from config import API_TIMEOUT, API_TOKEN, BACKEND_URL, SESSION_CLEANUP_INTERVAL, SESSION_TTL
from lms_exam.services.providers import ProgressSink, TestContentProvider
from lms_exam.services.scheduler import PeriodicTask

logger = logging.getLogger(__name__)

SESSION_COOKIE = "lms_session"


async def _cleanup_expired() -> None:
    orphaned = session.cleanup_expired()
    for test_session in orphaned:
        await test_session.dispose()
    if orphaned:
        logger.info(f"Disposed {len(orphaned)} expired test sessions")


def create_app(
    provider: TestContentProvider | None = None,
    sink: ProgressSink | None = None,
    start_timers: bool = True,
) -> FastAPI:
    """
    Build the app.

    Without an explicit provider the REST backend at BACKEND_URL is used,
    or the in-memory sample backend when BACKEND_URL is empty. The sink
    defaults to the provider object.
    """
    if provider is None:
        if BACKEND_URL:
            provider = BackendClient(BACKEND_URL, token=API_TOKEN, timeout=API_TIMEOUT)
            logger.info(f"Using LMS backend at {BACKEND_URL}")
        else:
            provider = SampleBackend()
            logger.info("BACKEND_URL not set, using the built-in sample backend")
    if sink is None:
        sink = provider

    cleanup_task = PeriodicTask("session-cleanup", SESSION_CLEANUP_INTERVAL, _cleanup_expired)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cleanup_task.start()
        yield
        cleanup_task.cancel()
        for test_session in session.clear():
            await test_session.dispose()
        if isinstance(provider, BackendClient):
            await provider.aclose()

    app = FastAPI(title="LMS Test Session", docs_url=None, redoc_url=None, lifespan=lifespan)
    app.state.provider = provider
    app.state.sink = sink
    app.state.start_timers = start_timers

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # session middleware: read the session id from the cookie, issue one if missing
    @app.middleware("http")
    async def session_middleware(request: Request, call_next):
        sid = request.cookies.get(SESSION_COOKIE)
        if not sid or not session.exists(sid):
            sid = session.create_session()

        request.state.session_id = sid
        response: Response = await call_next(request)
        response.set_cookie(
            key=SESSION_COOKIE,
            value=sid,
            httponly=True,
            samesite="lax",
            max_age=SESSION_TTL,
        )
        return response

    app.include_router(router)
    return app
