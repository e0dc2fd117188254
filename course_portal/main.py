import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from course_portal.auth.session import SessionStore, clear_session_cookie, resolve_session, set_session_cookie
from course_portal.config import SESSION_COOKIE_NAME, Settings
from course_portal.database import connect
from course_portal.errors import InternalError, Unauthenticated
from course_portal.models.course import CourseCatalog, default_catalog
from course_portal.routers import auth, courses, students
from course_portal.store import StudentStore

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

static_dir = Path(__file__).parent / "static"


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[StudentStore] = None,
    catalog: Optional[CourseCatalog] = None,
    sessions: Optional[SessionStore] = None,
) -> FastAPI:
    """Build the web app.

    When ``store`` is given the app uses it as-is and never opens its own
    MongoDB connection; otherwise one is made (and checked) at startup.
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = None
        if app.state.store is None:
            client, app.state.store = await connect(settings)
        await app.state.store.ensure_indexes()
        try:
            yield
        finally:
            if client is not None:
                client.close()

    app = FastAPI(title="Course Portal", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.catalog = catalog if catalog is not None else default_catalog()
    app.state.sessions = sessions if sessions is not None else SessionStore()

    app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    @app.middleware("http")
    async def session_middleware(request: Request, call_next):
        resolved = resolve_session(request)
        request.state.session = resolved
        response = await call_next(request)

        current = getattr(request.state, "session", None)
        if resolved is not None and current is resolved:
            # Sliding expiry: every request re-issues the cookie
            set_session_cookie(response, current, settings.session_secret, app.state.sessions.ttl_seconds)
        elif current is None and SESSION_COOKIE_NAME in request.cookies:
            clear_session_cookie(response)
        return response

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f}ms")
        return response

    @app.exception_handler(Unauthenticated)
    async def redirect_to_login(request: Request, exc: Unauthenticated):
        return RedirectResponse("/login", status_code=302)

    @app.exception_handler(PyMongoError)
    @app.exception_handler(InternalError)
    async def server_error(request: Request, exc: Exception):
        logger.exception(f"Store error on {request.method} {request.url.path}", exc_info=exc)
        return PlainTextResponse("Server error", status_code=500)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (404, 405):
            return PlainTextResponse("404 - Not Found", status_code=404)
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code)

    # Include routers
    app.include_router(auth.router)
    app.include_router(courses.router)
    app.include_router(students.router)

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "service": "course-portal"}

    return app
