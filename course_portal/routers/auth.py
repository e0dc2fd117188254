import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from starlette.concurrency import run_in_threadpool

from course_portal.auth.password import hash_password, verify_password
from course_portal.auth.session import (
    SessionStore,
    clear_session_cookie,
    get_current_session,
    get_session_store,
    set_session_cookie,
)
from course_portal.database import get_store
from course_portal.errors import DuplicateKey, ValidationError
from course_portal.schemas.student import LoginForm, SignupForm, parse_form
from course_portal.store import StudentStore, normalize_email, normalize_srn
from course_portal.views import render

logger = logging.getLogger(__name__)

router = APIRouter(tags=["authentication"])

INVALID_CREDENTIALS = "Invalid email or password"


def _start_session(request: Request, sessions: SessionStore, student, url: str) -> RedirectResponse:
    # Signing in again replaces whatever session the cookie named
    previous = getattr(request.state, "session", None)
    if previous is not None:
        sessions.delete(previous.session_id)
    session = sessions.create(student)
    request.state.session = session
    response = RedirectResponse(url, status_code=302)
    set_session_cookie(response, session, request.app.state.settings.session_secret, sessions.ttl_seconds)
    return response


@router.get("/")
async def home():
    return RedirectResponse("/signup", status_code=302)


@router.get("/signup")
async def signup_page(request: Request):
    return render(request, "signup.html", errors=[], form={})


@router.post("/signup")
async def signup(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    srn: str = Form(""),
    password: str = Form(""),
    store: StudentStore = Depends(get_store),
    sessions: SessionStore = Depends(get_session_store),
):
    # Submitted values are echoed back on errors, never the password
    form = {"name": name, "email": email, "srn": srn}

    try:
        data = parse_form(SignupForm, {"name": name, "email": email, "srn": srn, "password": password})
    except ValidationError as e:
        return render(request, "signup.html", errors=e.messages, form=form)

    email_key = normalize_email(data.email)
    srn_key = normalize_srn(data.srn)

    existing = await store.find_by_email_or_srn(email_key, srn_key)
    if existing is not None:
        field = "email" if existing.email == email_key else "srn"
        return render(request, "signup.html", errors=[DuplicateKey(field).message], form=form)

    password_hash = await run_in_threadpool(hash_password, data.password)
    try:
        student = await store.create(data.name, email_key, srn_key, password_hash)
    except DuplicateKey as e:
        # Lost a race with a concurrent signup; the unique index caught it
        return render(request, "signup.html", errors=[e.message], form=form)

    logger.info(f"New student signed up: {student.email}")
    return _start_session(request, sessions, student, "/courses")


@router.get("/login")
async def login_page(request: Request):
    return render(request, "login.html", error=None, form={})


@router.post("/login")
async def login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    store: StudentStore = Depends(get_store),
    sessions: SessionStore = Depends(get_session_store),
):
    form = {"email": email}

    try:
        data = parse_form(LoginForm, {"email": email, "password": password})
    except ValidationError as e:
        return render(request, "login.html", error=e.messages[0], form=form)

    student = await store.find_by_email(data.email)
    # Unknown email and wrong password get the same message
    if student is None:
        return render(request, "login.html", error=INVALID_CREDENTIALS, form=form)
    if not await run_in_threadpool(verify_password, data.password, student.password_hash):
        logger.info(f"Failed login for {student.email}")
        return render(request, "login.html", error=INVALID_CREDENTIALS, form=form)

    logger.info(f"Student logged in: {student.email}")
    return _start_session(request, sessions, student, "/courses")


@router.get("/logout")
async def logout(
    request: Request,
    session=Depends(get_current_session),
    sessions: SessionStore = Depends(get_session_store),
):
    if session is not None:
        sessions.delete(session.session_id)
        request.state.session = None
    response = RedirectResponse("/login", status_code=302)
    clear_session_cookie(response)
    return response
