import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse, RedirectResponse

from course_portal.auth.session import SessionData, SessionStore, get_session_store, require_session
from course_portal.database import get_catalog, get_store
from course_portal.errors import NotFound, Unauthenticated
from course_portal.models.course import CourseCatalog
from course_portal.models.student import Student
from course_portal.store import StudentStore
from course_portal.views import render

logger = logging.getLogger(__name__)

router = APIRouter(tags=["courses"])


def _end_session(request: Request, session: SessionData, sessions: SessionStore) -> None:
    sessions.delete(session.session_id)
    request.state.session = None


async def load_student(request: Request, session: SessionData, store: StudentStore, sessions: SessionStore) -> Student:
    """Fetch the logged-in student; a session pointing at a missing
    student is dropped and treated as logged out."""
    student = await store.find_by_id(session.student_id)
    if student is None:
        logger.warning(f"Session {session.session_id[:6]}... refers to missing student {session.student_id}")
        _end_session(request, session, sessions)
        raise Unauthenticated()
    return student


@router.get("/courses")
async def list_courses(
    request: Request,
    session: SessionData = Depends(require_session),
    store: StudentStore = Depends(get_store),
    catalog: CourseCatalog = Depends(get_catalog),
    sessions: SessionStore = Depends(get_session_store),
):
    """Courses the student can still register for."""
    student = await load_student(request, session, store, sessions)
    return render(
        request,
        "courses.html",
        courses=catalog.available_for(student),
        registered=student.registered_courses,
    )


@router.post("/courses/{course_id}/register")
async def register_course(
    request: Request,
    course_id: str,
    session: SessionData = Depends(require_session),
    store: StudentStore = Depends(get_store),
    catalog: CourseCatalog = Depends(get_catalog),
    sessions: SessionStore = Depends(get_session_store),
):
    """Register the student for a course; registering twice is a no-op."""
    course = catalog.find_by_id(course_id)
    if course is None:
        return PlainTextResponse("Invalid course", status_code=400)

    try:
        await store.add_course_registration(session.student_id, course.id, course.name)
    except NotFound:
        logger.warning(f"Registration for missing student {session.student_id}")
        _end_session(request, session, sessions)
        raise Unauthenticated()

    return RedirectResponse("/my-courses", status_code=302)


@router.get("/my-courses")
async def my_courses(
    request: Request,
    session: SessionData = Depends(require_session),
    store: StudentStore = Depends(get_store),
    sessions: SessionStore = Depends(get_session_store),
):
    student = await load_student(request, session, store, sessions)
    return render(request, "mycourses.html", registered=student.registered_courses)
