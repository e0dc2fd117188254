from fastapi import APIRouter, Depends, Request

from course_portal.database import get_store
from course_portal.store import StudentStore
from course_portal.views import render

router = APIRouter(tags=["students"])


@router.get("/students")
async def list_students(request: Request, store: StudentStore = Depends(get_store)):
    """All registered students, newest first."""
    students = await store.list_all()
    return render(request, "students.html", students=students)
