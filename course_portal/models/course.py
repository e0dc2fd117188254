from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from course_portal.models.student import Student


class Course(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str


DEFAULT_COURSES = (
    ("cloud-fund", "Cloud Computing Fundamentals"),
    ("cloud-deploy", "Advanced Cloud Deployment"),
    ("cloud-sec", "Cloud Security Management"),
    ("devops-cloud", "DevOps & Cloud Automation"),
    ("mongo-db", "Database Management with MongoDB"),
)


class CourseCatalog:
    """Fixed list of offerable courses, built once at startup.

    The catalog is never persisted and never mutated; the app keeps one
    instance on ``app.state`` and hands it to handlers as a dependency.
    """

    def __init__(self, courses: Iterable[Course]):
        self._courses: Tuple[Course, ...] = tuple(courses)
        self._by_id = {course.id: course for course in self._courses}
        if len(self._by_id) != len(self._courses):
            raise ValueError("course ids must be unique")

    def __len__(self) -> int:
        return len(self._courses)

    def list_all(self) -> Tuple[Course, ...]:
        return self._courses

    def find_by_id(self, course_id: str) -> Optional[Course]:
        return self._by_id.get(course_id)

    def available_for(self, student: Student) -> List[Course]:
        registered = student.registered_course_ids()
        return [course for course in self._courses if course.id not in registered]


def default_catalog() -> CourseCatalog:
    return CourseCatalog(Course(id=course_id, name=name) for course_id, name in DEFAULT_COURSES)
