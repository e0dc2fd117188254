from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


class RegisteredCourse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    course_id: str = Field(alias="courseId")
    course_name: str = Field(alias="courseName")
    registered_at: datetime = Field(alias="registeredAt")


class Student(BaseModel):
    """A student document as stored in the ``students`` collection."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    email: str
    srn: str
    password_hash: str = Field(alias="passwordHash")
    registered_courses: List[RegisteredCourse] = Field(default_factory=list, alias="registeredCourses")
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Student":
        data = dict(doc)
        data["id"] = str(data.pop("_id"))
        return cls.model_validate(data)

    def registered_course_ids(self) -> set:
        return {course.course_id for course in self.registered_courses}
