import logging
from datetime import datetime, timezone
from typing import List, Optional

import pydantic
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from course_portal.errors import DuplicateKey, InternalError, NotFound, ValidationError
from course_portal.models.student import Student

logger = logging.getLogger(__name__)


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def normalize_srn(srn: Optional[str]) -> str:
    return (srn or "").strip().upper()


def _to_student(doc) -> Optional[Student]:
    if doc is None:
        return None
    try:
        return Student.from_document(doc)
    except pydantic.ValidationError as exc:
        logger.error(f"Malformed student document {doc.get('_id')}: {exc}")
        raise InternalError(f"malformed student document {doc.get('_id')}")


def _object_id(student_id) -> Optional[ObjectId]:
    if isinstance(student_id, ObjectId):
        return student_id
    try:
        return ObjectId(student_id)
    except (InvalidId, TypeError):
        return None


class StudentStore:
    """Student documents in a MongoDB collection (motor).

    Email and SRN uniqueness is enforced by unique indexes, so two signups
    racing on the same value are settled by the database, not in process.
    """

    def __init__(self, collection):
        self.collection = collection

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("email", ASCENDING)], unique=True)
        await self.collection.create_index([("srn", ASCENDING)], unique=True)

    async def create(self, name: str, email: str, srn: str, password_hash: str) -> Student:
        name = (name or "").strip()
        email = normalize_email(email)
        srn = normalize_srn(srn)

        missing = [field for field, value in (("name", name), ("email", email), ("srn", srn), ("passwordHash", password_hash)) if not value]
        if missing:
            raise ValidationError([f"{field} is required" for field in missing])

        doc = {
            "name": name,
            "email": email,
            "srn": srn,
            "passwordHash": password_hash,
            "registeredCourses": [],
            "createdAt": datetime.now(timezone.utc),
        }
        try:
            result = await self.collection.insert_one(doc)
        except DuplicateKeyError:
            logger.info(f"Duplicate key on signup for email={email} srn={srn}")
            raise DuplicateKey(await self._colliding_field(email, srn))

        doc["_id"] = result.inserted_id
        return Student.from_document(doc)

    async def _colliding_field(self, email: str, srn: str) -> str:
        existing = await self.find_by_email_or_srn(email, srn)
        if existing is not None and existing.srn == srn and existing.email != email:
            return "srn"
        return "email"

    async def find_by_email_or_srn(self, email: str, srn: str) -> Optional[Student]:
        """Return the student owning ``email``, else the one owning ``srn``.

        Email is looked up first so a form colliding on both reports the email.
        """
        student = await self.find_by_email(email)
        if student is not None:
            return student
        doc = await self.collection.find_one({"srn": normalize_srn(srn)})
        return _to_student(doc)

    async def find_by_id(self, student_id) -> Optional[Student]:
        oid = _object_id(student_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid})
        return _to_student(doc)

    async def find_by_email(self, email: str) -> Optional[Student]:
        doc = await self.collection.find_one({"email": normalize_email(email)})
        return _to_student(doc)

    async def list_all(self) -> List[Student]:
        cursor = self.collection.find({}, sort=[("createdAt", DESCENDING)])
        docs = await cursor.to_list(length=None)
        return [_to_student(doc) for doc in docs]

    async def add_course_registration(self, student_id, course_id: str, course_name: str) -> Student:
        """Append a course to the student's registrations unless already there.

        The duplicate check and the append happen in one conditional update,
        so concurrent requests for the same course cannot both append.
        """
        oid = _object_id(student_id)
        if oid is None:
            raise NotFound("student", str(student_id))

        entry = {
            "courseId": course_id,
            "courseName": course_name,
            "registeredAt": datetime.now(timezone.utc),
        }
        doc = await self.collection.find_one_and_update(
            {"_id": oid, "registeredCourses.courseId": {"$ne": course_id}},
            {"$push": {"registeredCourses": entry}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is not None:
            logger.info(f"Student {oid} registered for {course_id}")
            return _to_student(doc)

        # No match: either already registered or the student is gone
        student = await self.find_by_id(oid)
        if student is None:
            raise NotFound("student", str(student_id))
        return student
