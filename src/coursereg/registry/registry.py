"""Registry - students, courses and enrollments with their integrity rules."""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections.abc import Mapping
from typing import Any

from coursereg.registry.exceptions import (
    BlockedByRelationshipError,
    CapacityExceededError,
    ConflictError,
    DuplicateKeyError,
    NotFoundError,
)
from coursereg.registry.models import (
    COURSE_CAPACITY,
    RECORD_FIELDS,
    UNIQUE_FIELDS,
    Course,
    Enrollment,
    Record,
    RecordKind,
    Student,
    normalize_id,
)
from coursereg.registry.storage import MemoryStorage, Storage

logger = logging.getLogger(__name__)

DUPLICATE_KEY_MESSAGES = {
    RecordKind.STUDENTS: "Email must be unique",
    RecordKind.COURSES: "Course title must be unique",
}

SEED_STUDENTS = (
    {"name": "Alice", "email": "alice@example.com"},
    {"name": "Bob", "email": "bob@example.com"},
    {"name": "Charlie", "email": "charlie@example.com"},
)

SEED_COURSES = (
    {"title": "Math", "teacher": "Mr. Smith"},
    {"title": "Physics", "teacher": "Dr. Brown"},
    {"title": "History", "teacher": "Ms. Clark"},
)


class Registry:
    """In-memory store of students, courses and enrollments.

    Enforces unique student emails and course titles, a capacity of
    COURSE_CAPACITY enrollments per course, blocked deletion of enrolled
    students and cascade deletion of a course's enrollments.

    Each public operation holds the registry lock for its whole duration, so
    hosts that serve requests from several threads cannot interleave them.
    """

    def __init__(self, storage: Storage | None = None) -> None:
        """Initialize the Registry.

        Args:
            storage: Raw storage backend. Defaults to a fresh MemoryStorage.
        """
        self._storage: Storage = storage if storage is not None else MemoryStorage()
        # Re-entrant: seed() calls create()
        self._lock = threading.RLock()

    def close(self) -> None:
        """Release the storage backend."""
        self._storage.close()

    # --- Record Operations ---

    def list(self, kind: str | RecordKind) -> list[Record]:
        """All records of a kind, in insertion order."""
        with self._lock:
            return self._storage.all(RecordKind.parse(kind))

    def get(self, kind: str | RecordKind, record_id: Any) -> Record | None:
        """Get a record by id.

        Returns:
            The record, or None if no record has that id
        """
        normalized = normalize_id(record_id)
        if normalized is None:
            return None
        with self._lock:
            return self._storage.find(RecordKind.parse(kind), normalized)

    def create(self, kind: str | RecordKind, payload: Mapping[str, Any]) -> Record:
        """Create a student or course.

        Presence of the required fields is checked by the caller; only the
        uniqueness of the email (students) or title (courses) is enforced here.

        Args:
            kind: "students" or "courses"
            payload: Field values; keys other than the record's fields are ignored

        Returns:
            The created record, with its newly assigned id

        Raises:
            DuplicateKeyError: If the email or title is already taken
        """
        kind = RecordKind.parse(kind)
        with self._lock:
            self._check_unique(kind, payload.get(UNIQUE_FIELDS[kind]))
            record = self._storage.add(kind, {f: payload.get(f) for f in RECORD_FIELDS[kind]})
        logger.info("Created %s %s", kind.value, record.id)
        return record

    def update(
        self, kind: str | RecordKind, record_id: Any, payload: Mapping[str, Any]
    ) -> Record | None:
        """Merge the provided fields into an existing record.

        Args:
            kind: "students" or "courses"
            record_id: Id of the record to update
            payload: Fields to change; missing keys keep their current value

        Returns:
            The updated record, or None if no record has that id

        Raises:
            DuplicateKeyError: If the new email or title belongs to another record
        """
        kind = RecordKind.parse(kind)
        normalized = normalize_id(record_id)
        if normalized is None:
            return None
        changes = {f: payload[f] for f in RECORD_FIELDS[kind] if f in payload}

        with self._lock:
            current = self._storage.find(kind, normalized)
            if current is None:
                return None
            unique_field = UNIQUE_FIELDS[kind]
            if unique_field in changes:
                self._check_unique(kind, changes[unique_field], exclude_id=current.id)
            updated = self._storage.replace(kind, _merge(current, changes))

        logger.info("Updated %s %s (%s)", kind.value, updated.id, ", ".join(changes) or "no fields")
        return updated

    def remove(self, kind: str | RecordKind, record_id: Any) -> bool:
        """Delete a student or course.

        Deleting a course first deletes every enrollment referencing it.

        Returns:
            True if the record was deleted, False if it did not exist

        Raises:
            BlockedByRelationshipError: If the student is enrolled in a course
        """
        kind = RecordKind.parse(kind)
        normalized = normalize_id(record_id)
        if normalized is None:
            return False

        with self._lock:
            if self._storage.find(kind, normalized) is None:
                return False
            if kind is RecordKind.STUDENTS:
                if self._storage.count_enrollments(student_id=normalized) > 0:
                    logger.info("Refused to delete student %s: enrolled in a course", normalized)
                    raise BlockedByRelationshipError("Cannot delete student: enrolled in a course")
            else:
                dropped = self._storage.delete_enrollments_for_course(normalized)
                if dropped:
                    logger.info("Dropped %d enrollments of course %s", dropped, normalized)
            self._storage.delete(kind, normalized)

        logger.info("Deleted %s %s", kind.value, normalized)
        return True

    # --- Enrollment Operations ---

    def enroll(self, student_id: Any, course_id: Any) -> Enrollment:
        """Enroll a student in a course.

        Checks run in order: course exists, student exists, pair not already
        enrolled, course below capacity.

        Returns:
            The new enrollment

        Raises:
            NotFoundError: If the course or the student does not exist
            ConflictError: If the student is already enrolled in the course
            CapacityExceededError: If the course already holds COURSE_CAPACITY students
        """
        sid = normalize_id(student_id)
        cid = normalize_id(course_id)
        with self._lock:
            if cid is None or self._storage.find(RecordKind.COURSES, cid) is None:
                raise NotFoundError("Course not found")
            if sid is None or self._storage.find(RecordKind.STUDENTS, sid) is None:
                raise NotFoundError("Student not found")
            if self._storage.find_enrollment(sid, cid) is not None:
                raise ConflictError("Student already enrolled in this course")
            if self._storage.count_enrollments(course_id=cid) >= COURSE_CAPACITY:
                logger.info("Refused to enroll student %s: course %s is full", sid, cid)
                raise CapacityExceededError("Course is full")
            enrollment = self._storage.add_enrollment(sid, cid)

        logger.info("Enrolled student %s in course %s", sid, cid)
        return enrollment

    def unenroll(self, student_id: Any, course_id: Any) -> Enrollment:
        """Remove a student from a course.

        Raises:
            NotFoundError: If the student is not enrolled in the course
        """
        sid = normalize_id(student_id)
        cid = normalize_id(course_id)
        if sid is None or cid is None:
            raise NotFoundError("Enrollment not found")

        with self._lock:
            enrollment = self._storage.find_enrollment(sid, cid)
            if enrollment is None:
                raise NotFoundError("Enrollment not found")
            self._storage.delete_enrollment(sid, cid)

        logger.info("Unenrolled student %s from course %s", sid, cid)
        return enrollment

    def student_courses(self, student_id: Any) -> list[Course]:
        """Courses the student is enrolled in, in enrollment order."""
        sid = normalize_id(student_id)
        if sid is None:
            return []
        with self._lock:
            courses = [
                self._storage.find(RecordKind.COURSES, e.course_id)
                for e in self._storage.enrollments(student_id=sid)
            ]
        return [c for c in courses if isinstance(c, Course)]

    def course_students(self, course_id: Any) -> list[Student]:
        """Students enrolled in the course, in enrollment order."""
        cid = normalize_id(course_id)
        if cid is None:
            return []
        with self._lock:
            students = [
                self._storage.find(RecordKind.STUDENTS, e.student_id)
                for e in self._storage.enrollments(course_id=cid)
            ]
        return [s for s in students if isinstance(s, Student)]

    def enrollments(self) -> list[Enrollment]:
        """All enrollments, in insertion order."""
        with self._lock:
            return self._storage.enrollments()

    # --- Lifecycle ---

    def reset(self) -> None:
        """Clear all collections and reset id counters to 1."""
        with self._lock:
            self._storage.clear()
        logger.debug("Registry reset")

    def seed(self) -> None:
        """Create the starter dataset: three students and three courses.

        Goes through create, so seeding twice raises DuplicateKeyError.
        """
        with self._lock:
            for student in SEED_STUDENTS:
                self.create(RecordKind.STUDENTS, student)
            for course in SEED_COURSES:
                self.create(RecordKind.COURSES, course)
        logger.info(
            "Seeded %d students and %d courses", len(SEED_STUDENTS), len(SEED_COURSES)
        )

    def _check_unique(self, kind: RecordKind, value: Any, exclude_id: int | None = None) -> None:
        existing = self._storage.find_by(kind, UNIQUE_FIELDS[kind], value)
        if existing is not None and existing.id != exclude_id:
            raise DuplicateKeyError(DUPLICATE_KEY_MESSAGES[kind])


def _merge(record: Record, changes: Mapping[str, Any]) -> Record:
    """Copy of the record with the given fields replaced."""
    return dataclasses.replace(record, **changes)
