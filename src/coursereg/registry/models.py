"""Record models for the Registry."""

from __future__ import annotations

import math
import re
from dataclasses import asdict, dataclass
from enum import StrEnum
from typing import Any

# Maximum number of students enrolled in one course
COURSE_CAPACITY = 3


class RecordKind(StrEnum):
    """Kinds of independently identified records."""

    STUDENTS = "students"
    COURSES = "courses"

    @classmethod
    def parse(cls, value: str | RecordKind) -> RecordKind:
        """Parse a kind name, accepting the singular forms as aliases."""
        if isinstance(value, RecordKind):
            return value
        name = value.strip().lower()
        if not name.endswith("s"):
            name = f"{name}s"
        return cls(name)


@dataclass(frozen=True)
class Student:
    """A student record.

    Fields are None when a create payload omitted them; the HTTP layer never does.
    """

    id: int
    name: str | None
    email: str | None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Course:
    """A course record."""

    id: int
    title: str | None
    teacher: str | None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Enrollment:
    """Relationship record linking one student to one course."""

    student_id: int
    course_id: int

    @property
    def key(self) -> tuple[int, int]:
        return (self.student_id, self.course_id)

    def to_dict(self) -> dict[str, Any]:
        return {"studentId": self.student_id, "courseId": self.course_id}


Record = Student | Course

RECORD_TYPES: dict[RecordKind, type[Student] | type[Course]] = {
    RecordKind.STUDENTS: Student,
    RecordKind.COURSES: Course,
}

# Writable fields per kind, in declaration order
RECORD_FIELDS: dict[RecordKind, tuple[str, ...]] = {
    RecordKind.STUDENTS: ("name", "email"),
    RecordKind.COURSES: ("title", "teacher"),
}

# Field that must be unique across all records of a kind
UNIQUE_FIELDS: dict[RecordKind, str] = {
    RecordKind.STUDENTS: "email",
    RecordKind.COURSES: "title",
}


# Ids outside the signed 64-bit range can never have been issued
MAX_ID = 2**63 - 1

# Plain decimal notation only: no digit separators, no non-ASCII digits
_NUMERIC_ID = re.compile(r"[+-]?\d+(\.\d*)?([eE][+-]?\d+)?", re.ASCII)


def normalize_id(value: Any) -> int | None:
    """Normalize an id-like input to an integer.

    Accepts ints, integral floats and numeric strings (surrounding whitespace
    allowed). Anything else normalizes to None, which matches no record.
    """
    number: int | None = None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            number = int(value)
    elif isinstance(value, str):
        text = value.strip()
        if _NUMERIC_ID.fullmatch(text) is None:
            return None
        try:
            number = int(text)
        except ValueError:
            return normalize_id(float(text))
    if number is None or abs(number) > MAX_ID:
        return None
    return number
