"""SQLAlchemy tables for the SQL storage backend."""

from __future__ import annotations

from typing import Any

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from coursereg.registry.models import Course, Enrollment, Student


class Base(DeclarativeBase):
    """Base class for all tables."""

    pass


class StudentRow(Base):
    """Students table."""

    __tablename__ = "students"
    # AUTOINCREMENT keeps SQLite from reusing the ids of deleted rows
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Presence of fields is checked by the HTTP layer, not by storage
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)

    def to_record(self) -> Student:
        return Student(id=self.id, name=self.name, email=self.email)

    def __repr__(self) -> str:
        return f"<StudentRow(id={self.id!r}, email={self.email!r})>"


class CourseRow(Base):
    """Courses table."""

    __tablename__ = "courses"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)
    teacher: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def to_record(self) -> Course:
        return Course(id=self.id, title=self.title, teacher=self.teacher)

    def __repr__(self) -> str:
        return f"<CourseRow(id={self.id!r}, title={self.title!r})>"


class EnrollmentRow(Base):
    """Enrollments table.

    ``seq`` records insertion order; the pair itself is the logical key.
    """

    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_enrollment_pair"),
        {"sqlite_autoincrement": True},
    )

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(Integer, ForeignKey("students.id"), nullable=False)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), nullable=False)

    def __init__(self, student_id: int, course_id: int, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.student_id = student_id
        self.course_id = course_id

    def to_record(self) -> Enrollment:
        return Enrollment(student_id=self.student_id, course_id=self.course_id)

    def __repr__(self) -> str:
        return f"<EnrollmentRow(student_id={self.student_id!r}, course_id={self.course_id!r})>"
