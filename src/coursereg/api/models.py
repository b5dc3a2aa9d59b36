"""Pydantic models for REST API."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Body of every error response."""

    error: str


# Student models


class StudentCreate(BaseModel):
    """Request model for creating a student.

    Fields are optional here so a missing field is reported as
    "name and email required" rather than a schema error.
    """

    name: str | None = None
    email: str | None = None


class StudentUpdate(BaseModel):
    """Request model for updating a student (partial update)."""

    name: str | None = None
    email: str | None = None


class StudentResponse(BaseModel):
    """Response model for a student."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str


def student_to_response(student: Any) -> StudentResponse:
    """Convert a Student record to StudentResponse."""
    return StudentResponse.model_validate(student)


# Course models


class CourseCreate(BaseModel):
    """Request model for creating a course."""

    title: str | None = None
    teacher: str | None = None


class CourseUpdate(BaseModel):
    """Request model for updating a course (partial update)."""

    title: str | None = None
    teacher: str | None = None


class CourseResponse(BaseModel):
    """Response model for a course."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    teacher: str


def course_to_response(course: Any) -> CourseResponse:
    """Convert a Course record to CourseResponse."""
    return CourseResponse.model_validate(course)


# List and detail views


class StudentListResponse(BaseModel):
    """One page of students."""

    students: list[StudentResponse]
    total: int
    page: int
    limit: int


class CourseListResponse(BaseModel):
    """One page of courses."""

    courses: list[CourseResponse]
    total: int
    page: int
    limit: int


class StudentDetailResponse(BaseModel):
    """A student together with the courses they are enrolled in."""

    student: StudentResponse
    courses: list[CourseResponse]


class CourseDetailResponse(BaseModel):
    """A course together with its enrolled students."""

    course: CourseResponse
    students: list[StudentResponse]


# Enrollment models


class EnrollmentResponse(BaseModel):
    """Response model for a successful enrollment."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    student_id: int = Field(alias="studentId")
    course_id: int = Field(alias="courseId")


def enrollment_to_response(enrollment: Any) -> EnrollmentResponse:
    """Convert an Enrollment record to EnrollmentResponse."""
    return EnrollmentResponse(student_id=enrollment.student_id, course_id=enrollment.course_id)
