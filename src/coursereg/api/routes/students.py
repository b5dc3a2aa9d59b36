"""Student CRUD endpoints."""

from fastapi import APIRouter, Query, status

from coursereg.api.dependencies import RegistryDep
from coursereg.api.listing import DEFAULT_LIMIT, DEFAULT_PAGE, MAX_LIMIT, filter_records, paginate
from coursereg.api.models import (
    CourseResponse,
    StudentCreate,
    StudentDetailResponse,
    StudentListResponse,
    StudentResponse,
    StudentUpdate,
    course_to_response,
    student_to_response,
)
from coursereg.registry import MissingFieldError, NotFoundError, RecordKind

router = APIRouter(prefix="/students", tags=["students"])

STUDENT_NOT_FOUND = "Student not found"


@router.get("", response_model=StudentListResponse)
def list_students(
    registry: RegistryDep,
    name: str | None = Query(default=None, description="Filter by name (substring)"),
    email: str | None = Query(default=None, description="Filter by email (exact)"),
    page: int = Query(default=DEFAULT_PAGE, ge=1, description="Page number"),
    limit: int = Query(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT, description="Page size"),
) -> StudentListResponse:
    """List students with optional filters and pagination."""
    students = filter_records(
        registry.list(RecordKind.STUDENTS),
        {"name": name, "email": email},
        exact=frozenset({"email"}),
    )
    return StudentListResponse(
        students=[student_to_response(s) for s in paginate(students, page, limit)],
        total=len(students),
        page=page,
        limit=limit,
    )


@router.post("", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
def create_student(registry: RegistryDep, student: StudentCreate | None = None) -> StudentResponse:
    """Create a new student."""
    if student is None or not student.name or not student.email:
        raise MissingFieldError("name and email required")
    created = registry.create(RecordKind.STUDENTS, student.model_dump())
    return student_to_response(created)


@router.get("/{student_id}", response_model=StudentDetailResponse)
def get_student(student_id: str, registry: RegistryDep) -> StudentDetailResponse:
    """Get a student and the courses they are enrolled in."""
    student = registry.get(RecordKind.STUDENTS, student_id)
    if student is None:
        raise NotFoundError(STUDENT_NOT_FOUND)
    return StudentDetailResponse(
        student=student_to_response(student),
        courses=[course_to_response(c) for c in registry.student_courses(student.id)],
    )


@router.get("/{student_id}/courses", response_model=list[CourseResponse])
def list_student_courses(student_id: str, registry: RegistryDep) -> list[CourseResponse]:
    """List the courses a student is enrolled in."""
    student = registry.get(RecordKind.STUDENTS, student_id)
    if student is None:
        raise NotFoundError(STUDENT_NOT_FOUND)
    return [course_to_response(c) for c in registry.student_courses(student.id)]


@router.put("/{student_id}", response_model=StudentResponse)
def update_student(
    student_id: str, registry: RegistryDep, student: StudentUpdate | None = None
) -> StudentResponse:
    """Update a student (partial update)."""
    changes = student.model_dump(exclude_none=True) if student is not None else {}
    if "" in changes.values():
        raise MissingFieldError("name and email cannot be empty")
    updated = registry.update(RecordKind.STUDENTS, student_id, changes)
    if updated is None:
        raise NotFoundError(STUDENT_NOT_FOUND)
    return student_to_response(updated)


@router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_student(student_id: str, registry: RegistryDep) -> None:
    """Delete a student. Refused while the student is enrolled in a course."""
    if not registry.remove(RecordKind.STUDENTS, student_id):
        raise NotFoundError(STUDENT_NOT_FOUND)
