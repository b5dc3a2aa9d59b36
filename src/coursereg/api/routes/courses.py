"""Course CRUD endpoints."""

from fastapi import APIRouter, Query, status

from coursereg.api.dependencies import RegistryDep
from coursereg.api.listing import DEFAULT_LIMIT, DEFAULT_PAGE, MAX_LIMIT, filter_records, paginate
from coursereg.api.models import (
    CourseCreate,
    CourseDetailResponse,
    CourseListResponse,
    CourseResponse,
    CourseUpdate,
    StudentResponse,
    course_to_response,
    student_to_response,
)
from coursereg.registry import MissingFieldError, NotFoundError, RecordKind

router = APIRouter(prefix="/courses", tags=["courses"])

COURSE_NOT_FOUND = "Course not found"


@router.get("", response_model=CourseListResponse)
def list_courses(
    registry: RegistryDep,
    title: str | None = Query(default=None, description="Filter by title (substring)"),
    teacher: str | None = Query(default=None, description="Filter by teacher (substring)"),
    page: int = Query(default=DEFAULT_PAGE, ge=1, description="Page number"),
    limit: int = Query(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT, description="Page size"),
) -> CourseListResponse:
    """List courses with optional filters and pagination."""
    courses = filter_records(registry.list(RecordKind.COURSES), {"title": title, "teacher": teacher})
    return CourseListResponse(
        courses=[course_to_response(c) for c in paginate(courses, page, limit)],
        total=len(courses),
        page=page,
        limit=limit,
    )


@router.post("", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
def create_course(registry: RegistryDep, course: CourseCreate | None = None) -> CourseResponse:
    """Create a new course."""
    if course is None or not course.title or not course.teacher:
        raise MissingFieldError("title and teacher required")
    created = registry.create(RecordKind.COURSES, course.model_dump())
    return course_to_response(created)


@router.get("/{course_id}", response_model=CourseDetailResponse)
def get_course(course_id: str, registry: RegistryDep) -> CourseDetailResponse:
    """Get a course and its enrolled students."""
    course = registry.get(RecordKind.COURSES, course_id)
    if course is None:
        raise NotFoundError(COURSE_NOT_FOUND)
    return CourseDetailResponse(
        course=course_to_response(course),
        students=[student_to_response(s) for s in registry.course_students(course.id)],
    )


@router.get("/{course_id}/students", response_model=list[StudentResponse])
def list_course_students(course_id: str, registry: RegistryDep) -> list[StudentResponse]:
    """List the students enrolled in a course."""
    course = registry.get(RecordKind.COURSES, course_id)
    if course is None:
        raise NotFoundError(COURSE_NOT_FOUND)
    return [student_to_response(s) for s in registry.course_students(course.id)]


@router.put("/{course_id}", response_model=CourseResponse)
def update_course(
    course_id: str, registry: RegistryDep, course: CourseUpdate | None = None
) -> CourseResponse:
    """Update a course (partial update)."""
    changes = course.model_dump(exclude_none=True) if course is not None else {}
    if "" in changes.values():
        raise MissingFieldError("title and teacher cannot be empty")
    updated = registry.update(RecordKind.COURSES, course_id, changes)
    if updated is None:
        raise NotFoundError(COURSE_NOT_FOUND)
    return course_to_response(updated)


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_course(course_id: str, registry: RegistryDep) -> None:
    """Delete a course along with its enrollments."""
    if not registry.remove(RecordKind.COURSES, course_id):
        raise NotFoundError(COURSE_NOT_FOUND)
