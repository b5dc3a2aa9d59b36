"""Enrollment endpoints."""

from fastapi import APIRouter, HTTPException, status

from coursereg.api.dependencies import RegistryDep
from coursereg.api.models import EnrollmentResponse, enrollment_to_response
from coursereg.registry import NotFoundError

router = APIRouter(prefix="/courses/{course_id}/students", tags=["enrollments"])


@router.post(
    "/{student_id}",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
)
def enroll_student(course_id: str, student_id: str, registry: RegistryDep) -> EnrollmentResponse:
    """Enroll a student in a course."""
    try:
        enrollment = registry.enroll(student_id, course_id)
    except NotFoundError as e:
        # Unknown course or student is reported as 400 on enroll
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    return enrollment_to_response(enrollment)


@router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
def unenroll_student(course_id: str, student_id: str, registry: RegistryDep) -> None:
    """Remove a student from a course."""
    registry.unenroll(student_id, course_id)
