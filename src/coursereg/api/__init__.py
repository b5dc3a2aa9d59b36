"""REST API for coursereg."""

from coursereg.api.app import app, create_app
from coursereg.api.models import (
    CourseResponse,
    EnrollmentResponse,
    ErrorResponse,
    StudentResponse,
)

__all__ = [
    "CourseResponse",
    "EnrollmentResponse",
    "ErrorResponse",
    "StudentResponse",
    "app",
    "create_app",
]
