"""Registry - In-memory store of students, courses and enrollments."""

from coursereg.registry.exceptions import (
    BlockedByRelationshipError,
    CapacityExceededError,
    ConflictError,
    DuplicateKeyError,
    MissingFieldError,
    NotFoundError,
    RegistryError,
)
from coursereg.registry.models import (
    COURSE_CAPACITY,
    Course,
    Enrollment,
    Record,
    RecordKind,
    Student,
    normalize_id,
)
from coursereg.registry.registry import Registry
from coursereg.registry.storage import (
    STORAGE_BACKENDS,
    MemoryStorage,
    SqlStorage,
    Storage,
    create_storage,
)

__all__ = [
    "COURSE_CAPACITY",
    "STORAGE_BACKENDS",
    "BlockedByRelationshipError",
    "CapacityExceededError",
    "ConflictError",
    "Course",
    "DuplicateKeyError",
    "Enrollment",
    "MemoryStorage",
    "MissingFieldError",
    "NotFoundError",
    "Record",
    "RecordKind",
    "Registry",
    "RegistryError",
    "SqlStorage",
    "Storage",
    "Student",
    "create_storage",
    "normalize_id",
]
