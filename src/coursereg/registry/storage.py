"""Raw record storage for the Registry.

Storage backends hold the three collections and assign ids. They enforce no
business rules: uniqueness, capacity and deletion policy live in the Registry.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Protocol

from sqlalchemy import delete, func, select

from coursereg.registry.database import Database
from coursereg.registry.models import (
    RECORD_FIELDS,
    RECORD_TYPES,
    UNIQUE_FIELDS,
    Enrollment,
    Record,
    RecordKind,
)
from coursereg.registry.tables import CourseRow, EnrollmentRow, StudentRow

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

STORAGE_BACKENDS = ("memory", "sql")


class Storage(Protocol):
    """Interface for a raw storage backend."""

    def add(self, kind: RecordKind, fields: Mapping[str, Any]) -> Record:
        """Assign the next id for the kind and append a new record."""
        ...

    def all(self, kind: RecordKind) -> list[Record]:
        """All records of a kind in insertion order."""
        ...

    def find(self, kind: RecordKind, record_id: int) -> Record | None:
        """Record with the given id, if any."""
        ...

    def find_by(self, kind: RecordKind, field: str, value: Any) -> Record | None:
        """First record whose field equals value, if any."""
        ...

    def replace(self, kind: RecordKind, record: Record) -> Record:
        """Overwrite the stored record with the same id."""
        ...

    def delete(self, kind: RecordKind, record_id: int) -> bool:
        """Delete a record. Returns False if it did not exist."""
        ...

    def add_enrollment(self, student_id: int, course_id: int) -> Enrollment:
        """Append an enrollment pair."""
        ...

    def find_enrollment(self, student_id: int, course_id: int) -> Enrollment | None:
        """Enrollment for the pair, if any."""
        ...

    def enrollments(
        self, student_id: int | None = None, course_id: int | None = None
    ) -> list[Enrollment]:
        """Enrollments in insertion order, optionally filtered."""
        ...

    def count_enrollments(
        self, student_id: int | None = None, course_id: int | None = None
    ) -> int:
        """Number of enrollments, optionally filtered."""
        ...

    def delete_enrollment(self, student_id: int, course_id: int) -> bool:
        """Delete one enrollment pair. Returns False if it did not exist."""
        ...

    def delete_enrollments_for_course(self, course_id: int) -> int:
        """Delete every enrollment of a course. Returns the number deleted."""
        ...

    def clear(self) -> None:
        """Drop all records and reset id counters to 1."""
        ...

    def close(self) -> None:
        """Release backend resources."""
        ...


class MemoryStorage:
    """Storage backed by insertion-ordered dicts.

    Keeps an index on each kind's unique field so uniqueness checks and id
    lookups are O(1).
    """

    def __init__(self) -> None:
        self._records: dict[RecordKind, dict[int, Record]] = {}
        self._unique_index: dict[RecordKind, dict[Any, int]] = {}
        self._next_id: dict[RecordKind, int] = {}
        self._enrollments: dict[tuple[int, int], Enrollment] = {}
        self.clear()

    def add(self, kind: RecordKind, fields: Mapping[str, Any]) -> Record:
        record_id = self._next_id[kind]
        record = RECORD_TYPES[kind](record_id, *(fields[f] for f in RECORD_FIELDS[kind]))
        key = self._index_key(kind, record)
        self._records[kind][record_id] = record
        self._unique_index[kind][key] = record_id
        self._next_id[kind] = record_id + 1
        return record

    def all(self, kind: RecordKind) -> list[Record]:
        return list(self._records[kind].values())

    def find(self, kind: RecordKind, record_id: int) -> Record | None:
        return self._records[kind].get(record_id)

    def find_by(self, kind: RecordKind, field: str, value: Any) -> Record | None:
        if field == UNIQUE_FIELDS[kind]:
            record_id = self._unique_index[kind].get(value)
            return None if record_id is None else self._records[kind][record_id]
        for record in self._records[kind].values():
            if getattr(record, field) == value:
                return record
        return None

    def replace(self, kind: RecordKind, record: Record) -> Record:
        previous = self._records[kind][record.id]
        key = self._index_key(kind, record)
        self._unindex(kind, previous)
        self._records[kind][record.id] = record
        self._unique_index[kind][key] = record.id
        return record

    def delete(self, kind: RecordKind, record_id: int) -> bool:
        record = self._records[kind].pop(record_id, None)
        if record is None:
            return False
        self._unindex(kind, record)
        return True

    def add_enrollment(self, student_id: int, course_id: int) -> Enrollment:
        enrollment = Enrollment(student_id=student_id, course_id=course_id)
        self._enrollments[enrollment.key] = enrollment
        return enrollment

    def find_enrollment(self, student_id: int, course_id: int) -> Enrollment | None:
        return self._enrollments.get((student_id, course_id))

    def enrollments(
        self, student_id: int | None = None, course_id: int | None = None
    ) -> list[Enrollment]:
        return [
            e
            for e in self._enrollments.values()
            if (student_id is None or e.student_id == student_id)
            and (course_id is None or e.course_id == course_id)
        ]

    def count_enrollments(
        self, student_id: int | None = None, course_id: int | None = None
    ) -> int:
        return len(self.enrollments(student_id=student_id, course_id=course_id))

    def delete_enrollment(self, student_id: int, course_id: int) -> bool:
        return self._enrollments.pop((student_id, course_id), None) is not None

    def delete_enrollments_for_course(self, course_id: int) -> int:
        keys = [key for key in self._enrollments if key[1] == course_id]
        for key in keys:
            del self._enrollments[key]
        return len(keys)

    def clear(self) -> None:
        for kind in RecordKind:
            self._records[kind] = {}
            self._unique_index[kind] = {}
            self._next_id[kind] = 1
        self._enrollments = {}

    def close(self) -> None:
        pass

    def _index_key(self, kind: RecordKind, record: Record) -> Any:
        """Unique-field value of the record, checked to be usable as an index key.

        Raises:
            TypeError: If the value is unhashable. Nothing has been stored yet.
        """
        key = getattr(record, UNIQUE_FIELDS[kind])
        hash(key)
        return key

    def _unindex(self, kind: RecordKind, record: Record) -> None:
        key = getattr(record, UNIQUE_FIELDS[kind])
        if self._unique_index[kind].get(key) == record.id:
            del self._unique_index[kind][key]


_ROW_TYPES: dict[RecordKind, type[StudentRow] | type[CourseRow]] = {
    RecordKind.STUDENTS: StudentRow,
    RecordKind.COURSES: CourseRow,
}


class SqlStorage:
    """Storage backed by SQLAlchemy tables on an in-memory SQLite database."""

    def __init__(self) -> None:
        self._db = Database()
        self._db.create_tables()

    @contextmanager
    def _session(self) -> Iterator[Session]:
        """Session committed on success, rolled back on error, always closed."""
        session = self._db.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def add(self, kind: RecordKind, fields: Mapping[str, Any]) -> Record:
        with self._session() as session:
            row = _ROW_TYPES[kind](**{f: fields[f] for f in RECORD_FIELDS[kind]})
            session.add(row)
            session.flush()
            return row.to_record()

    def all(self, kind: RecordKind) -> list[Record]:
        row_type = _ROW_TYPES[kind]
        with self._session() as session:
            rows = session.execute(select(row_type).order_by(row_type.id)).scalars()
            return [row.to_record() for row in rows]

    def find(self, kind: RecordKind, record_id: int) -> Record | None:
        with self._session() as session:
            row = session.get(_ROW_TYPES[kind], record_id)
            return None if row is None else row.to_record()

    def find_by(self, kind: RecordKind, field: str, value: Any) -> Record | None:
        row_type = _ROW_TYPES[kind]
        stmt = select(row_type).where(getattr(row_type, field) == value).order_by(row_type.id)
        with self._session() as session:
            row = session.execute(stmt).scalars().first()
            return None if row is None else row.to_record()

    def replace(self, kind: RecordKind, record: Record) -> Record:
        with self._session() as session:
            row = session.get(_ROW_TYPES[kind], record.id)
            if row is None:
                raise KeyError(record.id)
            for field in RECORD_FIELDS[kind]:
                setattr(row, field, getattr(record, field))
            session.flush()
            return row.to_record()

    def delete(self, kind: RecordKind, record_id: int) -> bool:
        with self._session() as session:
            row = session.get(_ROW_TYPES[kind], record_id)
            if row is None:
                return False
            session.delete(row)
            return True

    def add_enrollment(self, student_id: int, course_id: int) -> Enrollment:
        with self._session() as session:
            row = EnrollmentRow(student_id=student_id, course_id=course_id)
            session.add(row)
            session.flush()
            return row.to_record()

    def find_enrollment(self, student_id: int, course_id: int) -> Enrollment | None:
        stmt = select(EnrollmentRow).where(
            EnrollmentRow.student_id == student_id,
            EnrollmentRow.course_id == course_id,
        )
        with self._session() as session:
            row = session.execute(stmt).scalar_one_or_none()
            return None if row is None else row.to_record()

    def enrollments(
        self, student_id: int | None = None, course_id: int | None = None
    ) -> list[Enrollment]:
        stmt = select(EnrollmentRow).order_by(EnrollmentRow.seq)
        if student_id is not None:
            stmt = stmt.where(EnrollmentRow.student_id == student_id)
        if course_id is not None:
            stmt = stmt.where(EnrollmentRow.course_id == course_id)
        with self._session() as session:
            return [row.to_record() for row in session.execute(stmt).scalars()]

    def count_enrollments(
        self, student_id: int | None = None, course_id: int | None = None
    ) -> int:
        stmt = select(func.count()).select_from(EnrollmentRow)
        if student_id is not None:
            stmt = stmt.where(EnrollmentRow.student_id == student_id)
        if course_id is not None:
            stmt = stmt.where(EnrollmentRow.course_id == course_id)
        with self._session() as session:
            return session.execute(stmt).scalar_one()

    def delete_enrollment(self, student_id: int, course_id: int) -> bool:
        stmt = delete(EnrollmentRow).where(
            EnrollmentRow.student_id == student_id,
            EnrollmentRow.course_id == course_id,
        )
        with self._session() as session:
            return session.execute(stmt).rowcount > 0

    def delete_enrollments_for_course(self, course_id: int) -> int:
        stmt = delete(EnrollmentRow).where(EnrollmentRow.course_id == course_id)
        with self._session() as session:
            return session.execute(stmt).rowcount

    def clear(self) -> None:
        self._db.drop_tables()
        self._db.create_tables()

    def close(self) -> None:
        self._db.close()


def create_storage(backend: str = "memory") -> Storage:
    """Create a storage backend by name ("memory" or "sql")."""
    if backend == "memory":
        return MemoryStorage()
    if backend == "sql":
        return SqlStorage()
    raise ValueError(
        f"Unknown storage backend '{backend}', expected one of: {', '.join(STORAGE_BACKENDS)}"
    )
