"""Unit tests for the raw storage backends."""

from collections.abc import Iterator

import pytest

from coursereg.registry import (
    Course,
    Enrollment,
    MemoryStorage,
    RecordKind,
    SqlStorage,
    Storage,
    Student,
    create_storage,
)


@pytest.fixture(params=["memory", "sql"])
def storage(request: pytest.FixtureRequest) -> Iterator[Storage]:
    """A fresh storage backend of each kind."""
    s = create_storage(request.param)
    yield s
    s.close()


def _add_student(storage: Storage, name: str) -> Student:
    record = storage.add(
        RecordKind.STUDENTS, {"name": name, "email": f"{name.lower()}@example.com"}
    )
    assert isinstance(record, Student)
    return record


@pytest.mark.unit
class TestCreateStorage:
    """Tests for create_storage."""

    def test_memory_backend(self) -> None:
        assert isinstance(create_storage("memory"), MemoryStorage)

    def test_sql_backend(self) -> None:
        storage = create_storage("sql")
        try:
            assert isinstance(storage, SqlStorage)
        finally:
            storage.close()

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError, match="Unknown storage backend 'redis'"):
            create_storage("redis")


@pytest.mark.unit
class TestRecords:
    """Tests for record storage."""

    def test_add_assigns_sequential_ids(self, storage: Storage) -> None:
        first = _add_student(storage, "Alice")
        second = _add_student(storage, "Bob")

        assert (first.id, second.id) == (1, 2)

    def test_all_in_insertion_order(self, storage: Storage) -> None:
        for name in ("Zed", "Amy", "Kim"):
            _add_student(storage, name)

        assert [s.name for s in storage.all(RecordKind.STUDENTS)] == ["Zed", "Amy", "Kim"]

    def test_find(self, storage: Storage) -> None:
        course = storage.add(RecordKind.COURSES, {"title": "Math", "teacher": "Mr. Smith"})

        assert storage.find(RecordKind.COURSES, course.id) == Course(1, "Math", "Mr. Smith")
        assert storage.find(RecordKind.COURSES, 2) is None
        assert storage.find(RecordKind.STUDENTS, course.id) is None

    def test_find_by_unique_field(self, storage: Storage) -> None:
        alice = _add_student(storage, "Alice")

        assert storage.find_by(RecordKind.STUDENTS, "email", "alice@example.com") == alice
        assert storage.find_by(RecordKind.STUDENTS, "email", "ALICE@example.com") is None

    def test_find_by_other_field(self, storage: Storage) -> None:
        storage.add(RecordKind.COURSES, {"title": "Math", "teacher": "Mr. Smith"})
        physics = storage.add(RecordKind.COURSES, {"title": "Physics", "teacher": "Dr. Brown"})

        assert storage.find_by(RecordKind.COURSES, "teacher", "Dr. Brown") == physics

    def test_replace_updates_unique_lookup(self, storage: Storage) -> None:
        alice = _add_student(storage, "Alice")

        storage.replace(RecordKind.STUDENTS, Student(alice.id, "Alice", "new@example.com"))

        assert storage.find_by(RecordKind.STUDENTS, "email", "alice@example.com") is None
        assert storage.find_by(RecordKind.STUDENTS, "email", "new@example.com") is not None

    def test_delete(self, storage: Storage) -> None:
        alice = _add_student(storage, "Alice")

        assert storage.delete(RecordKind.STUDENTS, alice.id) is True
        assert storage.delete(RecordKind.STUDENTS, alice.id) is False
        assert storage.find_by(RecordKind.STUDENTS, "email", "alice@example.com") is None

    def test_deleted_ids_not_reused(self, storage: Storage) -> None:
        _add_student(storage, "Alice")
        bob = _add_student(storage, "Bob")
        storage.delete(RecordKind.STUDENTS, bob.id)

        assert _add_student(storage, "Carol").id == 3

    def test_clear_resets_counters(self, storage: Storage) -> None:
        _add_student(storage, "Alice")
        storage.add(RecordKind.COURSES, {"title": "Math", "teacher": "Mr. Smith"})
        storage.add_enrollment(1, 1)

        storage.clear()

        assert storage.all(RecordKind.STUDENTS) == []
        assert storage.enrollments() == []
        assert _add_student(storage, "Bob").id == 1


@pytest.mark.unit
class TestEnrollments:
    """Tests for enrollment storage."""

    @pytest.fixture
    def populated(self, storage: Storage) -> Storage:
        for name in ("Alice", "Bob"):
            _add_student(storage, name)
        for title in ("Math", "Physics"):
            storage.add(RecordKind.COURSES, {"title": title, "teacher": "T"})
        storage.add_enrollment(1, 2)
        storage.add_enrollment(2, 2)
        storage.add_enrollment(1, 1)
        return storage

    def test_enrollments_in_insertion_order(self, populated: Storage) -> None:
        assert [e.key for e in populated.enrollments()] == [(1, 2), (2, 2), (1, 1)]

    def test_enrollments_filtered(self, populated: Storage) -> None:
        assert [e.course_id for e in populated.enrollments(student_id=1)] == [2, 1]
        assert [e.student_id for e in populated.enrollments(course_id=2)] == [1, 2]

    def test_find_enrollment(self, populated: Storage) -> None:
        assert populated.find_enrollment(2, 2) == Enrollment(2, 2)
        assert populated.find_enrollment(2, 1) is None

    def test_count_enrollments(self, populated: Storage) -> None:
        assert populated.count_enrollments() == 3
        assert populated.count_enrollments(course_id=2) == 2
        assert populated.count_enrollments(student_id=2) == 1

    def test_delete_enrollment(self, populated: Storage) -> None:
        assert populated.delete_enrollment(1, 2) is True
        assert populated.delete_enrollment(1, 2) is False
        assert populated.count_enrollments() == 2

    def test_delete_enrollments_for_course(self, populated: Storage) -> None:
        assert populated.delete_enrollments_for_course(2) == 2
        assert [e.key for e in populated.enrollments()] == [(1, 1)]


@pytest.mark.unit
class TestMemoryStorageWrites:
    """A failed write leaves MemoryStorage exactly as it was."""

    def test_add_with_unhashable_key_stores_nothing(self) -> None:
        storage = MemoryStorage()

        with pytest.raises(TypeError):
            storage.add(RecordKind.STUDENTS, {"name": "x", "email": ["a"]})

        assert storage.all(RecordKind.STUDENTS) == []
        assert _add_student(storage, "Alice").id == 1

    def test_replace_with_unhashable_key_keeps_record(self) -> None:
        storage = MemoryStorage()
        alice = _add_student(storage, "Alice")

        with pytest.raises(TypeError):
            storage.replace(RecordKind.STUDENTS, Student(alice.id, "Alice", ["a"]))

        assert storage.find(RecordKind.STUDENTS, alice.id) == alice
        assert storage.find_by(RecordKind.STUDENTS, "email", "alice@example.com") == alice

    def test_find_by_unhashable_unique_value_raises(self) -> None:
        with pytest.raises(TypeError):
            MemoryStorage().find_by(RecordKind.STUDENTS, "email", ["a"])
