"""
Postgres store against a live database (skips unless LMS_TEST_DSN is reachable).

The tables are truncated before every test; point LMS_TEST_DSN at a
disposable database only.
"""
from __future__ import annotations

import pytest

from lms.domain import COURSES, ENROLLMENTS, SUBMISSIONS, TABLES, USERS
from lms.errors import BlockedError, ConflictError
from lms.integrity import cascade_delete_course
from lms.services.assignments import AssignmentsService
from lms.services.courses import CoursesService
from lms.services.enrollments import EnrollmentsService
from lms.services.submissions import SubmissionsService
from lms.services.users import UsersService
from utils.db import require_db_or_skip

pytestmark = pytest.mark.db


@pytest.fixture
def db_store():
    dsn = require_db_or_skip()
    import psycopg
    from lms.repo_db import DBStore

    store = DBStore(dsn)
    store.apply_schema()
    with psycopg.connect(dsn) as conn:
        conn.execute("truncate table " + ", ".join(reversed(TABLES)) + " restart identity cascade")
    return store


def test_unique_email_maps_to_conflict(db_store):
    users = UsersService(db_store)
    users.create_user(email="live@example.com", first_name="L", last_name="V", role="student")
    with pytest.raises(ConflictError) as exc:
        # Bypass the service pre-check to hit the database constraint.
        db_store.insert(USERS, {"email": "live@example.com", "first_name": "X", "last_name": "Y", "role": "student"})
    assert exc.value.code == "email_taken"


def test_restrict_fk_maps_to_referenced_conflict(db_store):
    teacher = UsersService(db_store).create_user(email="t@example.com", first_name="T", last_name="T", role="teacher")
    CoursesService(db_store).create_course(name="C", description=None, teacher_id=teacher["id"])
    with pytest.raises(ConflictError) as exc:
        db_store.delete(USERS, teacher["id"])
    assert exc.value.code == "user_referenced"


def test_grading_scenario_and_course_cascade(db_store):
    users = UsersService(db_store)
    teacher = users.create_user(email="t@example.com", first_name="T", last_name="T", role="teacher")
    student = users.create_user(email="s@example.com", first_name="S", last_name="S", role="student")
    course = CoursesService(db_store).create_course(name="Live", description=None, teacher_id=teacher["id"])
    assignment = AssignmentsService(db_store).create_assignment(course_id=course["id"], title="A1")
    EnrollmentsService(db_store).create_enrollment(student_id=student["id"], course_id=course["id"])
    submissions = SubmissionsService(db_store)
    sub = submissions.create_assignment_submission(assignment_id=assignment["id"], student_id=student["id"])
    assert submissions.get_student_submissions(student["id"])[0]["grade"] is None
    submissions.grade_submission(sub["id"], grade=85.5)
    assert submissions.get_student_submissions(student["id"])[0]["grade"] == 85.5

    with pytest.raises(BlockedError):
        users.delete_user(teacher["id"])

    report = cascade_delete_course(db_store, course["id"])
    assert report.deleted
    assert db_store.count(COURSES) == 0
    assert db_store.count(ENROLLMENTS) == 0
    assert db_store.count(SUBMISSIONS) == 0
    assert users.delete_user(teacher["id"]) is True


def test_transaction_rolls_back(db_store):
    with pytest.raises(RuntimeError):
        with db_store.transaction():
            db_store.insert(USERS, {"email": "gone@example.com", "first_name": "G", "last_name": "O", "role": "student"})
            raise RuntimeError("abort")
    assert db_store.count(USERS) == 0
