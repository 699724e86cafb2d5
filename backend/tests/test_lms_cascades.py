"""
Cascade engine: ordered dependent deletes for courses, assignments and users,
all-or-nothing on failure.
"""
from __future__ import annotations

import pytest

from lms.domain import ASSIGNMENTS, COURSES, ENROLLMENTS, MATERIALS, SUBMISSIONS, USERS
from lms.errors import BlockedError
from lms.integrity import cascade_delete_assignment, cascade_delete_course, cascade_delete_user
from lms.services.assignments import AssignmentsService
from lms.services.courses import CoursesService
from lms.services.enrollments import EnrollmentsService
from lms.services.materials import MaterialsService
from lms.services.submissions import SubmissionsService
from lms.services.users import UsersService


def _seed(store):
    """Two courses of one teacher; one student enrolled in both with a submission each."""
    users = UsersService(store)
    teacher = users.create_user(email="t@example.com", first_name="T", last_name="One", role="teacher")
    student = users.create_user(email="s@example.com", first_name="S", last_name="One", role="student")
    courses = CoursesService(store)
    keep = courses.create_course(name="Keep", description=None, teacher_id=teacher["id"])
    drop = courses.create_course(name="Drop", description="gone soon", teacher_id=teacher["id"])
    enrollments = EnrollmentsService(store)
    assignments = AssignmentsService(store)
    submissions = SubmissionsService(store)
    out = {"teacher": teacher, "student": student, "keep": keep, "drop": drop}
    for course in (keep, drop):
        enrollments.create_enrollment(student_id=student["id"], course_id=course["id"])
        MaterialsService(store).create_course_material(course_id=course["id"], title="Notes")
        assignment = assignments.create_assignment(
            course_id=course["id"], title="Essay", description=None, due_date=None
        )
        submissions.create_assignment_submission(
            assignment_id=assignment["id"], student_id=student["id"], content="Done"
        )
        out[f"{course['name'].lower()}_assignment"] = assignment
    return out


def test_delete_course_removes_dependents_and_spares_other_courses(store):
    seed = _seed(store)
    drop_id = seed["drop"]["id"]

    report = cascade_delete_course(store, drop_id)

    assert report.deleted
    assert report.removed == {SUBMISSIONS: 1, ASSIGNMENTS: 1, MATERIALS: 1, ENROLLMENTS: 1, COURSES: 1}
    assert store.get(COURSES, drop_id) is None
    for table in (ENROLLMENTS, MATERIALS, ASSIGNMENTS):
        assert store.count(table, course_id=drop_id) == 0
    assert store.count(SUBMISSIONS, assignment_id=seed["drop_assignment"]["id"]) == 0
    # The other course keeps everything.
    keep_id = seed["keep"]["id"]
    assert store.count(ENROLLMENTS, course_id=keep_id) == 1
    assert store.count(MATERIALS, course_id=keep_id) == 1
    assert store.count(ASSIGNMENTS, course_id=keep_id) == 1
    assert store.count(SUBMISSIONS, assignment_id=seed["keep_assignment"]["id"]) == 1


def test_delete_missing_course_reports_nothing(store):
    report = cascade_delete_course(store, 404)
    assert not report.deleted
    assert CoursesService(store).delete_course(404) is True


def test_delete_assignment_removes_its_submissions(store):
    seed = _seed(store)
    assignment_id = seed["keep_assignment"]["id"]
    report = cascade_delete_assignment(store, assignment_id)
    assert report.removed == {SUBMISSIONS: 1, ASSIGNMENTS: 1}
    assert store.get(ASSIGNMENTS, assignment_id) is None
    assert store.count(SUBMISSIONS, student_id=seed["student"]["id"]) == 1


def test_delete_missing_assignment_returns_false(store):
    assert AssignmentsService(store).delete_assignment(77) is False


def test_delete_student_removes_enrollments_and_submissions(store):
    seed = _seed(store)
    student_id = seed["student"]["id"]
    report = cascade_delete_user(store, student_id)
    assert report.removed == {ENROLLMENTS: 2, SUBMISSIONS: 2, USERS: 1}
    assert store.count(ENROLLMENTS, student_id=student_id) == 0
    assert store.count(SUBMISSIONS, student_id=student_id) == 0
    # Courses, materials and assignments remain.
    assert store.count(COURSES) == 2
    assert store.count(ASSIGNMENTS) == 2


def test_blocked_teacher_delete_changes_nothing_then_succeeds(store):
    seed = _seed(store)
    teacher_id = seed["teacher"]["id"]
    before = {t: store.count(t) for t in (USERS, COURSES, ENROLLMENTS, MATERIALS, ASSIGNMENTS, SUBMISSIONS)}

    with pytest.raises(BlockedError):
        cascade_delete_user(store, teacher_id)
    assert {t: store.count(t) for t in before} == before

    courses = CoursesService(store)
    courses.delete_course(seed["keep"]["id"])
    courses.delete_course(seed["drop"]["id"])
    assert UsersService(store).delete_user(teacher_id) is True
    assert store.get(USERS, teacher_id) is None


def test_failed_cascade_rolls_back_partial_deletes(store, monkeypatch: pytest.MonkeyPatch):
    seed = _seed(store)
    drop_id = seed["drop"]["id"]
    original = store.delete_where

    def failing_delete_where(table, **where):
        if table == ENROLLMENTS:
            raise RuntimeError("boom")
        return original(table, **where)

    monkeypatch.setattr(store, "delete_where", failing_delete_where)
    with pytest.raises(RuntimeError):
        cascade_delete_course(store, drop_id)

    # Submissions, assignment and materials deleted before the failure are back.
    assert store.get(COURSES, drop_id) is not None
    assert store.count(ASSIGNMENTS, course_id=drop_id) == 1
    assert store.count(MATERIALS, course_id=drop_id) == 1
    assert store.count(SUBMISSIONS, assignment_id=seed["drop_assignment"]["id"]) == 1
