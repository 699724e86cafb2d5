"""
Referential-integrity checks and ordered cascades.

Why:
    The schema keeps foreign keys as plain RESTRICT references, so every
    parent delete must first remove its dependents in a fixed order. All
    checks run before the first write; every cascade runs inside one
    ``store.transaction()`` so a failure part-way leaves nothing changed.

Order:
    delete course:     submissions of each assignment -> assignments ->
                       materials -> enrollments -> course
    delete assignment: submissions -> assignment
    delete user:       student: enrollments -> submissions -> user
                       teacher: blocked while any course references them
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict

from .domain import (
    ASSIGNMENTS,
    COURSE_OWNER_ROLES,
    COURSES,
    ENROLLMENTS,
    MATERIALS,
    SUBMISSIONS,
    USERS,
)
from .errors import BlockedError, ConflictError, InvalidRoleError, NotFoundError
from .store import StoreProtocol

logger = logging.getLogger("lms.integrity")


@dataclass
class CascadeReport:
    """Rows removed per table by one cascade (the root row included)."""

    root: str
    root_id: int
    removed: Dict[str, int] = field(default_factory=dict)

    @property
    def deleted(self) -> bool:
        return self.removed.get(self.root, 0) > 0

    def add(self, table: str, count: int) -> None:
        self.removed[table] = self.removed.get(table, 0) + int(count)


# --- Reference checks --------------------------------------------------------------


def require_user(store: StoreProtocol, user_id: int, *, code: str = "user_not_found") -> dict:
    user = store.get(USERS, user_id)
    if user is None:
        raise NotFoundError(code)
    return user


def require_course(store: StoreProtocol, course_id: int) -> dict:
    course = store.get(COURSES, course_id)
    if course is None:
        raise NotFoundError("course_not_found")
    return course


def require_assignment(store: StoreProtocol, assignment_id: int) -> dict:
    assignment = store.get(ASSIGNMENTS, assignment_id)
    if assignment is None:
        raise NotFoundError("assignment_not_found")
    return assignment


def require_course_owner(store: StoreProtocol, teacher_id: int) -> dict:
    """Course creation: owner must exist and be a teacher or administrator."""
    user = require_user(store, teacher_id, code="teacher_not_found")
    if user["role"] not in COURSE_OWNER_ROLES:
        raise InvalidRoleError("not_a_teacher", "User must be a teacher or administrator to own a course")
    return user


def require_teacher(store: StoreProtocol, teacher_id: int) -> dict:
    """Course reassignment: new owner must have the teacher role exactly."""
    user = require_user(store, teacher_id, code="teacher_not_found")
    if user["role"] != "teacher":
        raise InvalidRoleError("not_a_teacher", "User must be a teacher")
    return user


def require_student(store: StoreProtocol, student_id: int) -> dict:
    user = require_user(store, student_id, code="student_not_found")
    if user["role"] != "student":
        raise InvalidRoleError("not_a_student", "User must be a student")
    return user


def check_enrollment_allowed(store: StoreProtocol, student_id: int, course_id: int) -> None:
    require_student(store, student_id)
    require_course(store, course_id)
    if store.count(ENROLLMENTS, student_id=student_id, course_id=course_id):
        raise ConflictError("already_enrolled", "Student is already enrolled in this course")


def check_submission_allowed(store: StoreProtocol, assignment_id: int, student_id: int) -> dict:
    """Return the assignment after checking the student may submit to it."""
    assignment = require_assignment(store, assignment_id)
    require_student(store, student_id)
    if not store.count(ENROLLMENTS, student_id=student_id, course_id=assignment["course_id"]):
        raise ConflictError("not_enrolled", "Student is not enrolled in the course for this assignment")
    if store.count(SUBMISSIONS, assignment_id=assignment_id, student_id=student_id):
        raise ConflictError("already_submitted", "Student has already submitted this assignment")
    return assignment


def check_email_available(store: StoreProtocol, email: str, *, user_id: int | None = None) -> None:
    for other in store.find(USERS, email=email):
        if other["id"] != user_id:
            raise ConflictError("email_taken", "A user with this email already exists")


# --- Cascades ----------------------------------------------------------------------


def _remove_assignment(store: StoreProtocol, assignment_id: int, report: CascadeReport) -> None:
    report.add(SUBMISSIONS, store.delete_where(SUBMISSIONS, assignment_id=assignment_id))
    report.add(ASSIGNMENTS, 1 if store.delete(ASSIGNMENTS, assignment_id) else 0)


def cascade_delete_assignment(store: StoreProtocol, assignment_id: int) -> CascadeReport:
    report = CascadeReport(ASSIGNMENTS, assignment_id)
    with store.transaction():
        _remove_assignment(store, assignment_id, report)
    if report.deleted:
        logger.info("deleted assignment id=%s removed=%s", assignment_id, report.removed)
    return report


def cascade_delete_course(store: StoreProtocol, course_id: int) -> CascadeReport:
    report = CascadeReport(COURSES, course_id)
    with store.transaction():
        for assignment in store.find(ASSIGNMENTS, course_id=course_id):
            _remove_assignment(store, assignment["id"], report)
        report.add(MATERIALS, store.delete_where(MATERIALS, course_id=course_id))
        report.add(ENROLLMENTS, store.delete_where(ENROLLMENTS, course_id=course_id))
        report.add(COURSES, 1 if store.delete(COURSES, course_id) else 0)
    if report.deleted:
        logger.info("deleted course id=%s removed=%s", course_id, report.removed)
    return report


def cascade_delete_user(store: StoreProtocol, user_id: int) -> CascadeReport:
    report = CascadeReport(USERS, user_id)
    with store.transaction():
        user = require_user(store, user_id)
        if user["role"] == "student":
            report.add(ENROLLMENTS, store.delete_where(ENROLLMENTS, student_id=user_id))
            report.add(SUBMISSIONS, store.delete_where(SUBMISSIONS, student_id=user_id))
        elif user["role"] == "teacher":
            owned = store.count(COURSES, teacher_id=user_id)
            if owned > 0:
                raise BlockedError(
                    "teacher_has_courses",
                    f"Cannot delete teacher: user has {owned} active courses",
                )
        report.add(USERS, 1 if store.delete(USERS, user_id) else 0)
    logger.info("deleted user id=%s role=%s removed=%s", user_id, user["role"], report.removed)
    return report


__all__ = [
    "CascadeReport",
    "require_user",
    "require_course",
    "require_assignment",
    "require_course_owner",
    "require_teacher",
    "require_student",
    "check_enrollment_allowed",
    "check_submission_allowed",
    "check_email_available",
    "cascade_delete_assignment",
    "cascade_delete_course",
    "cascade_delete_user",
]
