"""
LMS domain constants and small helpers.

Why:
- Centralize roles and table names so services, stores and the web layer use
  the same vocabulary.
- Records travel as plain dicts; the column tuples below define their shape.
"""

from __future__ import annotations

from datetime import datetime, timezone

# Immutable to prevent accidental mutation.
ROLES = ("student", "teacher", "administrator")
ALLOWED_ROLES = frozenset(ROLES)

# Roles that may own a course on creation. Reassignment accepts "teacher" only.
COURSE_OWNER_ROLES = frozenset({"teacher", "administrator"})

USERS = "users"
COURSES = "courses"
ENROLLMENTS = "enrollments"
MATERIALS = "course_materials"
ASSIGNMENTS = "assignments"
SUBMISSIONS = "assignment_submissions"

COLUMNS: dict[str, tuple[str, ...]] = {
    USERS: ("id", "email", "first_name", "last_name", "role", "created_at", "updated_at"),
    COURSES: ("id", "name", "description", "teacher_id", "created_at", "updated_at"),
    ENROLLMENTS: ("id", "student_id", "course_id", "enrolled_at"),
    MATERIALS: ("id", "course_id", "title", "content", "file_url", "created_at", "updated_at"),
    ASSIGNMENTS: ("id", "course_id", "title", "description", "due_date", "created_at", "updated_at"),
    SUBMISSIONS: (
        "id",
        "assignment_id",
        "student_id",
        "content",
        "file_url",
        "submitted_at",
        "grade",
        "graded_at",
    ),
}

TABLES = tuple(COLUMNS)

# Columns stamped by the store on insert (and, for updated_at, on every update).
CREATED_COLUMN = {
    USERS: "created_at",
    COURSES: "created_at",
    ENROLLMENTS: "enrolled_at",
    MATERIALS: "created_at",
    ASSIGNMENTS: "created_at",
    SUBMISSIONS: "submitted_at",
}
UPDATED_COLUMN = {
    USERS: "updated_at",
    COURSES: "updated_at",
    MATERIALS: "updated_at",
    ASSIGNMENTS: "updated_at",
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


__all__ = [
    "ROLES",
    "ALLOWED_ROLES",
    "COURSE_OWNER_ROLES",
    "USERS",
    "COURSES",
    "ENROLLMENTS",
    "MATERIALS",
    "ASSIGNMENTS",
    "SUBMISSIONS",
    "COLUMNS",
    "TABLES",
    "CREATED_COLUMN",
    "UPDATED_COLUMN",
    "utcnow",
]
