"""
Entity store protocol and the in-memory implementation.

Why:
    Services depend on ``StoreProtocol`` only, so the same use cases run
    against Postgres (``lms.repo_db.DBStore``) in deployments and against
    ``InMemoryStore`` in tests and offline development.

Behavior shared by all stores:
    - Records are plain dicts keyed by the columns in ``lms.domain.COLUMNS``.
    - ``insert`` assigns the next integer id and stamps creation/update times;
      ``update`` refreshes ``updated_at`` where the table has one.
    - Unique keys (user email, enrollment pair, submission pair) raise
      ``ConflictError``. Foreign keys are RESTRICT: deleting a referenced row
      raises ``ConflictError("<entity>_referenced")``.
    - ``transaction()`` groups several calls into one unit of work. Nested
      blocks join the outer one; an exception rolls everything back.
"""

from __future__ import annotations

import copy
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Protocol

from .domain import (
    ASSIGNMENTS,
    COLUMNS,
    COURSES,
    CREATED_COLUMN,
    ENROLLMENTS,
    MATERIALS,
    SUBMISSIONS,
    TABLES,
    UPDATED_COLUMN,
    USERS,
    utcnow,
)
from .errors import ConflictError

# (column, referenced table) per table, mirroring the SQL schema.
FOREIGN_KEYS: Dict[str, tuple[tuple[str, str], ...]] = {
    USERS: (),
    COURSES: (("teacher_id", USERS),),
    ENROLLMENTS: (("student_id", USERS), ("course_id", COURSES)),
    MATERIALS: (("course_id", COURSES),),
    ASSIGNMENTS: (("course_id", COURSES),),
    SUBMISSIONS: (("assignment_id", ASSIGNMENTS), ("student_id", USERS)),
}

# Unique keys and the conflict code reported when they are violated.
UNIQUE_KEYS: Dict[str, tuple[tuple[tuple[str, ...], str], ...]] = {
    USERS: ((("email",), "email_taken"),),
    ENROLLMENTS: ((("student_id", "course_id"), "already_enrolled"),),
    SUBMISSIONS: ((("assignment_id", "student_id"), "already_submitted"),),
}

REFERENCED_CODES = {
    USERS: "user_referenced",
    COURSES: "course_referenced",
    ASSIGNMENTS: "assignment_referenced",
}


class StoreProtocol(Protocol):
    def transaction(self) -> Any:
        ...

    def insert(self, table: str, values: Dict[str, Any]) -> dict:
        ...

    def get(self, table: str, record_id: int) -> Optional[dict]:
        ...

    def update(self, table: str, record_id: int, values: Dict[str, Any]) -> Optional[dict]:
        ...

    def delete(self, table: str, record_id: int) -> bool:
        ...

    def find(self, table: str, **where: Any) -> List[dict]:
        ...

    def count(self, table: str, **where: Any) -> int:
        ...

    def delete_where(self, table: str, **where: Any) -> int:
        ...

    def list_course_students(self, course_id: int) -> List[dict]:
        ...

    def list_courses_for_student(self, student_id: int) -> List[dict]:
        ...

    def list_submissions_for_assignment(self, assignment_id: int) -> List[dict]:
        ...


def _check_table(table: str) -> None:
    if table not in COLUMNS:
        raise KeyError(f"unknown table: {table}")


def _check_columns(table: str, names) -> None:
    unknown = [n for n in names if n not in COLUMNS[table]]
    if unknown:
        raise KeyError(f"unknown column(s) for {table}: {', '.join(unknown)}")


class InMemoryStore:
    """Dict-backed store used for tests and when no database is configured."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._tables: Dict[str, Dict[int, dict]] = {t: {} for t in TABLES}
        self._last_ids = {t: 0 for t in TABLES}
        self._depth = 0

    # --- Unit of work -----------------------------------------------------------
    @contextmanager
    def transaction(self) -> Iterator["InMemoryStore"]:
        with self._lock:
            if self._depth:
                self._depth += 1
                try:
                    yield self
                finally:
                    self._depth -= 1
                return
            snapshot = copy.deepcopy(self._tables)
            last_ids = dict(self._last_ids)
            self._depth = 1
            try:
                yield self
            except BaseException:
                self._tables = snapshot
                self._last_ids = last_ids
                raise
            finally:
                self._depth = 0

    # --- Generic table access -----------------------------------------------------
    def insert(self, table: str, values: Dict[str, Any]) -> dict:
        _check_table(table)
        _check_columns(table, values)
        with self._lock:
            now = utcnow()
            row = {col: None for col in COLUMNS[table]}
            row.update(values)
            row[CREATED_COLUMN[table]] = now
            if table in UPDATED_COLUMN:
                row[UPDATED_COLUMN[table]] = now
            self._check_references(table, row)
            self._check_unique(table, row)
            self._last_ids[table] += 1
            row["id"] = self._last_ids[table]
            self._tables[table][row["id"]] = row
            return dict(row)

    def get(self, table: str, record_id: int) -> Optional[dict]:
        _check_table(table)
        with self._lock:
            row = self._tables[table].get(record_id)
            return dict(row) if row is not None else None

    def update(self, table: str, record_id: int, values: Dict[str, Any]) -> Optional[dict]:
        _check_table(table)
        _check_columns(table, values)
        with self._lock:
            current = self._tables[table].get(record_id)
            if current is None:
                return None
            row = dict(current)
            row.update({k: v for k, v in values.items() if k != "id"})
            if table in UPDATED_COLUMN:
                row[UPDATED_COLUMN[table]] = utcnow()
            self._check_references(table, row)
            self._check_unique(table, row, exclude_id=record_id)
            self._tables[table][record_id] = row
            return dict(row)

    def delete(self, table: str, record_id: int) -> bool:
        _check_table(table)
        with self._lock:
            if record_id not in self._tables[table]:
                return False
            self._check_not_referenced(table, [record_id])
            del self._tables[table][record_id]
            return True

    def find(self, table: str, **where: Any) -> List[dict]:
        _check_table(table)
        _check_columns(table, where)
        with self._lock:
            return [dict(r) for r in self._select(table, where)]

    def count(self, table: str, **where: Any) -> int:
        _check_table(table)
        _check_columns(table, where)
        with self._lock:
            return len(self._select(table, where))

    def delete_where(self, table: str, **where: Any) -> int:
        _check_table(table)
        _check_columns(table, where)
        with self._lock:
            ids = [r["id"] for r in self._select(table, where)]
            self._check_not_referenced(table, ids)
            for rid in ids:
                del self._tables[table][rid]
            return len(ids)

    # --- Joined reads ---------------------------------------------------------------
    def list_course_students(self, course_id: int) -> List[dict]:
        with self._lock:
            users = self._tables[USERS]
            return [
                dict(users[e["student_id"]])
                for e in self._select(ENROLLMENTS, {"course_id": course_id})
                if e["student_id"] in users
            ]

    def list_courses_for_student(self, student_id: int) -> List[dict]:
        with self._lock:
            courses = self._tables[COURSES]
            return [
                dict(courses[e["course_id"]])
                for e in self._select(ENROLLMENTS, {"student_id": student_id})
                if e["course_id"] in courses
            ]

    def list_submissions_for_assignment(self, assignment_id: int) -> List[dict]:
        with self._lock:
            users = self._tables[USERS]
            return [
                dict(s)
                for s in self._select(SUBMISSIONS, {"assignment_id": assignment_id})
                if s["student_id"] in users
            ]

    # --- Constraint helpers -----------------------------------------------------------
    def _select(self, table: str, where: Dict[str, Any]) -> List[dict]:
        rows = sorted(self._tables[table].values(), key=lambda r: r["id"])
        if not where:
            return rows
        return [r for r in rows if all(r.get(k) == v for k, v in where.items())]

    def _check_references(self, table: str, row: dict) -> None:
        for column, ref_table in FOREIGN_KEYS[table]:
            if row.get(column) not in self._tables[ref_table]:
                raise ConflictError(
                    "foreign_key_violation",
                    f"{table}.{column} references a missing {ref_table} row",
                )

    def _check_unique(self, table: str, row: dict, *, exclude_id: Optional[int] = None) -> None:
        for columns, code in UNIQUE_KEYS.get(table, ()):
            key = tuple(row.get(c) for c in columns)
            for other in self._tables[table].values():
                if other["id"] == exclude_id:
                    continue
                if tuple(other.get(c) for c in columns) == key:
                    raise ConflictError(code)

    def _check_not_referenced(self, table: str, ids: List[int]) -> None:
        if not ids:
            return
        targets = set(ids)
        for child, fks in FOREIGN_KEYS.items():
            for column, ref_table in fks:
                if ref_table != table:
                    continue
                if any(r.get(column) in targets for r in self._tables[child].values()):
                    raise ConflictError(
                        REFERENCED_CODES.get(table, "record_referenced"),
                        f"{table} row is still referenced by {child}.{column}",
                    )


__all__ = [
    "StoreProtocol",
    "InMemoryStore",
    "FOREIGN_KEYS",
    "UNIQUE_KEYS",
    "REFERENCED_CODES",
]
