"""
Postgres-backed entity store for the LMS.

Design:
- Minimal psycopg3 usage; outside a unit of work each call opens a
  short-lived connection and commits on exit.
- ``transaction()`` pins one connection to the current thread so every call
  inside the block shares a single database transaction.
- Returns plain dicts to keep services independent of any ORM.
- Identifiers are composed with ``psycopg.sql`` from the fixed column lists in
  ``lms.domain.COLUMNS``; values are always bound parameters.
"""
from __future__ import annotations

import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import psycopg
from psycopg import sql
from psycopg.errors import ForeignKeyViolation, UniqueViolation
from psycopg.rows import dict_row

from .domain import COLUMNS, UPDATED_COLUMN, USERS
from .errors import ConflictError
from .store import REFERENCED_CODES

logger = logging.getLogger("lms.repo_db")

SCHEMA_FILE = Path(__file__).resolve().parent / "migrations" / "0001_lms_schema.sql"

# Constraint names from the schema mapped to conflict codes.
_UNIQUE_CODES = {
    "users_email_key": "email_taken",
    "enrollments_student_course_key": "already_enrolled",
    "assignment_submissions_assignment_student_key": "already_submitted",
}


def _dsn() -> str:
    """Resolve the DSN from the environment (LMS_DATABASE_URL, then DATABASE_URL)."""
    candidates = [
        os.getenv("LMS_DATABASE_URL"),
        os.getenv("DATABASE_URL"),
    ]
    for dsn in candidates:
        if dsn:
            return dsn
    raise RuntimeError("Database DSN unavailable for DBStore")


def _float_or_none(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


def _row_to_dict(table: str, row: Optional[Dict[str, Any]]) -> Optional[dict]:
    if row is None:
        return None
    out = {col: row.get(col) for col in COLUMNS[table]}
    if "grade" in out:
        out["grade"] = _float_or_none(out["grade"])
    return out


def _columns_sql(table: str, alias: Optional[str] = None) -> sql.Composable:
    if alias:
        return sql.SQL(", ").join(sql.Identifier(alias, c) for c in COLUMNS[table])
    return sql.SQL(", ").join(sql.Identifier(c) for c in COLUMNS[table])


def _where_sql(table: str, where: Dict[str, Any]) -> tuple[sql.Composable, list]:
    for col in where:
        if col not in COLUMNS[table]:
            raise KeyError(f"unknown column for {table}: {col}")
    if not where:
        return sql.SQL(""), []
    parts = [sql.SQL("{} = %s").format(sql.Identifier(c)) for c in where]
    return sql.SQL(" where ") + sql.SQL(" and ").join(parts), list(where.values())


def _translate_integrity_error(table: str, exc: Exception, *, deleting: bool = False) -> ConflictError:
    diag = getattr(exc, "diag", None)
    constraint = getattr(diag, "constraint_name", None) or ""
    if isinstance(exc, UniqueViolation):
        return ConflictError(_UNIQUE_CODES.get(constraint, "unique_violation"))
    if deleting:
        return ConflictError(REFERENCED_CODES.get(table, "record_referenced"), constraint or None)
    return ConflictError("foreign_key_violation", constraint or None)


class DBStore:
    def __init__(self, dsn: Optional[str] = None) -> None:
        """Initialize a Postgres-backed store.

        Parameters:
            dsn: Optional explicit DSN. When omitted, resolves from env.

        Behavior:
            Does not open a connection eagerly; connections are per call or
            per ``transaction()`` block.
        """
        self._dsn = dsn or _dsn()
        self._local = threading.local()

    # --- Unit of work -----------------------------------------------------------
    @contextmanager
    def transaction(self) -> Iterator["DBStore"]:
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            yield self
            return
        with psycopg.connect(self._dsn, row_factory=dict_row) as conn:
            self._local.conn = conn
            try:
                with conn.transaction():
                    yield self
            finally:
                self._local.conn = None

    @contextmanager
    def _cursor(self, table: str, *, deleting: bool = False) -> Iterator[psycopg.Cursor]:
        conn = getattr(self._local, "conn", None)
        try:
            if conn is not None:
                # Savepoint so a constraint error does not poison the outer
                # transaction before the caller decides to roll back.
                with conn.transaction():
                    with conn.cursor() as cur:
                        yield cur
                return
            with psycopg.connect(self._dsn, row_factory=dict_row) as own:
                with own.cursor() as cur:
                    yield cur
                own.commit()
        except (UniqueViolation, ForeignKeyViolation) as exc:
            logger.info("constraint violation on %s: %s", table, type(exc).__name__)
            raise _translate_integrity_error(table, exc, deleting=deleting) from exc

    # --- Generic table access -----------------------------------------------------
    def insert(self, table: str, values: Dict[str, Any]) -> dict:
        cols = [c for c in values if c in COLUMNS[table] and c != "id"]
        if len(cols) != len(values):
            raise KeyError(f"unknown column(s) for {table}")
        query = sql.SQL("insert into {} ({}) values ({}) returning {}").format(
            sql.Identifier(table),
            sql.SQL(", ").join(sql.Identifier(c) for c in cols),
            sql.SQL(", ").join(sql.Placeholder() for _ in cols),
            _columns_sql(table),
        )
        with self._cursor(table) as cur:
            cur.execute(query, [values[c] for c in cols])
            return _row_to_dict(table, cur.fetchone())  # type: ignore[return-value]

    def get(self, table: str, record_id: int) -> Optional[dict]:
        query = sql.SQL("select {} from {} where id = %s").format(
            _columns_sql(table), sql.Identifier(table)
        )
        with self._cursor(table) as cur:
            cur.execute(query, (record_id,))
            return _row_to_dict(table, cur.fetchone())

    def update(self, table: str, record_id: int, values: Dict[str, Any]) -> Optional[dict]:
        cols = [c for c in values if c != "id"]
        for c in cols:
            if c not in COLUMNS[table]:
                raise KeyError(f"unknown column for {table}: {c}")
        assignments = [sql.SQL("{} = %s").format(sql.Identifier(c)) for c in cols]
        params: list = [values[c] for c in cols]
        if table in UPDATED_COLUMN:
            assignments.append(sql.SQL("{} = now()").format(sql.Identifier(UPDATED_COLUMN[table])))
        if not assignments:
            return self.get(table, record_id)
        query = sql.SQL("update {} set {} where id = %s returning {}").format(
            sql.Identifier(table),
            sql.SQL(", ").join(assignments),
            _columns_sql(table),
        )
        with self._cursor(table) as cur:
            cur.execute(query, params + [record_id])
            return _row_to_dict(table, cur.fetchone())

    def delete(self, table: str, record_id: int) -> bool:
        query = sql.SQL("delete from {} where id = %s").format(sql.Identifier(table))
        with self._cursor(table, deleting=True) as cur:
            cur.execute(query, (record_id,))
            return cur.rowcount > 0

    def find(self, table: str, **where: Any) -> List[dict]:
        where_sql, params = _where_sql(table, where)
        query = sql.SQL("select {} from {}{} order by id").format(
            _columns_sql(table), sql.Identifier(table), where_sql
        )
        with self._cursor(table) as cur:
            cur.execute(query, params)
            return [_row_to_dict(table, r) for r in cur.fetchall()]  # type: ignore[misc]

    def count(self, table: str, **where: Any) -> int:
        where_sql, params = _where_sql(table, where)
        query = sql.SQL("select count(*) as n from {}{}").format(sql.Identifier(table), where_sql)
        with self._cursor(table) as cur:
            cur.execute(query, params)
            row = cur.fetchone() or {"n": 0}
            return int(row["n"])

    def delete_where(self, table: str, **where: Any) -> int:
        where_sql, params = _where_sql(table, where)
        query = sql.SQL("delete from {}{}").format(sql.Identifier(table), where_sql)
        with self._cursor(table, deleting=True) as cur:
            cur.execute(query, params)
            return max(cur.rowcount, 0)

    # --- Joined reads ---------------------------------------------------------------
    def list_course_students(self, course_id: int) -> List[dict]:
        query = sql.SQL(
            "select {} from enrollments e join users u on u.id = e.student_id "
            "where e.course_id = %s order by e.id"
        ).format(_columns_sql(USERS, "u"))
        with self._cursor("enrollments") as cur:
            cur.execute(query, (course_id,))
            return [_row_to_dict(USERS, r) for r in cur.fetchall()]  # type: ignore[misc]

    def list_courses_for_student(self, student_id: int) -> List[dict]:
        query = sql.SQL(
            "select {} from enrollments e join courses c on c.id = e.course_id "
            "where e.student_id = %s order by e.id"
        ).format(_columns_sql("courses", "c"))
        with self._cursor("enrollments") as cur:
            cur.execute(query, (student_id,))
            return [_row_to_dict("courses", r) for r in cur.fetchall()]  # type: ignore[misc]

    def list_submissions_for_assignment(self, assignment_id: int) -> List[dict]:
        query = sql.SQL(
            "select {} from assignment_submissions s join users u on u.id = s.student_id "
            "where s.assignment_id = %s order by s.id"
        ).format(_columns_sql("assignment_submissions", "s"))
        with self._cursor("assignment_submissions") as cur:
            cur.execute(query, (assignment_id,))
            return [_row_to_dict("assignment_submissions", r) for r in cur.fetchall()]  # type: ignore[misc]

    # --- Schema -------------------------------------------------------------------
    def apply_schema(self, path: Path = SCHEMA_FILE) -> None:
        """Run the DDL file in one transaction (idempotent: uses IF NOT EXISTS)."""
        ddl = path.read_text(encoding="utf-8")
        with psycopg.connect(self._dsn) as conn:
            conn.execute(ddl)  # type: ignore[arg-type]
            conn.commit()
        logger.info("applied schema %s", path.name)


__all__ = ["DBStore", "SCHEMA_FILE"]
