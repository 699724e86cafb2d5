"""Assignment use cases.

``due_date`` is stored as an aware UTC datetime; naive values are taken as
UTC and ISO strings are parsed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Optional

from lms.domain import ASSIGNMENTS
from lms.errors import InputValidationError, NotFoundError
from lms.integrity import cascade_delete_assignment, require_course
from lms.store import StoreProtocol

logger = logging.getLogger("lms.services.assignments")

_UNSET = object()


def _normalize_title(value: object) -> str:
    if not isinstance(value, str):
        raise InputValidationError("invalid_title")
    trimmed = value.strip()
    if not trimmed or len(trimmed) > 200:
        raise InputValidationError("invalid_title")
    return trimmed


def _normalize_description(value: object) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise InputValidationError("invalid_description")
    return value.strip() or None


def _parse_due_date(value: object) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError as exc:
            raise InputValidationError("invalid_due_date") from exc
    if not isinstance(value, datetime):
        raise InputValidationError("invalid_due_date")
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class AssignmentsService:
    store: StoreProtocol

    def create_assignment(
        self,
        *,
        course_id: int,
        title: str,
        description: Optional[str] = None,
        due_date: object = None,
    ) -> dict:
        values = {
            "course_id": course_id,
            "title": _normalize_title(title),
            "description": _normalize_description(description),
            "due_date": _parse_due_date(due_date),
        }
        with self.store.transaction():
            require_course(self.store, course_id)
            assignment = self.store.insert(ASSIGNMENTS, values)
        logger.info("created assignment id=%s course_id=%s", assignment["id"], course_id)
        return assignment

    def get_assignments(self, course_id: int) -> List[dict]:
        return self.store.find(ASSIGNMENTS, course_id=course_id)

    def update_assignment(
        self,
        assignment_id: int,
        *,
        title: object = _UNSET,
        description: object = _UNSET,
        due_date: object = _UNSET,
    ) -> dict:
        changes: dict[str, Any] = {}
        if title is not _UNSET:
            changes["title"] = _normalize_title(title)
        if description is not _UNSET:
            changes["description"] = _normalize_description(description)
        if due_date is not _UNSET:
            changes["due_date"] = _parse_due_date(due_date)
        updated = self.store.update(ASSIGNMENTS, assignment_id, changes)
        if updated is None:
            raise NotFoundError("assignment_not_found")
        return updated

    def delete_assignment(self, assignment_id: int) -> bool:
        """Remove submissions then the assignment; False when nothing existed."""
        return cascade_delete_assignment(self.store, assignment_id).deleted
