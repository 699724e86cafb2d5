"""Course use cases.

Ownership rules differ between create and update: a new course may be owned
by a teacher or an administrator, while reassigning an existing course
accepts teachers only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from lms.domain import COURSES
from lms.errors import InputValidationError, NotFoundError
from lms.integrity import cascade_delete_course, require_course_owner, require_teacher
from lms.store import StoreProtocol

logger = logging.getLogger("lms.services.courses")

_UNSET = object()


def _normalize_name(value: object) -> str:
    if not isinstance(value, str):
        raise InputValidationError("invalid_name")
    trimmed = value.strip()
    if not trimmed or len(trimmed) > 200:
        raise InputValidationError("invalid_name")
    return trimmed


def _normalize_description(value: object) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise InputValidationError("invalid_description")
    return value.strip() or None


@dataclass
class CoursesService:
    store: StoreProtocol

    def create_course(self, *, name: str, description: Optional[str], teacher_id: int) -> dict:
        values = {
            "name": _normalize_name(name),
            "description": _normalize_description(description),
            "teacher_id": teacher_id,
        }
        with self.store.transaction():
            require_course_owner(self.store, teacher_id)
            course = self.store.insert(COURSES, values)
        logger.info("created course id=%s teacher_id=%s", course["id"], teacher_id)
        return course

    def get_courses(self) -> List[dict]:
        return self.store.find(COURSES)

    def get_courses_by_teacher(self, teacher_id: int) -> List[dict]:
        return self.store.find(COURSES, teacher_id=teacher_id)

    def get_courses_by_student(self, student_id: int) -> List[dict]:
        return self.store.list_courses_for_student(student_id)

    def update_course(
        self,
        course_id: int,
        *,
        name: object = _UNSET,
        description: object = _UNSET,
        teacher_id: object = _UNSET,
    ) -> dict:
        changes: dict[str, Any] = {}
        if name is not _UNSET:
            changes["name"] = _normalize_name(name)
        if description is not _UNSET:
            changes["description"] = _normalize_description(description)
        with self.store.transaction():
            if self.store.get(COURSES, course_id) is None:
                raise NotFoundError("course_not_found")
            if teacher_id is not _UNSET:
                require_teacher(self.store, teacher_id)  # type: ignore[arg-type]
                changes["teacher_id"] = teacher_id
            updated = self.store.update(COURSES, course_id, changes)
        if updated is None:
            raise NotFoundError("course_not_found")
        return updated

    def delete_course(self, course_id: int) -> bool:
        """Remove the course and everything hanging off it.

        Deleting a course that does not exist is a no-op that still reports
        success.
        """
        cascade_delete_course(self.store, course_id)
        return True
