"""Enrollment use cases (student joins course)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from lms.domain import ENROLLMENTS
from lms.integrity import check_enrollment_allowed
from lms.store import StoreProtocol

logger = logging.getLogger("lms.services.enrollments")


@dataclass
class EnrollmentsService:
    store: StoreProtocol

    def create_enrollment(self, *, student_id: int, course_id: int) -> dict:
        with self.store.transaction():
            check_enrollment_allowed(self.store, student_id, course_id)
            enrollment = self.store.insert(ENROLLMENTS, {"student_id": student_id, "course_id": course_id})
        logger.info("enrolled student_id=%s course_id=%s", student_id, course_id)
        return enrollment

    def get_course_students(self, course_id: int) -> List[dict]:
        return self.store.list_course_students(course_id)

