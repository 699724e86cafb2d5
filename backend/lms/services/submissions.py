"""Assignment submission use cases (submit, list, grade).

Why:
    A student may submit once per assignment and only to assignments of a
    course they are enrolled in. Grading is the only mutation after
    submission and stamps ``graded_at``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional

from lms.domain import SUBMISSIONS, utcnow
from lms.errors import InputValidationError, NotFoundError
from lms.integrity import check_submission_allowed
from lms.store import StoreProtocol

logger = logging.getLogger("lms.services.submissions")


def _normalize_text(value: object, code: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise InputValidationError(code)
    return value.strip() or None


def _normalize_grade(value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InputValidationError("invalid_grade")
    grade = float(value)
    if not math.isfinite(grade):
        raise InputValidationError("invalid_grade")
    return grade


@dataclass
class SubmissionsService:
    store: StoreProtocol

    def create_assignment_submission(
        self,
        *,
        assignment_id: int,
        student_id: int,
        content: Optional[str] = None,
        file_url: Optional[str] = None,
    ) -> dict:
        values = {
            "assignment_id": assignment_id,
            "student_id": student_id,
            "content": _normalize_text(content, "invalid_content"),
            "file_url": _normalize_text(file_url, "invalid_file_url"),
        }
        with self.store.transaction():
            check_submission_allowed(self.store, assignment_id, student_id)
            submission = self.store.insert(SUBMISSIONS, values)
        logger.info("submission id=%s assignment_id=%s student_id=%s", submission["id"], assignment_id, student_id)
        return submission

    def get_submissions(self, assignment_id: int) -> List[dict]:
        return self.store.list_submissions_for_assignment(assignment_id)

    def get_student_submissions(self, student_id: int) -> List[dict]:
        return self.store.find(SUBMISSIONS, student_id=student_id)

    def grade_submission(self, submission_id: int, *, grade: float) -> dict:
        value = _normalize_grade(grade)
        updated = self.store.update(SUBMISSIONS, submission_id, {"grade": value, "graded_at": utcnow()})
        if updated is None:
            raise NotFoundError("submission_not_found")
        logger.info("graded submission id=%s", submission_id)
        return updated
