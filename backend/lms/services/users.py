"""User management use cases.

Why:
    Keeps user rules (unique email, role vocabulary, guarded deletes and role
    changes) framework-free so the RPC adapter only validates and dispatches.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from pydantic import EmailStr, TypeAdapter, ValidationError

from lms.domain import ALLOWED_ROLES, COURSE_OWNER_ROLES, COURSES, ENROLLMENTS, SUBMISSIONS, USERS
from lms.errors import ConflictError, InputValidationError, NotFoundError
from lms.integrity import cascade_delete_user, check_email_available
from lms.store import StoreProtocol

logger = logging.getLogger("lms.services.users")

_UNSET = object()


def _normalize_name(value: object, code: str) -> str:
    if not isinstance(value, str):
        raise InputValidationError(code)
    trimmed = value.strip()
    if not trimmed or len(trimmed) > 200:
        raise InputValidationError(code)
    return trimmed


def _normalize_role(value: object) -> str:
    if value not in ALLOWED_ROLES:
        raise InputValidationError("invalid_role")
    return str(value)


_EMAIL = TypeAdapter(EmailStr)


def _normalize_email(value: object) -> str:
    """Same address rules as the RPC input models (pydantic ``EmailStr``)."""
    if not isinstance(value, str):
        raise InputValidationError("invalid_email")
    try:
        return _EMAIL.validate_python(value.strip())
    except ValidationError:
        raise InputValidationError("invalid_email") from None


@dataclass
class UsersService:
    """Use cases for users (create/list/update/delete)."""

    store: StoreProtocol

    def create_user(self, *, email: str, first_name: str, last_name: str, role: str) -> dict:
        values = {
            "email": _normalize_email(email),
            "first_name": _normalize_name(first_name, "invalid_first_name"),
            "last_name": _normalize_name(last_name, "invalid_last_name"),
            "role": _normalize_role(role),
        }
        with self.store.transaction():
            check_email_available(self.store, values["email"])
            user = self.store.insert(USERS, values)
        logger.info("created user id=%s role=%s", user["id"], user["role"])
        return user

    def get_users(self, role: Optional[str] = None) -> List[dict]:
        if role is None:
            return self.store.find(USERS)
        return self.store.find(USERS, role=_normalize_role(role))

    def update_user(
        self,
        user_id: int,
        *,
        email: object = _UNSET,
        first_name: object = _UNSET,
        last_name: object = _UNSET,
        role: object = _UNSET,
    ) -> dict:
        """Apply the supplied fields; absent fields stay untouched.

        A role change is refused while records still depend on the current
        role: course owners cannot become students, and students keep their
        role while they have enrollments or submissions.
        """
        changes: dict[str, Any] = {}
        if email is not _UNSET:
            changes["email"] = _normalize_email(email)
        if first_name is not _UNSET:
            changes["first_name"] = _normalize_name(first_name, "invalid_first_name")
        if last_name is not _UNSET:
            changes["last_name"] = _normalize_name(last_name, "invalid_last_name")
        if role is not _UNSET:
            changes["role"] = _normalize_role(role)
        with self.store.transaction():
            current = self.store.get(USERS, user_id)
            if current is None:
                raise NotFoundError("user_not_found")
            if "email" in changes:
                check_email_available(self.store, changes["email"], user_id=user_id)
            if changes.get("role", current["role"]) != current["role"]:
                self._check_role_change(current, changes["role"])
            updated = self.store.update(USERS, user_id, changes)
        if updated is None:
            raise NotFoundError("user_not_found")
        return updated

    def delete_user(self, user_id: int) -> bool:
        return cascade_delete_user(self.store, user_id).deleted

    def _check_role_change(self, user: dict, new_role: str) -> None:
        if new_role not in COURSE_OWNER_ROLES and self.store.count(COURSES, teacher_id=user["id"]):
            raise ConflictError("role_in_use", "User still owns courses")
        if user["role"] == "student" and (
            self.store.count(ENROLLMENTS, student_id=user["id"])
            or self.store.count(SUBMISSIONS, student_id=user["id"])
        ):
            raise ConflictError("role_in_use", "Student still has enrollments or submissions")
