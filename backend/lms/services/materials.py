"""Course material use cases."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from lms.domain import MATERIALS
from lms.errors import InputValidationError, NotFoundError
from lms.integrity import require_course
from lms.store import StoreProtocol

logger = logging.getLogger("lms.services.materials")

_UNSET = object()


def _normalize_title(value: object) -> str:
    if not isinstance(value, str):
        raise InputValidationError("invalid_title")
    trimmed = value.strip()
    if not trimmed or len(trimmed) > 200:
        raise InputValidationError("invalid_title")
    return trimmed


def _normalize_text(value: object, code: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise InputValidationError(code)
    return value.strip() or None


@dataclass
class MaterialsService:
    store: StoreProtocol

    def create_course_material(
        self,
        *,
        course_id: int,
        title: str,
        content: Optional[str] = None,
        file_url: Optional[str] = None,
    ) -> dict:
        values = {
            "course_id": course_id,
            "title": _normalize_title(title),
            "content": _normalize_text(content, "invalid_content"),
            "file_url": _normalize_text(file_url, "invalid_file_url"),
        }
        with self.store.transaction():
            require_course(self.store, course_id)
            material = self.store.insert(MATERIALS, values)
        logger.info("created material id=%s course_id=%s", material["id"], course_id)
        return material

    def get_course_materials(self, course_id: int) -> List[dict]:
        return self.store.find(MATERIALS, course_id=course_id)

    def update_course_material(
        self,
        material_id: int,
        *,
        title: object = _UNSET,
        content: object = _UNSET,
        file_url: object = _UNSET,
    ) -> dict:
        changes: dict[str, Any] = {}
        if title is not _UNSET:
            changes["title"] = _normalize_title(title)
        if content is not _UNSET:
            changes["content"] = _normalize_text(content, "invalid_content")
        if file_url is not _UNSET:
            changes["file_url"] = _normalize_text(file_url, "invalid_file_url")
        updated = self.store.update(MATERIALS, material_id, changes)
        if updated is None:
            raise NotFoundError("material_not_found")
        return updated

    def delete_course_material(self, material_id: int) -> bool:
        if not self.store.delete(MATERIALS, material_id):
            raise NotFoundError("material_not_found")
        return True
