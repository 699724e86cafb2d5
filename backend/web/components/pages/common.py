"""Shared helpers for the dashboard pages."""

from __future__ import annotations

from typing import Any, Iterable, List, Tuple
from urllib.parse import urlencode

from ..base import Component

ROLE_LABELS = {
    "student": "Student",
    "teacher": "Teacher",
    "administrator": "Administrator",
}


def dashboard_url(user_id: Any, **params: Any) -> str:
    query = {"user_id": user_id}
    query.update({k: v for k, v in params.items() if v is not None})
    return f"/dashboard?{urlencode(query)}"


def full_name(user: dict) -> str:
    return f"{user.get('first_name') or ''} {user.get('last_name') or ''}".strip() or str(user.get("email") or "")


def user_options(users: Iterable[dict]) -> List[Tuple[object, str]]:
    return [(u["id"], f"{full_name(u)} ({u.get('role')})") for u in users]


def role_options() -> List[Tuple[object, str]]:
    return list(ROLE_LABELS.items())


def link(href: str, text: str, *, active: bool = False) -> str:
    attrs = Component.attributes(href=href, class_=Component.classes("link", active=active))
    return f"<a {attrs}>{Component.escape(text)}</a>"


def grade_text(value: Any) -> str:
    if value is None:
        return "not graded"
    return f"{float(value):g}"
