"""
Layout component: wraps page content into a complete HTML document.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from .base import Component

# Human-readable texts for error codes returned by the RPC API.
ERROR_MESSAGES = {
    "invalid_input": "Some fields are missing or invalid.",
    "email_taken": "A user with this email already exists.",
    "already_enrolled": "The student is already enrolled in this course.",
    "already_submitted": "This assignment has already been submitted.",
    "not_enrolled": "The student is not enrolled in the course of this assignment.",
    "teacher_has_courses": "The teacher still has courses. Delete or reassign them first.",
    "role_in_use": "The role cannot change while dependent records exist.",
    "user_referenced": "The user is still referenced by other records.",
    "not_a_teacher": "The selected user is not a teacher.",
    "not_a_student": "The selected user is not a student.",
    "csrf_violation": "The request was refused (cross-origin form).",
    "not_found": "The record no longer exists.",
    "unknown_operation": "This action is not available.",
    "backend_error": "The server could not complete the request.",
}


def error_message(code: Optional[str]) -> str:
    if not code:
        return ""
    if code in ERROR_MESSAGES:
        return ERROR_MESSAGES[code]
    if code.endswith("_not_found"):
        return f"{code[: -len('_not_found')].replace('_', ' ').capitalize()} not found."
    return ERROR_MESSAGES["backend_error"]


class Layout(Component):
    """Complete page with header, optional flash banner and main content."""

    def __init__(
        self,
        title: str,
        content: str,
        *,
        user: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
        notice: Optional[str] = None,
    ) -> None:
        """
        Args:
            title: Page title (escaped).
            content: Pre-rendered main content HTML.
            user: Currently selected user, shown in the header.
            error: Error code from a failed form action.
            notice: Short confirmation text after a successful action.
        """
        self.title = title
        self.content = content
        self.user = user
        self.error = error
        self.notice = notice

    def render(self) -> str:
        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{self.escape(self.title)} - LMS</title>
    <link rel="stylesheet" href="/static/css/lms.css">
</head>
<body>
    <a href="#main-content" class="skip-link">Skip to main content</a>
    {self._render_header()}
    <main id="main-content" class="main-content" role="main">
        {self._render_flash()}
        {self.content}
    </main>
</body>
</html>"""

    def _render_header(self) -> str:
        who = ""
        if self.user:
            name = f"{self.user.get('first_name', '')} {self.user.get('last_name', '')}".strip()
            who = (
                f'<span class="current-user">{self.escape(name)} '
                f'<span class="badge badge-{self.escape(self.user.get("role"))}">{self.escape(self.user.get("role"))}</span>'
                "</span>"
                '<a href="/" class="switch-user">Switch user</a>'
            )
        return (
            '<header class="site-header" role="banner">'
            '<a href="/" class="brand">LMS</a>'
            f"{who}"
            "</header>"
        )

    def _render_flash(self) -> str:
        if self.error:
            return (
                f'<div class="flash flash-error" role="alert" data-error="{self.escape(self.error)}">'
                f"{self.escape(error_message(self.error))}</div>"
            )
        if self.notice:
            return f'<div class="flash flash-notice" role="status">{self.escape(self.notice)}</div>'
        return ""
