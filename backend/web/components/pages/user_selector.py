"""
Start page: pick a user to act as, or create a new one.
"""

from __future__ import annotations

from typing import List

from ..base import Component
from ..forms import ActionForm
from .common import ROLE_LABELS, dashboard_url, full_name, role_options


class UserSelectorPage(Component):
    def __init__(self, users: List[dict]) -> None:
        self.users = users

    def render(self) -> str:
        groups = []
        for role, label in ROLE_LABELS.items():
            members = [u for u in self.users if u.get("role") == role]
            if not members:
                continue
            items = "".join(
                f'<li><a href="{self.escape(dashboard_url(u["id"]))}" class="user-link">'
                f"{self.escape(full_name(u))}</a> "
                f'<span class="text-muted">{self.escape(u.get("email"))}</span></li>'
                for u in members
            )
            groups.append(f'<div class="user-group" data-role="{role}"><h3>{label}s</h3><ul>{items}</ul></div>')
        listing = "".join(groups) or '<p class="text-muted empty">No users yet. Create the first one below.</p>'

        form = ActionForm("createUser", form_id="create-user", return_to="/", submit_label="Create user")
        form.text("first_name", "First name", required=True)
        form.text("last_name", "Last name", required=True)
        form.text("email", "Email", input_type="email", required=True)
        form.select("role", "Role", role_options(), selected="student", required=True)

        return (
            '<div class="container">'
            "<h1>Choose a user</h1>"
            f'<section class="card" id="user-list">{listing}</section>'
            f'<section class="card" id="new-user"><h2>New user</h2>{form.render()}</section>'
            "</div>"
        )
