"""
Administrator dashboard: manage every user and every course.

Edit forms open via query parameters (``edit_user`` / ``edit_course``) so the
page stays plain server-rendered HTML.
"""

from __future__ import annotations

from typing import List, Optional

from ..base import Component
from ..forms import ActionForm
from ..tables import DataTable, Section, format_timestamp
from .common import dashboard_url, full_name, link, role_options, user_options


class AdminDashboard(Component):
    def __init__(
        self,
        user: dict,
        users: List[dict],
        courses: List[dict],
        *,
        edit_user_id: Optional[int] = None,
        edit_course_id: Optional[int] = None,
    ) -> None:
        self.user = user
        self.users = users
        self.courses = courses
        self.edit_user_id = edit_user_id
        self.edit_course_id = edit_course_id
        self.here = dashboard_url(user["id"])
        self._by_id = {u["id"]: u for u in users}

    def render(self) -> str:
        parts = ["<h1>Administration</h1>", self._users_section()]
        edit_user = self._by_id.get(self.edit_user_id) if self.edit_user_id else None
        if edit_user:
            parts.append(self._edit_user_section(edit_user))
        parts.append(self._new_user_section())
        parts.append(self._courses_section())
        edit_course = next((c for c in self.courses if c["id"] == self.edit_course_id), None)
        if edit_course:
            parts.append(self._edit_course_section(edit_course))
        parts.append(self._new_course_section())
        return f'<div class="container dashboard dashboard-admin">{"".join(parts)}</div>'

    # --- Users ---------------------------------------------------------------------
    def _users_section(self) -> str:
        def actions(row: dict) -> str:
            edit = link(dashboard_url(self.user["id"], edit_user=row["id"]), "Edit")
            delete = ActionForm(
                "deleteUser",
                form_id=f"delete-user-{row['id']}",
                return_to=self.here,
                submit_label="Delete",
                danger=True,
                inline=True,
            ).hidden("id", row["id"])
            return edit + delete.render()

        table = DataTable(
            [
                ("Name", lambda r: self.escape(full_name(r))),
                ("Email", lambda r: self.escape(r.get("email"))),
                ("Role", lambda r: self.escape(r.get("role"))),
                ("Created", lambda r: self.escape(format_timestamp(r.get("created_at")))),
                ("", actions),
            ],
            self.users,
            empty_text="No users.",
            table_id="users-table",
        )
        return Section("Users", table.render(), section_id="users").render()

    def _edit_user_section(self, target: dict) -> str:
        form = ActionForm("updateUser", form_id="edit-user", return_to=self.here, submit_label="Save user")
        form.hidden("id", target["id"])
        form.text("first_name", "First name", value=target.get("first_name"), required=True)
        form.text("last_name", "Last name", value=target.get("last_name"), required=True)
        form.text("email", "Email", value=target.get("email"), input_type="email", required=True)
        form.select("role", "Role", role_options(), selected=target.get("role"), required=True)
        return Section(f"Edit {full_name(target)}", form.render(), section_id="edit-user-section").render()

    def _new_user_section(self) -> str:
        form = ActionForm("createUser", form_id="create-user", return_to=self.here, submit_label="Create user")
        form.text("first_name", "First name", required=True)
        form.text("last_name", "Last name", required=True)
        form.text("email", "Email", input_type="email", required=True)
        form.select("role", "Role", role_options(), selected="student", required=True)
        return Section("New user", form.render(), section_id="new-user").render()

    # --- Courses -------------------------------------------------------------------
    def _owner_candidates(self) -> List[dict]:
        return [u for u in self.users if u.get("role") in ("teacher", "administrator")]

    def _courses_section(self) -> str:
        def teacher(row: dict) -> str:
            owner = self._by_id.get(row.get("teacher_id"))
            return self.escape(full_name(owner) if owner else f"#{row.get('teacher_id')}")

        def actions(row: dict) -> str:
            edit = link(dashboard_url(self.user["id"], edit_course=row["id"]), "Edit")
            delete = ActionForm(
                "deleteCourse",
                form_id=f"delete-course-{row['id']}",
                return_to=self.here,
                submit_label="Delete",
                danger=True,
                inline=True,
            ).hidden("id", row["id"])
            return edit + delete.render()

        table = DataTable(
            [
                ("Course", lambda r: self.escape(r.get("name"))),
                ("Description", lambda r: self.escape(r.get("description"))),
                ("Teacher", teacher),
                ("", actions),
            ],
            self.courses,
            empty_text="No courses.",
            table_id="courses-table",
        )
        return Section("Courses", table.render(), section_id="courses").render()

    def _edit_course_section(self, course: dict) -> str:
        teachers = [u for u in self.users if u.get("role") == "teacher"]
        form = ActionForm("updateCourse", form_id="edit-course", return_to=self.here, submit_label="Save course")
        form.hidden("id", course["id"])
        form.text("name", "Name", value=course.get("name"), required=True)
        form.textarea("description", "Description", value=course.get("description"))
        form.select(
            "teacher_id",
            "Teacher",
            user_options(teachers),
            selected=course.get("teacher_id"),
            placeholder="Keep current teacher",
        )
        return Section(f"Edit {course.get('name')}", form.render(), section_id="edit-course-section").render()

    def _new_course_section(self) -> str:
        form = ActionForm("createCourse", form_id="create-course", return_to=self.here, submit_label="Create course")
        form.text("name", "Name", required=True)
        form.textarea("description", "Description")
        form.select(
            "teacher_id",
            "Teacher",
            user_options(self._owner_candidates()),
            placeholder="Select a teacher",
            required=True,
        )
        return Section("New course", form.render(), section_id="new-course").render()
