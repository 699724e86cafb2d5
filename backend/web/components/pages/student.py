"""
Student dashboard: enrolled courses, course catalogue and own submissions.
"""

from __future__ import annotations

from typing import List, Optional

from ..base import Component
from ..forms import ActionForm
from ..tables import DataTable, Section, format_timestamp
from .common import dashboard_url, full_name, grade_text, link


class StudentDashboard(Component):
    def __init__(
        self,
        user: dict,
        all_courses: List[dict],
        enrolled_courses: List[dict],
        submissions: List[dict],
        *,
        course: Optional[dict] = None,
        materials: Optional[List[dict]] = None,
        assignments: Optional[List[dict]] = None,
    ) -> None:
        self.user = user
        self.all_courses = all_courses
        self.enrolled_courses = enrolled_courses
        self.submissions = submissions
        self.course = course
        self.materials = materials or []
        self.assignments = assignments or []
        self._enrolled_ids = {c["id"] for c in enrolled_courses}
        self._submitted = {s["assignment_id"]: s for s in submissions}

    def _url(self, **params) -> str:
        return dashboard_url(self.user["id"], **params)

    def render(self) -> str:
        parts = [
            f"<h1>Learning: {self.escape(full_name(self.user))}</h1>",
            self._enrolled_section(),
        ]
        if self.course:
            parts.append(self._course_detail())
        parts.append(self._catalogue_section())
        parts.append(self._submissions_section())
        return f'<div class="container dashboard dashboard-student">{"".join(parts)}</div>'

    def _enrolled_section(self) -> str:
        selected = self.course["id"] if self.course else None
        table = DataTable(
            [
                ("Course", lambda r: link(self._url(course_id=r["id"]), r.get("name") or "", active=r["id"] == selected)),
                ("Description", lambda r: self.escape(r.get("description"))),
            ],
            self.enrolled_courses,
            empty_text="You are not enrolled in any course yet.",
            table_id="enrolled-courses",
        )
        return Section("My courses", table.render(), section_id="my-courses").render()

    def _catalogue_section(self) -> str:
        available = [c for c in self.all_courses if c["id"] not in self._enrolled_ids]

        def enroll(row: dict) -> str:
            form = ActionForm(
                "createEnrollment",
                form_id=f"enroll-{row['id']}",
                return_to=self._url(),
                submit_label="Enroll",
                inline=True,
            )
            form.hidden("student_id", self.user["id"]).hidden("course_id", row["id"])
            return form.render()

        table = DataTable(
            [
                ("Course", lambda r: self.escape(r.get("name"))),
                ("Description", lambda r: self.escape(r.get("description"))),
                ("", enroll),
            ],
            available,
            empty_text="No further courses available.",
            table_id="available-courses",
        )
        return Section("Available courses", table.render(), section_id="catalogue").render()

    def _course_detail(self) -> str:
        course = self.course or {}
        here = self._url(course_id=course["id"])
        materials = DataTable(
            [
                ("Title", lambda r: self.escape(r.get("title"))),
                ("Content", lambda r: self.escape(r.get("content"))),
                (
                    "File",
                    lambda r: (
                        f'<a href="{self.escape(r["file_url"])}" rel="noopener" target="_blank">File</a>'
                        if r.get("file_url")
                        else ""
                    ),
                ),
            ],
            self.materials,
            empty_text="No materials yet.",
            table_id="student-materials",
        )

        def status(row: dict) -> str:
            mine = self._submitted.get(row["id"])
            if mine:
                return f'<span class="badge">submitted</span> {self.escape(grade_text(mine.get("grade")))}'
            form = ActionForm(
                "createAssignmentSubmission",
                form_id=f"submit-{row['id']}",
                return_to=here,
                submit_label="Submit",
            )
            form.hidden("assignment_id", row["id"]).hidden("student_id", self.user["id"])
            form.textarea("content", "Answer")
            form.text("file_url", "File URL", input_type="url")
            return form.render()

        assignments = DataTable(
            [
                ("Assignment", lambda r: self.escape(r.get("title"))),
                ("Description", lambda r: self.escape(r.get("description"))),
                ("Due", lambda r: self.escape(format_timestamp(r.get("due_date")) or "no due date")),
                ("", status),
            ],
            self.assignments,
            empty_text="No assignments yet.",
            table_id="student-assignments",
        )
        return (
            f'<div class="course-detail" data-course-id="{self.escape(course["id"])}">'
            f"<h2>{self.escape(course.get('name'))}</h2>"
            f"{Section('Materials', materials.render(), section_id='materials').render()}"
            f"{Section('Assignments', assignments.render(), section_id='assignments').render()}"
            "</div>"
        )

    def _submissions_section(self) -> str:
        table = DataTable(
            [
                ("Assignment", lambda r: self.escape(f"#{r.get('assignment_id')}")),
                ("Submitted", lambda r: self.escape(format_timestamp(r.get("submitted_at")))),
                ("Grade", lambda r: self.escape(grade_text(r.get("grade")))),
                ("Graded", lambda r: self.escape(format_timestamp(r.get("graded_at")))),
            ],
            self.submissions,
            empty_text="No submissions yet.",
            table_id="my-submissions",
        )
        return Section("My submissions", table.render(), section_id="submissions").render()
