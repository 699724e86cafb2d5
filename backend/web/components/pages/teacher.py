"""
Teacher dashboard.

Lists the teacher's own courses. Selecting a course (``course_id``) shows its
students, materials and assignments; selecting an assignment
(``assignment_id``) shows the submissions with a grading form each.
"""

from __future__ import annotations

from typing import List, Optional

from ..base import Component
from ..forms import ActionForm
from ..tables import DataTable, Section, format_timestamp
from .common import dashboard_url, full_name, grade_text, link


class TeacherDashboard(Component):
    def __init__(
        self,
        user: dict,
        courses: List[dict],
        *,
        course: Optional[dict] = None,
        students: Optional[List[dict]] = None,
        materials: Optional[List[dict]] = None,
        assignments: Optional[List[dict]] = None,
        assignment: Optional[dict] = None,
        submissions: Optional[List[dict]] = None,
    ) -> None:
        self.user = user
        self.courses = courses
        self.course = course
        self.students = students or []
        self.materials = materials or []
        self.assignments = assignments or []
        self.assignment = assignment
        self.submissions = submissions or []

    def _url(self, **params) -> str:
        return dashboard_url(self.user["id"], **params)

    def render(self) -> str:
        parts = [
            f"<h1>Teaching: {self.escape(full_name(self.user))}</h1>",
            self._courses_section(),
            self._new_course_section(),
        ]
        if self.course:
            parts.append(self._course_detail())
        return f'<div class="container dashboard dashboard-teacher">{"".join(parts)}</div>'

    def _courses_section(self) -> str:
        selected = self.course["id"] if self.course else None
        table = DataTable(
            [
                ("Course", lambda r: link(self._url(course_id=r["id"]), r.get("name") or "", active=r["id"] == selected)),
                ("Description", lambda r: self.escape(r.get("description"))),
                ("Created", lambda r: self.escape(format_timestamp(r.get("created_at")))),
            ],
            self.courses,
            empty_text="You do not teach any courses yet.",
            table_id="my-courses",
        )
        return Section("My courses", table.render(), section_id="courses").render()

    def _new_course_section(self) -> str:
        form = ActionForm("createCourse", form_id="create-course", return_to=self._url(), submit_label="Create course")
        form.hidden("teacher_id", self.user["id"])
        form.text("name", "Name", required=True)
        form.textarea("description", "Description")
        return Section("New course", form.render(), section_id="new-course").render()

    # --- Selected course -------------------------------------------------------------
    def _course_detail(self) -> str:
        course = self.course or {}
        here = self._url(course_id=course["id"])
        return (
            f'<div class="course-detail" data-course-id="{self.escape(course["id"])}">'
            f"<h2>{self.escape(course.get('name'))}</h2>"
            f"{self._students_section()}"
            f"{self._materials_section(here)}"
            f"{self._assignments_section(here)}"
            f"{self._submissions_section() if self.assignment else ''}"
            "</div>"
        )

    def _students_section(self) -> str:
        table = DataTable(
            [
                ("Name", lambda r: self.escape(full_name(r))),
                ("Email", lambda r: self.escape(r.get("email"))),
            ],
            self.students,
            empty_text="No students enrolled.",
            table_id="course-students",
        )
        return Section("Students", table.render(), section_id="students").render()

    def _materials_section(self, here: str) -> str:
        def file_link(row: dict) -> str:
            url = row.get("file_url")
            if not url:
                return ""
            return f'<a href="{self.escape(url)}" rel="noopener" target="_blank">File</a>'

        def actions(row: dict) -> str:
            return ActionForm(
                "deleteCourseMaterial",
                form_id=f"delete-material-{row['id']}",
                return_to=here,
                submit_label="Delete",
                danger=True,
                inline=True,
            ).hidden("id", row["id"]).render()

        table = DataTable(
            [
                ("Title", lambda r: self.escape(r.get("title"))),
                ("Content", lambda r: self.escape(r.get("content"))),
                ("File", file_link),
                ("", actions),
            ],
            self.materials,
            empty_text="No materials yet.",
            table_id="course-materials",
        )
        form = ActionForm(
            "createCourseMaterial", form_id="create-material", return_to=here, submit_label="Add material"
        )
        form.hidden("course_id", self.course["id"])  # type: ignore[index]
        form.text("title", "Title", required=True)
        form.textarea("content", "Content")
        form.text("file_url", "File URL", input_type="url")
        return Section("Materials", table.render() + form.render(), section_id="materials").render()

    def _assignments_section(self, here: str) -> str:
        course_id = self.course["id"]  # type: ignore[index]
        selected = self.assignment["id"] if self.assignment else None

        def title(row: dict) -> str:
            return link(
                self._url(course_id=course_id, assignment_id=row["id"]),
                row.get("title") or "",
                active=row["id"] == selected,
            )

        def actions(row: dict) -> str:
            return ActionForm(
                "deleteAssignment",
                form_id=f"delete-assignment-{row['id']}",
                return_to=here,
                submit_label="Delete",
                danger=True,
                inline=True,
            ).hidden("id", row["id"]).render()

        table = DataTable(
            [
                ("Assignment", title),
                ("Description", lambda r: self.escape(r.get("description"))),
                ("Due", lambda r: self.escape(format_timestamp(r.get("due_date")) or "no due date")),
                ("", actions),
            ],
            self.assignments,
            empty_text="No assignments yet.",
            table_id="course-assignments",
        )
        form = ActionForm(
            "createAssignment", form_id="create-assignment", return_to=here, submit_label="Add assignment"
        )
        form.hidden("course_id", course_id)
        form.text("title", "Title", required=True)
        form.textarea("description", "Description")
        form.text("due_date", "Due date", input_type="datetime-local")
        return Section("Assignments", table.render() + form.render(), section_id="assignments").render()

    def _submissions_section(self) -> str:
        assignment = self.assignment or {}
        here = self._url(course_id=self.course["id"], assignment_id=assignment["id"])  # type: ignore[index]
        names = {s["id"]: full_name(s) for s in self.students}

        def grade_form(row: dict) -> str:
            form = ActionForm(
                "gradeSubmission",
                form_id=f"grade-{row['id']}",
                return_to=here,
                submit_label="Grade",
                inline=True,
            )
            form.hidden("id", row["id"])
            form.text(
                "grade",
                "Grade",
                value="" if row.get("grade") is None else row.get("grade"),
                input_type="number",
                step="0.01",
                required=True,
            )
            return form.render()

        table = DataTable(
            [
                ("Student", lambda r: self.escape(names.get(r.get("student_id"), f"#{r.get('student_id')}"))),
                ("Content", lambda r: self.escape(r.get("content"))),
                ("Submitted", lambda r: self.escape(format_timestamp(r.get("submitted_at")))),
                ("Grade", lambda r: self.escape(grade_text(r.get("grade")))),
                ("", grade_form),
            ],
            self.submissions,
            empty_text="No submissions yet.",
            table_id="assignment-submissions",
        )
        return Section(
            f"Submissions: {assignment.get('title')}", table.render(), section_id="submissions"
        ).render()
