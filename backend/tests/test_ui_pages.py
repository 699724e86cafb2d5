"""
Server-rendered pages: user selector, role dashboards and form actions
(post/redirect/get through the RPC API).
"""
from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

import httpx
import pytest
from httpx import ASGITransport

from web import main  # type: ignore

pytestmark = pytest.mark.anyio("asyncio")

ORIGIN = "http://test"


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=ASGITransport(app=main.app), base_url=ORIGIN, headers={"Origin": ORIGIN})


async def _rpc(client: httpx.AsyncClient, op: str, payload: dict) -> dict:
    resp = await client.post(f"/api/rpc/{op}", json=payload)
    assert resp.status_code == 200, resp.text
    return resp.json()["result"]


async def _user(client: httpx.AsyncClient, email: str, role: str, first: str = "Fay") -> dict:
    return await _rpc(client, "createUser", {"email": email, "first_name": first, "last_name": "Doe", "role": role})


def _query(location: str) -> dict:
    return {k: v[0] for k, v in parse_qs(urlsplit(location).query).items()}


async def test_selector_lists_users_by_role_with_security_headers():
    async with _client() as client:
        await _user(client, "t@example.com", "teacher", first="Tess")
        await _user(client, "s@example.com", "student", first="Stan")
        resp = await client.get("/")
    assert resp.status_code == 200
    html = resp.text
    assert "Tess Doe" in html and "Stan Doe" in html
    assert 'data-role="teacher"' in html
    assert 'action="/ui/createUser"' in html
    assert resp.headers.get("X-Frame-Options") == "SAMEORIGIN"
    assert "default-src 'self'" in resp.headers.get("Content-Security-Policy", "")
    assert resp.headers.get("Cache-Control") == "private, no-store"


async def test_unknown_user_redirects_to_selector():
    async with _client() as client:
        missing = await client.get("/dashboard", params={"user_id": 77})
        garbage = await client.get("/dashboard", params={"user_id": "abc"})
    assert missing.status_code == 303
    assert missing.headers["location"].startswith("/?error=user_not_found")
    assert garbage.status_code == 303
    assert garbage.headers["location"] == "/"


@pytest.mark.parametrize("raw", ["²", "١٢", "-3", "0", " "])
async def test_non_ascii_or_non_positive_user_id_redirects(raw):
    async with _client() as client:
        resp = await client.get("/dashboard", params={"user_id": raw})
    assert resp.status_code == 303
    assert resp.headers["location"] == "/"


async def test_unicode_digit_course_id_is_ignored():
    async with _client() as client:
        teacher = await _user(client, "t@example.com", "teacher", first="Tess")
        await _rpc(client, "createCourse", {"name": "Algebra", "description": None, "teacher_id": teacher["id"]})
        resp = await client.get("/dashboard", params={"user_id": teacher["id"], "course_id": "²", "edit_user": "³"})
    assert resp.status_code == 200
    assert 'class="course-detail"' not in resp.text


async def test_admin_dashboard_lists_users_and_courses():
    async with _client() as client:
        admin = await _user(client, "root@example.com", "administrator", first="Ada")
        teacher = await _user(client, "t@example.com", "teacher", first="Tess")
        await _rpc(client, "createCourse", {"name": "Chemistry", "description": None, "teacher_id": teacher["id"]})
        resp = await client.get("/dashboard", params={"user_id": admin["id"], "edit_user": teacher["id"]})
    html = resp.text
    assert resp.status_code == 200
    assert "Administration" in html
    assert 'id="users-table"' in html and 'id="courses-table"' in html
    assert "Chemistry" in html
    assert 'id="edit-user"' in html
    assert 'action="/ui/deleteUser"' in html


async def test_teacher_dashboard_shows_course_detail_and_submissions():
    async with _client() as client:
        teacher = await _user(client, "t@example.com", "teacher", first="Tess")
        student = await _user(client, "s@example.com", "student", first="Stan")
        course = await _rpc(client, "createCourse", {"name": "Algebra", "description": None, "teacher_id": teacher["id"]})
        assignment = await _rpc(
            client, "createAssignment", {"course_id": course["id"], "title": "Worksheet", "description": None, "due_date": None}
        )
        await _rpc(client, "createEnrollment", {"student_id": student["id"], "course_id": course["id"]})
        await _rpc(
            client,
            "createAssignmentSubmission",
            {"assignment_id": assignment["id"], "student_id": student["id"], "content": "x = 2", "file_url": None},
        )
        resp = await client.get(
            "/dashboard",
            params={"user_id": teacher["id"], "course_id": course["id"], "assignment_id": assignment["id"]},
        )
    html = resp.text
    assert 'id="course-students"' in html and "Stan Doe" in html
    assert 'id="assignment-submissions"' in html
    assert "x = 2" in html
    assert 'action="/ui/gradeSubmission"' in html


async def test_teacher_cannot_open_foreign_course():
    async with _client() as client:
        owner = await _user(client, "owner@example.com", "teacher")
        other = await _user(client, "other@example.com", "teacher")
        course = await _rpc(client, "createCourse", {"name": "Secret", "description": None, "teacher_id": owner["id"]})
        resp = await client.get("/dashboard", params={"user_id": other["id"], "course_id": course["id"]})
    assert 'class="course-detail"' not in resp.text


async def test_student_dashboard_catalogue_and_enrollment_form():
    async with _client() as client:
        teacher = await _user(client, "t@example.com", "teacher")
        student = await _user(client, "s@example.com", "student", first="Stan")
        await _rpc(client, "createCourse", {"name": "Geography", "description": "Maps", "teacher_id": teacher["id"]})
        resp = await client.get("/dashboard", params={"user_id": student["id"]})
    html = resp.text
    assert "Learning: Stan Doe" in html
    assert 'id="available-courses"' in html and "Geography" in html
    assert 'action="/ui/createEnrollment"' in html


async def test_form_action_redirects_with_notice_and_updates_data():
    async with _client() as client:
        teacher = await _user(client, "t@example.com", "teacher")
        student = await _user(client, "s@example.com", "student")
        course = await _rpc(client, "createCourse", {"name": "Music", "description": None, "teacher_id": teacher["id"]})
        back = f"/dashboard?user_id={student['id']}"
        resp = await client.post(
            "/ui/createEnrollment",
            data={"return_to": back, "student_id": str(student["id"]), "course_id": str(course["id"])},
        )
        assert resp.status_code == 303
        params = _query(resp.headers["location"])
        assert params["user_id"] == str(student["id"])
        assert params["notice"] == "Created."
        enrolled = await _rpc(client, "getCoursesByStudent", {"student_id": student["id"]})
        assert [c["id"] for c in enrolled] == [course["id"]]

        again = await client.post(
            "/ui/createEnrollment",
            data={"return_to": back, "student_id": str(student["id"]), "course_id": str(course["id"])},
        )
        assert _query(again.headers["location"])["error"] == "already_enrolled"
        page = await client.get(again.headers["location"])
    assert 'data-error="already_enrolled"' in page.text
    assert "already enrolled" in page.text


async def test_form_action_validation_error_and_blank_optional_fields():
    async with _client() as client:
        teacher = await _user(client, "t@example.com", "teacher")
        back = f"/dashboard?user_id={teacher['id']}"
        bad = await client.post("/ui/createCourse", data={"return_to": back, "name": "", "description": "", "teacher_id": str(teacher["id"])})
        ok = await client.post("/ui/createCourse", data={"return_to": back, "name": "Drama", "description": "", "teacher_id": str(teacher["id"])})
        courses = await _rpc(client, "getCoursesByTeacher", {"teacher_id": teacher["id"]})
    assert _query(bad.headers["location"])["error"] == "invalid_input"
    assert "notice" in _query(ok.headers["location"])
    assert [(c["name"], c["description"]) for c in courses] == [("Drama", None)]


async def test_form_action_grade_and_update_keep_current_teacher():
    async with _client() as client:
        admin = await _user(client, "a@example.com", "administrator")
        teacher = await _user(client, "t@example.com", "teacher")
        course = await _rpc(client, "createCourse", {"name": "Art", "description": None, "teacher_id": teacher["id"]})
        back = f"/dashboard?user_id={admin['id']}"
        resp = await client.post(
            "/ui/updateCourse",
            data={"return_to": back, "id": str(course["id"]), "name": "Fine Art", "description": "", "teacher_id": ""},
        )
        courses = await _rpc(client, "getCourses", {})
    assert _query(resp.headers["location"])["notice"] == "Saved."
    assert courses[0]["name"] == "Fine Art"
    assert courses[0]["teacher_id"] == teacher["id"]


async def test_form_action_rejects_cross_origin_and_foreign_redirects():
    async with httpx.AsyncClient(
        transport=ASGITransport(app=main.app), base_url=ORIGIN, headers={"Origin": "http://evil.example"}
    ) as client:
        resp = await client.post(
            "/ui/createUser",
            data={
                "return_to": "https://evil.example/phish",
                "email": "x@example.com",
                "first_name": "X",
                "last_name": "Y",
                "role": "student",
            },
        )
    assert resp.status_code == 303
    location = resp.headers["location"]
    assert location.startswith("/?")
    assert _query(location)["error"] == "csrf_violation"


async def test_form_action_unknown_or_query_operation():
    async with _client() as client:
        resp = await client.post("/ui/getUsers", data={"return_to": "/"})
    assert _query(resp.headers["location"])["error"] == "unknown_operation"
