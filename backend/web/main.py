"""
LMS web application: RPC API plus server-rendered role dashboards.

Pages never touch the store directly. They call the RPC API in-process
(httpx ASGITransport), so the browser UI exercises the same validation,
integrity rules and error codes as any external client.
"""
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import httpx
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles


def _should_load_dotenv() -> bool:
    """Decide if we should load a local .env file.

    - Never load under pytest to avoid contaminating test env.
    - Allow explicit opt-out via LMS_ENABLE_DOTENV (default true outside pytest).
    """
    if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return False
    flag = (os.getenv("LMS_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


if _should_load_dotenv():
    load_dotenv()

from .config import cors_origins, ensure_secure_config_on_startup, is_prod_like, strict_csrf  # noqa: E402
from .components import (  # noqa: E402
    AdminDashboard,
    Layout,
    StudentDashboard,
    TeacherDashboard,
    UserSelectorPage,
)
from .routes.rpc import OPERATIONS, MUTATION, rpc_router  # noqa: E402
from .routes.security import csrf_violation  # noqa: E402

# Minimal production safety checks (fail-fast on insecure config)
ensure_secure_config_on_startup()

logger = logging.getLogger("lms.web.ui")

app = FastAPI(title="LMS", description="Learning management system", version="1.0.0")

_origins = cors_origins()
if _origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )

# --- Static Files & Routers -----------------------------------------------------

static_dir = Path(__file__).parent / "static"
app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")
app.include_router(rpc_router)


# --- Security Headers Middleware ----------------------------------------------

@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    if is_prod_like():
        # No inline scripts or styles in production.
        csp = (
            "default-src 'self'; script-src 'self'; style-src 'self'; "
            "img-src 'self' data:; font-src 'self' data:; connect-src 'self'; form-action 'self';"
        )
    else:
        csp = (
            "default-src 'self'; script-src 'self' 'unsafe-inline'; style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data:; font-src 'self' data:; connect-src 'self'; form-action 'self';"
        )
    response.headers.setdefault("Content-Security-Policy", csp)
    response.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    if is_prod_like():
        response.headers.setdefault("Cross-Origin-Opener-Policy", "same-origin")
        response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
    response.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=(), camera=()")
    return response


# --- Internal API access -------------------------------------------------------

_INTERNAL_BASE = "http://local"


def _internal_api_client() -> httpx.AsyncClient:
    """Create an ASGI client preloaded with Origin for strict CSRF.

    SSR pages and form handlers call the RPC API in-process; the Origin header
    matches the loopback base so mutation endpoints accept the hop.
    """
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url=_INTERNAL_BASE,
        headers={"Origin": _INTERNAL_BASE},
    )


async def _rpc(client: httpx.AsyncClient, operation: str, payload: Optional[Dict[str, Any]] = None) -> Tuple[int, Any]:
    """POST one RPC call; returns ``(status, result_or_error_body)``."""
    resp = await client.post(f"/api/rpc/{operation}", json=payload or {})
    try:
        body = resp.json()
    except ValueError:
        logger.error("rpc %s returned non-JSON (status=%s)", operation, resp.status_code)
        return resp.status_code, {"detail": "backend_error"}
    if resp.status_code == 200:
        return 200, body.get("result")
    return resp.status_code, body


async def _rpc_list(client: httpx.AsyncClient, operation: str, payload: Dict[str, Any]) -> List[dict]:
    status, result = await _rpc(client, operation, payload)
    if status != 200:
        logger.warning("ui load %s failed: %s", operation, (result or {}).get("detail"))
        return []
    return result or []


def _html(content: str, *, status_code: int = 200) -> HTMLResponse:
    return HTMLResponse(content=content, status_code=status_code, headers={"Cache-Control": "private, no-store"})


def _int_param(request: Request, name: str) -> Optional[int]:
    raw = (request.query_params.get(name) or "").strip()
    # ASCII digits only; isdigit() also accepts e.g. superscripts int() rejects.
    if not (raw.isascii() and raw.isdecimal()):
        return None
    value = int(raw)
    return value if value > 0 else None


def _find(rows: List[dict], record_id: Optional[int]) -> Optional[dict]:
    if record_id is None:
        return None
    return next((r for r in rows if r.get("id") == record_id), None)


# --- Pages ---------------------------------------------------------------------

@app.get("/", response_class=HTMLResponse)
async def user_selector(request: Request):
    """Start page: choose a user (no authentication) or create one."""
    async with _internal_api_client() as client:
        users = await _rpc_list(client, "getUsers", {})
    page = Layout(
        "Choose a user",
        UserSelectorPage(users).render(),
        error=request.query_params.get("error"),
        notice=request.query_params.get("notice"),
    )
    return _html(page.render())


@app.get("/dashboard", response_class=HTMLResponse)
async def dashboard(request: Request):
    """Role dashboard for ``user_id``; unknown users go back to the selector."""
    user_id = _int_param(request, "user_id")
    if user_id is None:
        return RedirectResponse(url="/", status_code=303)
    async with _internal_api_client() as client:
        users = await _rpc_list(client, "getUsers", {})
        user = _find(users, user_id)
        if user is None:
            return RedirectResponse(url="/?error=user_not_found", status_code=303)
        role = user.get("role")
        if role == "administrator":
            courses = await _rpc_list(client, "getCourses", {})
            content = AdminDashboard(
                user,
                users,
                courses,
                edit_user_id=_int_param(request, "edit_user"),
                edit_course_id=_int_param(request, "edit_course"),
            ).render()
        elif role == "teacher":
            content = await _teacher_content(client, request, user)
        else:
            content = await _student_content(client, request, user)
    page = Layout(
        "Dashboard",
        content,
        user=user,
        error=request.query_params.get("error"),
        notice=request.query_params.get("notice"),
    )
    return _html(page.render())


async def _teacher_content(client: httpx.AsyncClient, request: Request, user: dict) -> str:
    courses = await _rpc_list(client, "getCoursesByTeacher", {"teacher_id": user["id"]})
    # Only the teacher's own courses can be opened.
    course = _find(courses, _int_param(request, "course_id"))
    if course is None:
        return TeacherDashboard(user, courses).render()
    students = await _rpc_list(client, "getCourseStudents", {"course_id": course["id"]})
    materials = await _rpc_list(client, "getCourseMaterials", {"course_id": course["id"]})
    assignments = await _rpc_list(client, "getAssignments", {"course_id": course["id"]})
    assignment = _find(assignments, _int_param(request, "assignment_id"))
    submissions: List[dict] = []
    if assignment is not None:
        submissions = await _rpc_list(client, "getSubmissions", {"assignment_id": assignment["id"]})
    return TeacherDashboard(
        user,
        courses,
        course=course,
        students=students,
        materials=materials,
        assignments=assignments,
        assignment=assignment,
        submissions=submissions,
    ).render()


async def _student_content(client: httpx.AsyncClient, request: Request, user: dict) -> str:
    all_courses = await _rpc_list(client, "getCourses", {})
    enrolled = await _rpc_list(client, "getCoursesByStudent", {"student_id": user["id"]})
    submissions = await _rpc_list(client, "getStudentSubmissions", {"student_id": user["id"]})
    course = _find(enrolled, _int_param(request, "course_id"))
    materials: List[dict] = []
    assignments: List[dict] = []
    if course is not None:
        materials = await _rpc_list(client, "getCourseMaterials", {"course_id": course["id"]})
        assignments = await _rpc_list(client, "getAssignments", {"course_id": course["id"]})
    return StudentDashboard(
        user,
        all_courses,
        enrolled,
        submissions,
        course=course,
        materials=materials,
        assignments=assignments,
    ).render()


# --- Form actions (post/redirect/get) -------------------------------------------

_INT_FIELDS = frozenset({"id", "teacher_id", "student_id", "course_id", "assignment_id"})
_FLOAT_FIELDS = frozenset({"grade"})

_NOTICES = {
    "create": "Created.",
    "update": "Saved.",
    "delete": "Deleted.",
    "grade": "Grade saved.",
}


def _coerce_form(form: Dict[str, str]) -> Dict[str, Any]:
    """Turn form strings into an RPC payload.

    Id fields become ints and ``grade`` a float; empty numeric fields are
    omitted so update operations leave them unchanged. Unparseable numbers
    are passed through and rejected by input validation.
    """
    payload: Dict[str, Any] = {}
    for key, raw in form.items():
        if key == "return_to":
            continue
        value = raw.strip() if isinstance(raw, str) else raw
        if key in _INT_FIELDS or key in _FLOAT_FIELDS:
            if value == "":
                continue
            try:
                payload[key] = int(value) if key in _INT_FIELDS else float(value)
            except ValueError:
                payload[key] = value
            continue
        payload[key] = raw
    return payload


def _safe_return_to(value: Optional[str]) -> str:
    """Only local paths are valid redirect targets."""
    if not value or not value.startswith("/") or value.startswith("//") or "\\" in value:
        return "/"
    return value


def _with_params(url: str, **params: str) -> str:
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query) if k not in ("error", "notice") and k not in params]
    query.extend(params.items())
    return urlunsplit(("", "", parts.path, urlencode(query), ""))


def _notice_for(operation: str) -> str:
    for prefix, text in _NOTICES.items():
        if operation.startswith(prefix):
            return text
    return "Done."


@app.post("/ui/{operation}")
async def ui_action(request: Request, operation: str):
    """Forward a dashboard form to the RPC API and redirect back."""
    form = await request.form()
    fields = {k: v for k, v in form.items() if isinstance(v, str)}
    target = _safe_return_to(fields.get("return_to"))

    op = OPERATIONS.get(operation)
    if op is None or op.kind != MUTATION:
        return RedirectResponse(url=_with_params(target, error="unknown_operation"), status_code=303)

    violation = csrf_violation(request, strict=strict_csrf())
    if violation:
        logger.warning("ui %s refused: %s", operation, violation)
        return RedirectResponse(url=_with_params(target, error=violation), status_code=303)

    payload = _coerce_form(fields)
    async with _internal_api_client() as client:
        status, result = await _rpc(client, operation, payload)
    if status != 200:
        code = (result or {}).get("detail") or "backend_error"
        logger.info("ui %s failed: %s", operation, code)
        return RedirectResponse(url=_with_params(target, error=code), status_code=303)
    if isinstance(result, dict) and result.get("success") is False:
        return RedirectResponse(url=_with_params(target, error="not_found"), status_code=303)
    return RedirectResponse(url=_with_params(target, notice=_notice_for(operation)), status_code=303)
