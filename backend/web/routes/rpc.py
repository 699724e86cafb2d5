"""
LMS RPC API: every named operation behind one router.

Why:
    The dashboards (and any other client) talk to a single, typed surface:
    ``POST /api/rpc/{operation}`` with a JSON input object. Query operations
    may also be called as ``GET /api/rpc/{operation}?input=<json>``. The
    router only validates and dispatches; rules live in ``lms.services`` and
    ``lms.integrity``.

Responses:
    - 200 ``{"result": ...}``; delete operations answer ``{"success": bool}``.
    - Errors ``{"error": <kind>, "detail": <code>, "message": <text>}`` with
      400 validation, 404 not_found, 409 conflict/blocked, 422 invalid_role.
    - Everything is ``Cache-Control: private, no-store``.

Persistence:
    Prefers the Postgres store when a DSN is configured; falls back to the
    in-memory store otherwise. Tests call ``set_store`` for isolation.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Type

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from lms import schemas
from lms.domain import utcnow
from lms.errors import LmsError
from lms.services.assignments import AssignmentsService
from lms.services.courses import CoursesService
from lms.services.enrollments import EnrollmentsService
from lms.services.materials import MaterialsService
from lms.services.submissions import SubmissionsService
from lms.services.users import UsersService
from lms.store import InMemoryStore, StoreProtocol

from ..config import database_url, strict_csrf
from .security import csrf_violation

rpc_router = APIRouter(tags=["RPC"])
logger = logging.getLogger("lms.web.rpc")

QUERY = "query"
MUTATION = "mutation"

_STATUS_BY_KIND = {
    "validation": 400,
    "not_found": 404,
    "conflict": 409,
    "blocked": 409,
    "invalid_role": 422,
}


# --- Store wiring ------------------------------------------------------------------


def _build_default_store() -> StoreProtocol:
    """Prefer the Postgres store; fall back to in-memory if unavailable."""
    if not database_url():
        return InMemoryStore()
    try:
        from lms.repo_db import DBStore

        return DBStore(database_url())
    except Exception as exc:  # pragma: no cover - exercised when psycopg/DSN missing
        logger.warning("LMS store unavailable (%s); using in-memory fallback", exc)
        return InMemoryStore()


"""Lazy store accessor to avoid import-time DB checks in tests."""
_STORE: Optional[StoreProtocol] = None


def _get_store() -> StoreProtocol:
    global _STORE
    if _STORE is None:
        _STORE = _build_default_store()
    return _STORE


def set_store(store: StoreProtocol) -> None:
    """Allow tests to swap the store implementation."""
    global _STORE
    _STORE = store


@dataclass
class Services:
    users: UsersService
    courses: CoursesService
    enrollments: EnrollmentsService
    materials: MaterialsService
    assignments: AssignmentsService
    submissions: SubmissionsService

    @classmethod
    def for_store(cls, store: StoreProtocol) -> "Services":
        return cls(
            users=UsersService(store),
            courses=CoursesService(store),
            enrollments=EnrollmentsService(store),
            materials=MaterialsService(store),
            assignments=AssignmentsService(store),
            submissions=SubmissionsService(store),
        )


# --- Operation registry -------------------------------------------------------------

Handler = Callable[[Services, Dict[str, Any]], Any]


@dataclass(frozen=True)
class Operation:
    name: str
    kind: str
    input_model: Type[BaseModel]
    handler: Handler


def _by_id(method_name: str, service: str) -> Handler:
    """Call ``service.method(id, **rest)`` for update/grade style inputs."""

    def handler(services: Services, payload: Dict[str, Any]) -> Any:
        data = dict(payload)
        record_id = data.pop("id")
        return getattr(getattr(services, service), method_name)(record_id, **data)

    return handler


def _deleter(method_name: str, service: str) -> Handler:
    def handler(services: Services, payload: Dict[str, Any]) -> Any:
        return {"success": bool(getattr(getattr(services, service), method_name)(payload["id"]))}

    return handler


def _kwargs(method_name: str, service: str) -> Handler:
    def handler(services: Services, payload: Dict[str, Any]) -> Any:
        return getattr(getattr(services, service), method_name)(**payload)

    return handler


_OPERATIONS = (
    # Users
    Operation("createUser", MUTATION, schemas.CreateUserInput, _kwargs("create_user", "users")),
    Operation("getUsers", QUERY, schemas.GetUsersInput, _kwargs("get_users", "users")),
    Operation("updateUser", MUTATION, schemas.UpdateUserInput, _by_id("update_user", "users")),
    Operation("deleteUser", MUTATION, schemas.DeleteUserInput, _deleter("delete_user", "users")),
    # Courses
    Operation("createCourse", MUTATION, schemas.CreateCourseInput, _kwargs("create_course", "courses")),
    Operation("getCourses", QUERY, schemas.EmptyInput, _kwargs("get_courses", "courses")),
    Operation(
        "getCoursesByTeacher", QUERY, schemas.GetCoursesByTeacherInput, _kwargs("get_courses_by_teacher", "courses")
    ),
    Operation(
        "getCoursesByStudent", QUERY, schemas.GetCoursesByStudentInput, _kwargs("get_courses_by_student", "courses")
    ),
    Operation("updateCourse", MUTATION, schemas.UpdateCourseInput, _by_id("update_course", "courses")),
    Operation("deleteCourse", MUTATION, schemas.DeleteCourseInput, _deleter("delete_course", "courses")),
    # Enrollments
    Operation(
        "createEnrollment", MUTATION, schemas.CreateEnrollmentInput, _kwargs("create_enrollment", "enrollments")
    ),
    Operation(
        "getCourseStudents", QUERY, schemas.GetCourseStudentsInput, _kwargs("get_course_students", "enrollments")
    ),
    # Course materials
    Operation(
        "createCourseMaterial",
        MUTATION,
        schemas.CreateCourseMaterialInput,
        _kwargs("create_course_material", "materials"),
    ),
    Operation(
        "getCourseMaterials", QUERY, schemas.GetCourseMaterialsInput, _kwargs("get_course_materials", "materials")
    ),
    Operation(
        "updateCourseMaterial",
        MUTATION,
        schemas.UpdateCourseMaterialInput,
        _by_id("update_course_material", "materials"),
    ),
    Operation(
        "deleteCourseMaterial",
        MUTATION,
        schemas.DeleteCourseMaterialInput,
        _deleter("delete_course_material", "materials"),
    ),
    # Assignments
    Operation(
        "createAssignment", MUTATION, schemas.CreateAssignmentInput, _kwargs("create_assignment", "assignments")
    ),
    Operation("getAssignments", QUERY, schemas.GetAssignmentsInput, _kwargs("get_assignments", "assignments")),
    Operation(
        "updateAssignment", MUTATION, schemas.UpdateAssignmentInput, _by_id("update_assignment", "assignments")
    ),
    Operation(
        "deleteAssignment", MUTATION, schemas.DeleteAssignmentInput, _deleter("delete_assignment", "assignments")
    ),
    # Submissions
    Operation(
        "createAssignmentSubmission",
        MUTATION,
        schemas.CreateAssignmentSubmissionInput,
        _kwargs("create_assignment_submission", "submissions"),
    ),
    Operation("getSubmissions", QUERY, schemas.GetSubmissionsInput, _kwargs("get_submissions", "submissions")),
    Operation(
        "getStudentSubmissions",
        QUERY,
        schemas.GetStudentSubmissionsInput,
        _kwargs("get_student_submissions", "submissions"),
    ),
    Operation("gradeSubmission", MUTATION, schemas.GradeSubmissionInput, _by_id("grade_submission", "submissions")),
)

OPERATIONS: Dict[str, Operation] = {op.name: op for op in _OPERATIONS}


# --- Dispatch -------------------------------------------------------------------------


def _private_response(body: Any, *, status_code: int = 200) -> JSONResponse:
    """Return JSON with private, no-store cache headers."""
    return JSONResponse(content=body, status_code=status_code, headers={"Cache-Control": "private, no-store"})


def _error(kind: str, detail: str, message: str, *, status_code: int, **extra: Any) -> JSONResponse:
    body = {"error": kind, "detail": detail, "message": message}
    body.update(extra)
    return _private_response(body, status_code=status_code)


def _validation_issues(exc: ValidationError) -> list[dict]:
    return [
        {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg", "")}
        for err in exc.errors()
    ]


def execute(operation: Operation, raw_input: Any, store: Optional[StoreProtocol] = None) -> Any:
    """Validate ``raw_input`` and run the operation; raises LmsError/ValidationError."""
    model = operation.input_model.model_validate(raw_input if raw_input is not None else {})
    payload = model.model_dump(exclude_unset=True)
    services = Services.for_store(store or _get_store())
    return operation.handler(services, payload)


async def _dispatch(name: str, raw_input: Any) -> JSONResponse:
    operation = OPERATIONS[name]
    try:
        result = await run_in_threadpool(execute, operation, raw_input)
    except ValidationError as exc:
        logger.warning("rpc %s rejected: invalid_input", name)
        return _error(
            "validation",
            "invalid_input",
            "Input validation failed",
            status_code=400,
            issues=_validation_issues(exc),
        )
    except LmsError as exc:
        logger.warning("rpc %s failed: %s/%s", name, exc.kind, exc.code)
        return _error(exc.kind, exc.code, exc.message, status_code=_STATUS_BY_KIND.get(exc.kind, 400))
    return _private_response({"result": jsonable_encoder(result)})


def _unknown(name: str) -> JSONResponse:
    return _error("not_found", "unknown_operation", f"Unknown operation: {name}", status_code=404)


@rpc_router.get("/api/health")
async def health():
    return _private_response({"status": "ok", "timestamp": utcnow().isoformat()})


@rpc_router.get("/api/rpc")
async def list_operations():
    return _private_response({"operations": [{"name": op.name, "kind": op.kind} for op in _OPERATIONS]})


@rpc_router.get("/api/rpc/{name}")
async def call_query(request: Request, name: str):
    """Run a query operation; input is the JSON-encoded ``input`` parameter."""
    operation = OPERATIONS.get(name)
    if operation is None:
        return _unknown(name)
    if operation.kind != QUERY:
        return _error("method_not_allowed", "mutation_requires_post", f"{name} is a mutation; use POST", status_code=405)
    raw = request.query_params.get("input")
    try:
        raw_input = json.loads(raw) if raw else {}
    except ValueError:
        return _error("validation", "invalid_json", "input is not valid JSON", status_code=400)
    return await _dispatch(name, raw_input)


@rpc_router.post("/api/rpc/{name}")
async def call_operation(request: Request, name: str):
    """Run any operation with a JSON body as input.

    Writes from browsers must be same-origin (Origin/Referer check); in
    strict mode one of those headers is mandatory.
    """
    operation = OPERATIONS.get(name)
    if operation is None:
        return _unknown(name)
    if operation.kind == MUTATION:
        violation = csrf_violation(request, strict=strict_csrf())
        if violation:
            logger.warning("rpc %s refused: %s", name, violation)
            return _error("forbidden", violation, "Cross-origin write refused", status_code=403)
    body = await request.body()
    try:
        raw_input = json.loads(body) if body.strip() else {}
    except ValueError:
        return _error("validation", "invalid_json", "Body is not valid JSON", status_code=400)
    return await _dispatch(name, raw_input)
