"""
Input models for every LMS operation (validation layer).

Why:
    Each RPC operation validates its raw JSON payload against exactly one of
    these models before any store access. Validation is side-effect free.

Conventions:
    - Update models leave absent fields unset; callers use
      ``model_dump(exclude_unset=True)`` so only supplied fields are written.
    - Explicit ``null`` clears a nullable field and is rejected for the
      non-nullable ones (names, titles, email, role, teacher_id).
    - Optional free-text fields are stripped; blank strings become ``None``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field
from pydantic.functional_validators import field_validator

Role = Literal["student", "teacher", "administrator"]
RecordId = int


def _strip_required(v):
    if v is None:
        raise ValueError("must not be null")
    if isinstance(v, str):
        return v.strip()
    return v


def _strip_empty(v):
    if isinstance(v, str):
        v = v.strip()
        return v if v else None
    return v


def _as_utc(v: Optional[datetime]) -> Optional[datetime]:
    if v is not None and v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v


class EmptyInput(BaseModel):
    """Operations without parameters (getCourses)."""


# --- Users -------------------------------------------------------------------


class CreateUserInput(BaseModel):
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=200)
    last_name: str = Field(..., min_length=1, max_length=200)
    role: Role

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def _strip_names(cls, v):
        return _strip_required(v)


class GetUsersInput(BaseModel):
    role: Optional[Role] = None


class UpdateUserInput(BaseModel):
    id: RecordId = Field(..., gt=0)
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    role: Optional[Role] = None

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def _strip_names(cls, v):
        return _strip_required(v)

    @field_validator("email", "role", mode="before")
    @classmethod
    def _reject_null(cls, v):
        if v is None:
            raise ValueError("must not be null")
        return v


class DeleteUserInput(BaseModel):
    id: RecordId = Field(..., gt=0)


# --- Courses -----------------------------------------------------------------


class CreateCourseInput(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str]
    teacher_id: RecordId = Field(..., gt=0)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v):
        return _strip_required(v)

    @field_validator("description", mode="before")
    @classmethod
    def _strip_description(cls, v):
        return _strip_empty(v)


class GetCoursesByTeacherInput(BaseModel):
    teacher_id: RecordId = Field(..., gt=0)


class GetCoursesByStudentInput(BaseModel):
    student_id: RecordId = Field(..., gt=0)


class UpdateCourseInput(BaseModel):
    id: RecordId = Field(..., gt=0)
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    teacher_id: Optional[RecordId] = Field(default=None, gt=0)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v):
        return _strip_required(v)

    @field_validator("teacher_id", mode="before")
    @classmethod
    def _reject_null(cls, v):
        if v is None:
            raise ValueError("must not be null")
        return v

    @field_validator("description", mode="before")
    @classmethod
    def _strip_description(cls, v):
        return _strip_empty(v)


class DeleteCourseInput(BaseModel):
    id: RecordId = Field(..., gt=0)


# --- Enrollments -------------------------------------------------------------


class CreateEnrollmentInput(BaseModel):
    student_id: RecordId = Field(..., gt=0)
    course_id: RecordId = Field(..., gt=0)


class GetCourseStudentsInput(BaseModel):
    course_id: RecordId = Field(..., gt=0)


# --- Course materials --------------------------------------------------------


class CreateCourseMaterialInput(BaseModel):
    course_id: RecordId = Field(..., gt=0)
    title: str = Field(..., min_length=1, max_length=200)
    content: Optional[str]
    file_url: Optional[str] = Field(..., max_length=2048)

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, v):
        return _strip_required(v)

    @field_validator("content", "file_url", mode="before")
    @classmethod
    def _strip_optional(cls, v):
        return _strip_empty(v)


class GetCourseMaterialsInput(BaseModel):
    course_id: RecordId = Field(..., gt=0)


class UpdateCourseMaterialInput(BaseModel):
    id: RecordId = Field(..., gt=0)
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    content: Optional[str] = None
    file_url: Optional[str] = Field(default=None, max_length=2048)

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, v):
        return _strip_required(v)

    @field_validator("content", "file_url", mode="before")
    @classmethod
    def _strip_optional(cls, v):
        return _strip_empty(v)


class DeleteCourseMaterialInput(BaseModel):
    id: RecordId = Field(..., gt=0)


# --- Assignments -------------------------------------------------------------


class CreateAssignmentInput(BaseModel):
    course_id: RecordId = Field(..., gt=0)
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str]
    due_date: Optional[datetime]

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, v):
        return _strip_required(v)

    @field_validator("description", "due_date", mode="before")
    @classmethod
    def _strip_optional(cls, v):
        return _strip_empty(v)

    @field_validator("due_date")
    @classmethod
    def _due_date_utc(cls, v):
        return _as_utc(v)


class GetAssignmentsInput(BaseModel):
    course_id: RecordId = Field(..., gt=0)


class UpdateAssignmentInput(BaseModel):
    id: RecordId = Field(..., gt=0)
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    due_date: Optional[datetime] = None

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, v):
        return _strip_required(v)

    @field_validator("description", "due_date", mode="before")
    @classmethod
    def _strip_optional(cls, v):
        return _strip_empty(v)

    @field_validator("due_date")
    @classmethod
    def _due_date_utc(cls, v):
        return _as_utc(v)


class DeleteAssignmentInput(BaseModel):
    id: RecordId = Field(..., gt=0)


# --- Submissions -------------------------------------------------------------


class CreateAssignmentSubmissionInput(BaseModel):
    assignment_id: RecordId = Field(..., gt=0)
    student_id: RecordId = Field(..., gt=0)
    content: Optional[str]
    file_url: Optional[str] = Field(..., max_length=2048)

    @field_validator("content", "file_url", mode="before")
    @classmethod
    def _strip_optional(cls, v):
        return _strip_empty(v)


class GetSubmissionsInput(BaseModel):
    assignment_id: RecordId = Field(..., gt=0)


class GetStudentSubmissionsInput(BaseModel):
    student_id: RecordId = Field(..., gt=0)


class GradeSubmissionInput(BaseModel):
    id: RecordId = Field(..., gt=0)
    grade: float = Field(..., allow_inf_nan=False)
