"""
Input models: what the RPC layer accepts before any store access.
"""
from __future__ import annotations

from datetime import timezone

import pytest
from pydantic import ValidationError

from lms import schemas


def test_create_user_requires_valid_email_and_role():
    with pytest.raises(ValidationError):
        schemas.CreateUserInput.model_validate(
            {"email": "not-an-email", "first_name": "A", "last_name": "B", "role": "student"}
        )
    with pytest.raises(ValidationError):
        schemas.CreateUserInput.model_validate(
            {"email": "a@example.com", "first_name": "A", "last_name": "B", "role": "janitor"}
        )


def test_create_user_strips_and_rejects_blank_names():
    model = schemas.CreateUserInput.model_validate(
        {"email": "a@example.com", "first_name": "  Ada ", "last_name": "L", "role": "teacher"}
    )
    assert model.first_name == "Ada"
    with pytest.raises(ValidationError):
        schemas.CreateUserInput.model_validate(
            {"email": "a@example.com", "first_name": "   ", "last_name": "L", "role": "teacher"}
        )


def test_update_user_keeps_absent_fields_unset():
    model = schemas.UpdateUserInput.model_validate({"id": 3, "last_name": "New"})
    assert model.model_dump(exclude_unset=True) == {"id": 3, "last_name": "New"}


def test_update_user_rejects_null_for_required_fields():
    for field in ("email", "first_name", "role"):
        with pytest.raises(ValidationError):
            schemas.UpdateUserInput.model_validate({"id": 3, field: None})


def test_update_course_null_description_clears_but_null_teacher_rejected():
    model = schemas.UpdateCourseInput.model_validate({"id": 1, "description": None})
    assert model.model_dump(exclude_unset=True) == {"id": 1, "description": None}
    with pytest.raises(ValidationError):
        schemas.UpdateCourseInput.model_validate({"id": 1, "teacher_id": None})


def test_ids_must_be_positive():
    with pytest.raises(ValidationError):
        schemas.DeleteCourseInput.model_validate({"id": 0})
    with pytest.raises(ValidationError):
        schemas.GetCoursesByTeacherInput.model_validate({"teacher_id": -4})


def test_create_models_require_nullable_keys():
    # description is nullable but must be supplied.
    with pytest.raises(ValidationError):
        schemas.CreateCourseInput.model_validate({"name": "Chem", "teacher_id": 1})
    model = schemas.CreateCourseInput.model_validate({"name": "Chem", "description": "  ", "teacher_id": 1})
    assert model.description is None


def test_naive_due_date_is_treated_as_utc():
    model = schemas.CreateAssignmentInput.model_validate(
        {"course_id": 1, "title": "Lab", "description": None, "due_date": "2026-12-01T09:30"}
    )
    assert model.due_date.tzinfo == timezone.utc
    blank = schemas.CreateAssignmentInput.model_validate(
        {"course_id": 1, "title": "Lab", "description": None, "due_date": ""}
    )
    assert blank.due_date is None


@pytest.mark.parametrize("grade", ["abc", float("nan"), float("inf"), None])
def test_grade_must_be_finite_number(grade):
    with pytest.raises(ValidationError):
        schemas.GradeSubmissionInput.model_validate({"id": 1, "grade": grade})


def test_grade_accepts_fractional_values():
    assert schemas.GradeSubmissionInput.model_validate({"id": 1, "grade": 92.75}).grade == 92.75
