"""
ActionForm: one HTML form that posts to ``/ui/{operation}``.

The form handler forwards the fields to the RPC API and redirects back to
``return_to`` (post/redirect/get), so every dashboard action is a plain form.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from ..base import Component
from .fields import SelectField, TextAreaField, TextInputField


class ActionForm(Component):
    """Builder for small dashboard forms.

    Example:
        form = ActionForm("createCourse", form_id="new-course", return_to="/dashboard?user_id=2",
                          submit_label="Create course")
        form.hidden("teacher_id", 2)
        form.text("name", "Course name", required=True)
        html = form.render()
    """

    def __init__(
        self,
        operation: str,
        *,
        form_id: str,
        return_to: str,
        submit_label: str,
        danger: bool = False,
        inline: bool = False,
    ) -> None:
        self.operation = operation
        self.form_id = form_id
        self.return_to = return_to
        self.submit_label = submit_label
        self.danger = danger
        self.inline = inline
        self._hidden: List[Tuple[str, object]] = []
        self._fields: List[str] = []

    def _id(self, name: str) -> str:
        return f"{self.form_id}-{name}"

    def hidden(self, name: str, value: object) -> "ActionForm":
        self._hidden.append((name, value))
        return self

    def text(self, name: str, label: str, *, value: object = "", input_type: str = "text", **kw) -> "ActionForm":
        field = TextInputField(self._id(name), label, name=name, required=kw.pop("required", False))
        self._fields.append(field.render(value="" if value is None else str(value), input_type=input_type, **kw))
        return self

    def textarea(self, name: str, label: str, *, value: object = "", required: bool = False) -> "ActionForm":
        field = TextAreaField(self._id(name), label, name=name, required=required)
        self._fields.append(field.render(value="" if value is None else str(value)))
        return self

    def select(
        self,
        name: str,
        label: str,
        options: Iterable[Tuple[object, str]],
        *,
        selected: object = None,
        placeholder: Optional[str] = None,
        required: bool = False,
    ) -> "ActionForm":
        field = SelectField(self._id(name), label, name=name, required=required)
        self._fields.append(field.render(options=options, selected=selected, placeholder=placeholder))
        return self

    def render(self) -> str:
        hidden = [
            f'<input type="hidden" name="return_to" value="{self.escape(self.return_to)}">',
        ]
        hidden.extend(
            f'<input type="hidden" name="{self.escape(name)}" value="{self.escape(value)}">'
            for name, value in self._hidden
        )
        button_attrs = self.attributes(
            type="submit",
            class_=self.classes("btn", btn_danger=self.danger, btn_primary=not self.danger),
        )
        form_attrs = self.attributes(
            method="post",
            action=f"/ui/{self.operation}",
            id=self.form_id,
            class_=self.classes("action-form", action_form_inline=self.inline),
        )
        return (
            f"<form {form_attrs}>"
            f"{''.join(hidden)}"
            f"{''.join(self._fields)}"
            f'<div class="form-actions"><button {button_attrs}>{self.escape(self.submit_label)}</button></div>'
            "</form>"
        )
