"""
Form field components.

These small components keep markup consistent across the dashboard forms.
"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

from ..base import Component


class FormField(Component):
    """Wrapper that renders label, input slot and help text."""

    def __init__(
        self,
        field_id: str,
        label: str,
        *,
        name: Optional[str] = None,
        required: bool = False,
        help_text: Optional[str] = None,
    ) -> None:
        self.field_id = field_id
        self.name = name or field_id
        self.label = label
        self.required = required
        self.help_text = help_text

    def wrap(self, input_html: str) -> str:
        required_marker = '<span class="form-required" aria-hidden="true">*</span>' if self.required else ""
        help_html = (
            f'<p class="form-help" id="{self.escape(self.field_id)}-help">{self.escape(self.help_text)}</p>'
            if self.help_text
            else ""
        )
        label_attrs = self.attributes(for_=self.field_id, class_="form-label")
        return (
            '<div class="form-field">'
            f"<label {label_attrs}>{self.escape(self.label)}{required_marker}</label>"
            f"{input_html}"
            f"{help_html}"
            "</div>"
        )

    def _common_attrs(self) -> dict:
        return {
            "id": self.field_id,
            "name": self.name,
            "required": self.required,
            "aria_describedby": f"{self.field_id}-help" if self.help_text else None,
        }


class TextInputField(FormField):
    """Single-line input; ``input_type`` covers text, email, number and datetime-local."""

    def render(self, *, value: Optional[str] = "", input_type: str = "text", **attrs: str) -> str:
        input_attrs = self.attributes(
            type=input_type,
            value=value if value is not None else "",
            class_="form-input",
            **self._common_attrs(),
            **attrs,
        )
        return self.wrap(f"<input {input_attrs}>")


class TextAreaField(FormField):
    def render(self, *, value: Optional[str] = "", rows: int = 4, **attrs: str) -> str:
        textarea_attrs = self.attributes(rows=str(rows), class_="form-input", **self._common_attrs(), **attrs)
        return self.wrap(f"<textarea {textarea_attrs}>{self.escape(value)}</textarea>")


class SelectField(FormField):
    """Dropdown built from ``(value, label)`` pairs."""

    def render(
        self,
        *,
        options: Iterable[Tuple[object, str]],
        selected: object = None,
        placeholder: Optional[str] = None,
        **attrs: str,
    ) -> str:
        opts = []
        if placeholder is not None:
            opts.append(f'<option value="">{self.escape(placeholder)}</option>')
        for value, label in options:
            opt_attrs = self.attributes(value=value, selected=str(value) == str(selected) if selected is not None else False)
            opts.append(f"<option {opt_attrs}>{self.escape(label)}</option>")
        select_attrs = self.attributes(class_="form-input", **self._common_attrs(), **attrs)
        return self.wrap(f"<select {select_attrs}>{''.join(opts)}</select>")
