"""
Form components for the LMS dashboards.

Provides field building blocks and ActionForm, the single form type every
dashboard action uses.
"""

from .fields import FormField, TextAreaField, TextInputField, SelectField
from .action_form import ActionForm

__all__ = [
    "FormField",
    "TextAreaField",
    "TextInputField",
    "SelectField",
    "ActionForm",
]
