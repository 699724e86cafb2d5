# LMS component system
# Pure Python components for server-rendered HTML

from .base import Component
from .layout import Layout, error_message
from .tables import DataTable, Section, format_timestamp
from .forms import FormField, TextAreaField, TextInputField, SelectField, ActionForm
from .pages import UserSelectorPage, AdminDashboard, TeacherDashboard, StudentDashboard

__all__ = [
    "Component",
    "Layout",
    "error_message",
    "DataTable",
    "Section",
    "format_timestamp",
    "FormField",
    "TextAreaField",
    "TextInputField",
    "SelectField",
    "ActionForm",
    "UserSelectorPage",
    "AdminDashboard",
    "TeacherDashboard",
    "StudentDashboard",
]
