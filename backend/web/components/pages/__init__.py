"""Full-page components: user selector and the three role dashboards."""

from .user_selector import UserSelectorPage
from .admin import AdminDashboard
from .teacher import TeacherDashboard
from .student import StudentDashboard

__all__ = [
    "UserSelectorPage",
    "AdminDashboard",
    "TeacherDashboard",
    "StudentDashboard",
]
