from . import (
    health, auth, users, courses, students, assignments, sessions, content,
    notifications, dashboard, parents, analytics
)

__all__ = [
    "health",
    "auth",
    "users",
    "courses",
    "students",
    "assignments",
    "sessions",
    "content",
    "notifications",
    "dashboard",
    "parents",
    "analytics"
]
