"""
DevCamper Backend — ORM Models
================================

Importing this package registers every table with `Base.metadata`
(Alembic autogenerate and the test-suite's `create_all` rely on it).
"""

from app.models.user import User, Role
from app.models.bootcamp import Bootcamp, CAREERS
from app.models.course import Course, SKILL_LEVELS
from app.models.review import Review

__all__ = ["User", "Role", "Bootcamp", "CAREERS", "Course", "SKILL_LEVELS", "Review"]
