from .base import Base
from .user import User
from .role import Role, users_to_roles
from .agenda import Agenda, DayOfWeek

__all__ = ["Base", "User", "Role", "users_to_roles", "Agenda", "DayOfWeek"]
