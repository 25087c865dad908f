"""
数据模型目录
"""

from .account import User, ROLE_TEACHER, ROLE_ADMIN, ROLE_SUPER_ADMIN, USER_ROLES
from .activity import ActivityLog, ActivityAction

__all__ = [
    "User", "ActivityLog", "ActivityAction",
    "ROLE_TEACHER", "ROLE_ADMIN", "ROLE_SUPER_ADMIN", "USER_ROLES",
]
