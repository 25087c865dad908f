"""
路由目录
"""

from . import auth, user, activity, health

__all__ = ["auth", "user", "activity", "health"]
