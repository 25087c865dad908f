"""
数据验证模式目录
"""

from .auth import UserLogin, UserInfo, LoginResponse, PasswordChange
from .user import UserCreate
from .activity import ActivityLogItem
from .response import success, dump_model, list_response

__all__ = [
    # 认证
    "UserLogin", "UserInfo", "LoginResponse", "PasswordChange",
    # 用户管理
    "UserCreate",
    # 操作日志
    "ActivityLogItem",
    # 响应
    "success", "dump_model", "list_response",
]
