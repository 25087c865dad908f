"""
Aftab Exam Desk 核心模块
提供系统的基础设施和通用功能

导出列表：
- 配置管理: get_settings, Settings
- 数据库: Base, get_db, async_session
- 安全认证: get_current_user, require_admin, CurrentUser
- 错误处理: ErrorCode, AppException, register_exception_handlers
- 远程镜像: RemoteMirror, get_remote_mirror, MirrorStatus
- 存储适配: Repository
- 可见性: filter_visible

依赖 models 的模块（accounts / activity / bootstrap）需直接从子模块导入
"""

# 配置管理
from .config import get_settings, Settings, reload_settings

# 数据库
from .database import Base, get_db, async_session, init_db, close_db

# 错误处理
from .errors import (
    ErrorCode,
    AppException,
    ValidationException,
    AuthException,
    NotFoundException,
    PermissionException,
    BusinessException,
    ExamGenerationError,
    register_exception_handlers
)

# 安全认证
from .security import (
    get_current_user,
    require_admin,
    require_super_admin,
    create_token,
    decode_token,
    hash_password,
    verify_password,
    TokenData,
    CurrentUser
)

# 远程镜像与存储适配
from .mirror import RemoteMirror, MirrorStatus, RemoteStoreError, get_remote_mirror, set_remote_mirror
from .repository import Repository

# 可见性过滤
from .visibility import filter_visible, VisibleData

# 中间件
from .middleware import RequestLoggingMiddleware


__all__ = [
    # 配置
    "get_settings",
    "Settings",
    "reload_settings",

    # 数据库
    "Base",
    "get_db",
    "async_session",
    "init_db",
    "close_db",

    # 错误
    "ErrorCode",
    "AppException",
    "ValidationException",
    "AuthException",
    "NotFoundException",
    "PermissionException",
    "BusinessException",
    "ExamGenerationError",
    "register_exception_handlers",

    # 安全
    "get_current_user",
    "require_admin",
    "require_super_admin",
    "create_token",
    "decode_token",
    "hash_password",
    "verify_password",
    "TokenData",
    "CurrentUser",

    # 镜像与存储
    "RemoteMirror",
    "MirrorStatus",
    "RemoteStoreError",
    "get_remote_mirror",
    "set_remote_mirror",
    "Repository",

    # 可见性
    "filter_visible",
    "VisibleData",

    # 中间件
    "RequestLoggingMiddleware",
]
