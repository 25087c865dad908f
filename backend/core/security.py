"""
统一鉴权模块
提供JWT令牌生成、验证、密码处理和当前用户解析
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
import bcrypt
from jose import JWTError, jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .database import get_db
from .errors import AuthException, ErrorCode, PermissionException

logger = logging.getLogger(__name__)
settings = get_settings()

# Bearer令牌认证（缺少令牌时由本模块统一返回 401）
security = HTTPBearer(auto_error=False)


class TokenData(BaseModel):
    """令牌数据"""
    user_id: str
    username: str
    role: str = "teacher"
    school_name: str = ""


class CurrentUser(BaseModel):
    """
    当前登录用户
    每次请求都从数据库重新加载，令牌只用于定位用户
    """
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: Optional[str] = None
    full_name: str
    role: str
    school_name: str

    @property
    def is_super_admin(self) -> bool:
        return self.role == "super_admin"

    @property
    def is_admin(self) -> bool:
        return self.role in ("admin", "super_admin")


def hash_password(password: str) -> str:
    """
    加密密码
    bcrypt 限制密码长度不超过 72 字节
    """
    if not isinstance(password, str):
        password = str(password)

    password_bytes = password.encode('utf-8')[:72]
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """验证密码"""
    if not isinstance(plain_password, str):
        plain_password = str(plain_password)

    password_bytes = plain_password.encode('utf-8')[:72]
    hashed_bytes = hashed_password.encode('utf-8')

    try:
        return bcrypt.checkpw(password_bytes, hashed_bytes)
    except ValueError:
        # 存储的哈希格式不正确
        return False


def create_token(data: TokenData, expires_delta: Optional[timedelta] = None) -> str:
    """
    创建JWT令牌

    Args:
        data: 令牌数据
        expires_delta: 过期时间增量，默认使用 jwt_expire_minutes
    """
    to_encode = data.model_dump()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[TokenData]:
    """解码JWT令牌，无效或过期时返回 None"""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    if payload.get("type") != "access":
        return None
    return TokenData(**payload)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> CurrentUser:
    """获取当前用户（依赖注入用）"""
    if credentials is None:
        raise AuthException(ErrorCode.UNAUTHORIZED)

    token_data = decode_token(credentials.credentials)
    if token_data is None:
        raise AuthException(ErrorCode.TOKEN_INVALID)

    from models import User

    user = await db.get(User, token_data.user_id)
    if user is None:
        # 令牌仍有效但账户已被删除
        logger.info(f"令牌对应的用户不存在: {token_data.username}")
        raise AuthException(ErrorCode.TOKEN_INVALID)

    return CurrentUser.model_validate(user)


def require_admin():
    """仅允许学校管理员及超级管理员访问"""
    async def admin_checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not user.is_admin:
            raise PermissionException("این بخش فقط برای مدیران قابل دسترسی است")
        return user
    return admin_checker


def require_super_admin():
    """仅允许超级管理员访问"""
    async def super_admin_checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not user.is_super_admin:
            raise PermissionException("این بخش فقط برای مدیر کل قابل دسترسی است")
        return user
    return super_admin_checker
