"""
认证路由
登录、当前用户、登出、修改密码
"""

import logging
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.config import get_settings
from core.security import (
    verify_password,
    hash_password,
    create_token,
    TokenData,
    CurrentUser,
    get_current_user,
)
from core.errors import AuthException, BusinessException, ErrorCode
from core.accounts import authenticate_user, user_repository
from core.activity import record_activity
from models import User, ActivityAction
from schemas import UserLogin, UserInfo, PasswordChange, success, dump_model
from utils.text import mask_identifier

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/auth", tags=["认证"])


@router.post("/login")
async def login(data: UserLogin, request: Request, db: AsyncSession = Depends(get_db)):
    """
    用户登录
    用户名或邮箱 + 密码，成功后返回访问令牌和用户信息
    """
    client_ip = request.client.host if request.client else "unknown"

    user = await authenticate_user(db, data.username, data.password)
    if user is None:
        logger.warning(f"登录失败 - IP: {client_ip}, 用户名: {mask_identifier(data.username)}")
        raise AuthException(ErrorCode.LOGIN_FAILED)

    token_data = TokenData(
        user_id=user.id,
        username=user.username,
        role=user.role,
        school_name=user.school_name,
    )
    access_token = create_token(token_data)

    await record_activity(db, user, ActivityAction.LOGIN, "ورود به سیستم")
    logger.info(f"🔑 用户登录: {user.username} ({user.role}, {user.school_name})")

    settings = get_settings()
    return success({
        "access_token": access_token,
        "token_type": "bearer",
        "expires_in": settings.jwt_expire_minutes * 60,
        "user": dump_model(UserInfo, user),
    }, "ورود با موفقیت انجام شد")


@router.get("/me")
async def get_me(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """获取当前用户信息"""
    user = await db.get(User, current_user.id)
    return success(dump_model(UserInfo, user))


@router.put("/password")
async def change_password(
    data: PasswordChange,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """修改密码"""
    user = await db.get(User, current_user.id)

    if not verify_password(data.old_password, user.password_hash):
        logger.warning(f"密码修改失败 - 用户: {user.username}, 原因: 原密码错误")
        raise BusinessException(ErrorCode.PASSWORD_INCORRECT)

    user.password_hash = hash_password(data.new_password)
    await user_repository.save(db, user)

    logger.info(f"密码修改成功 - 用户: {user.username}")
    return success(message="رمز عبور با موفقیت تغییر کرد")


@router.post("/logout")
async def logout(current_user: CurrentUser = Depends(get_current_user)):
    """登出（客户端清除令牌）"""
    logger.debug(f"用户登出: {current_user.username}")
    return success(message="خروج با موفقیت انجام شد")
