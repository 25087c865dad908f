"""
用户管理路由
用户列表、添加、删除（管理员）
"""

import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.security import CurrentUser, get_current_user, require_admin
from core.errors import BusinessException, ErrorCode, NotFoundException, PermissionException
from core.accounts import user_repository, resolve_new_user_scope, create_user, identifier_in_use
from core.activity import record_activity
from core.visibility import filter_visible, can_delete_user
from models import User, ActivityAction
from schemas import UserCreate, UserInfo, success, dump_model

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/users", tags=["用户管理"])

ROLE_LABELS = {"teacher": "معلم", "admin": "مدیر مدرسه", "super_admin": "مدیر کل"}


@router.get("")
async def list_users(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    获取用户列表
    超级管理员看到全部，学校管理员只看到本校（不含超级管理员），教师只看到自己
    """
    users = await user_repository.load_all(db, order_by=User.created_at.desc())
    visible = filter_visible(current_user, users=users).users
    return success([dump_model(UserInfo, u) for u in visible])


@router.post("")
async def add_user(
    data: UserCreate,
    current_user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """添加用户（学校管理员只能添加本校教师）"""
    school_name = resolve_new_user_scope(current_user, data.role, data.school_name)

    if await identifier_in_use(db, data.username, data.email):
        raise BusinessException(ErrorCode.ACCOUNT_EXISTS)

    user = await create_user(
        db,
        username=data.username,
        password=data.password,
        full_name=data.full_name,
        role=data.role,
        school_name=school_name,
        email=data.email,
    )
    await record_activity(
        db, current_user, ActivityAction.ADD_USER,
        f"افزودن {ROLE_LABELS.get(user.role, user.role)}: {user.full_name} ({school_name})"
    )
    logger.info(f"添加用户: {user.username} ({user.role}, {school_name}) by {current_user.username}")
    return success(dump_model(UserInfo, user), "کاربر با موفقیت اضافه شد")


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    current_user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """
    删除用户
    不能删除自己；学校管理员不能删除管理员，只能删除本校用户
    """
    target = await user_repository.get(db, user_id)
    if target is None:
        raise NotFoundException("کاربر", user_id, code=ErrorCode.ACCOUNT_NOT_FOUND)

    if not can_delete_user(current_user, target):
        logger.warning(f"拒绝删除用户: {current_user.username} -> {target.username} ({target.role})")
        raise PermissionException("شما اجازه حذف این کاربر را ندارید")

    full_name = target.full_name
    await user_repository.delete(db, user_id)
    await record_activity(db, current_user, ActivityAction.DELETE_USER, f"حذف کاربر: {full_name}")
    logger.info(f"删除用户: {target.username} by {current_user.username}")
    return success(message="کاربر حذف شد")
