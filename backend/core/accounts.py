"""
账户存储
用户表的远程镜像转换、登录查找与创建规则
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select, or_, func
from sqlalchemy.ext.asyncio import AsyncSession

from models import User, ROLE_TEACHER, ROLE_ADMIN, ROLE_SUPER_ADMIN
from models.account import new_user_id
from utils.timezone import to_epoch_millis, from_epoch_millis, get_tehran_time
from .errors import PermissionException, ValidationException
from .repository import Repository
from .security import hash_password, verify_password

logger = logging.getLogger(__name__)


def user_to_remote(user: User) -> Dict[str, Any]:
    """转换为远程表记录（只同步密码哈希，绝不同步明文）"""
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "fullName": user.full_name,
        "role": user.role,
        "schoolName": user.school_name,
        "passwordHash": user.password_hash,
        "createdAt": to_epoch_millis(user.created_at or get_tehran_time()),
    }


def user_from_remote(row: Dict[str, Any]) -> User:
    """
    远程记录转换为本地用户
    旧版记录只有明文 password 字段，导入时转为哈希
    """
    password_hash = row.get("passwordHash")
    if not password_hash:
        legacy_password = row.get("password")
        if not legacy_password:
            raise ValueError("用户记录缺少密码")
        password_hash = hash_password(legacy_password)
        logger.info(f"远程用户 {row.get('username')} 的明文密码已在导入时加密")

    created_at = row.get("createdAt")
    return User(
        id=row["id"],
        username=row["username"],
        email=row.get("email") or None,
        full_name=row.get("fullName") or row["username"],
        role=row.get("role") or ROLE_TEACHER,
        school_name=row.get("schoolName") or "",
        password_hash=password_hash,
        created_at=from_epoch_millis(created_at) if created_at else get_tehran_time(),
    )


user_repository: Repository[User] = Repository(User, "users", user_to_remote, user_from_remote)


async def find_users_by_identifier(db: AsyncSession, identifier: str) -> List[User]:
    """
    按用户名或邮箱精确查找（区分大小写，不去除空格）
    数据库排序规则可能不区分大小写，查询结果再按原值过滤一次
    """
    result = await db.execute(
        select(User).where(or_(User.username == identifier, User.email == identifier))
    )
    return [
        user for user in result.scalars().all()
        if user.username == identifier or user.email == identifier
    ]


async def authenticate_user(db: AsyncSession, identifier: str, password: str) -> Optional[User]:
    """返回标识和密码都匹配的用户；同一标识匹配多条记录时逐条校验密码"""
    for user in await find_users_by_identifier(db, identifier):
        if verify_password(password, user.password_hash):
            return user
    return None


async def identifier_in_use(db: AsyncSession, *identifiers: Optional[str]) -> bool:
    """
    新用户名/邮箱是否与任何现有用户名或邮箱冲突（不区分大小写）
    用户名和邮箱共用一个登录标识空间
    """
    values = [value.strip().lower() for value in identifiers if value and value.strip()]
    if not values:
        return False
    result = await db.execute(
        select(User.id).where(
            or_(func.lower(User.username).in_(values), func.lower(User.email).in_(values))
        ).limit(1)
    )
    return result.first() is not None


def resolve_new_user_scope(principal, role: str, school_name: Optional[str]) -> str:
    """
    校验创建用户的权限并返回新用户所属学校
    - 学校管理员只能在本校创建教师，学校强制为管理员所在学校
    - 超级管理员可创建教师或学校管理员，必须指定学校
    """
    if principal.role == ROLE_SUPER_ADMIN:
        if role not in (ROLE_TEACHER, ROLE_ADMIN):
            raise PermissionException("امکان ایجاد این نقش وجود ندارد")
        school = (school_name or "").strip()
        if not school:
            raise ValidationException("نام مدرسه برای کاربر جدید الزامی است")
        return school

    if principal.role == ROLE_ADMIN:
        if role != ROLE_TEACHER:
            raise PermissionException("مدیر مدرسه فقط می‌تواند معلم اضافه کند")
        return principal.school_name

    raise PermissionException("فقط مدیران می‌توانند کاربر اضافه کنند")


async def create_user(
    db: AsyncSession,
    username: str,
    password: str,
    full_name: str,
    role: str,
    school_name: str,
    email: Optional[str] = None,
) -> User:
    """创建用户（调用方负责权限校验与唯一性检查）"""
    user = User(
        id=new_user_id(),
        username=username.strip(),
        email=email.strip() if email else None,
        password_hash=hash_password(password),
        full_name=full_name.strip(),
        role=role,
        school_name=school_name,
        created_at=get_tehran_time(),
    )
    return await user_repository.save(db, user)
