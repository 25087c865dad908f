"""
系统引导初始化
启动时确保超级管理员账户存在且角色正确，并从远程镜像拉取数据
"""

import logging
from sqlalchemy import select, or_

from .database import async_session, commit
from .config import get_settings
from .security import hash_password
from .accounts import user_repository
from models import User, ROLE_SUPER_ADMIN
from models.account import new_user_id
from utils.timezone import get_tehran_time

logger = logging.getLogger(__name__)


async def init_super_admin() -> dict:
    """
    初始化超级管理员账户
    - 不存在时按配置创建（密码加密存储）
    - 已存在但角色被改动时恢复为 super_admin
    """
    settings = get_settings()

    admin_password = settings.super_admin_password.strip()
    if not admin_password:
        logger.error("超级管理员密码不能为空")
        return {"created": False, "message": "超级管理员密码不能为空"}

    async with async_session() as db:
        result = await db.execute(
            select(User).where(
                or_(
                    User.username == settings.super_admin_username,
                    User.email == settings.super_admin_email,
                )
            )
        )
        existing = result.scalars().first()

        if existing is not None:
            if existing.role != ROLE_SUPER_ADMIN:
                logger.warning(f"⚠️ 超级管理员 {existing.username} 的角色被改为 {existing.role}，已恢复")
                existing.role = ROLE_SUPER_ADMIN
                await user_repository.save(db, existing)
                await commit(db)
                return {"created": False, "restored": True, "username": existing.username}
            logger.debug(f"超级管理员账户已存在: {existing.username}")
            return {"created": False, "restored": False, "username": existing.username}

        admin_user = User(
            id=new_user_id(),
            username=settings.super_admin_username,
            email=settings.super_admin_email,
            password_hash=hash_password(admin_password),
            full_name=settings.super_admin_full_name,
            role=ROLE_SUPER_ADMIN,
            school_name=settings.super_admin_school,
            created_at=get_tehran_time(),
        )
        await user_repository.save(db, admin_user)
        await commit(db)

        logger.info(f"✅ 超级管理员账户创建成功: {settings.super_admin_username}")
        return {"created": True, "restored": False, "username": settings.super_admin_username}


async def pull_remote_data() -> dict:
    """
    启动时从远程镜像拉取用户、试卷和学校资料
    远程未配置或不可用时保留本地数据
    """
    from modules.exam.exam_services import exam_repository
    from modules.resource.resource_services import resource_repository

    counts = {}
    async with async_session() as db:
        for name, repository in (
            ("users", user_repository),
            ("exams", exam_repository),
            ("school_resources", resource_repository),
        ):
            counts[name] = await repository.pull_from_remote(db)
        await commit(db)
    return counts
