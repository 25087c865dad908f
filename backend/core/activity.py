"""
操作日志
只追加写入，写入后仅保留最近 activity_log_cap 条
"""

import logging
from typing import Any, Dict, List

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from models import ActivityLog
from utils.timezone import get_tehran_time, to_epoch_millis
from .config import get_settings
from .repository import Repository

logger = logging.getLogger(__name__)


def activity_to_remote(entry: ActivityLog) -> Dict[str, Any]:
    return {
        "id": str(entry.id),
        "userId": entry.user_id,
        "userName": entry.user_name,
        "schoolName": entry.school_name,
        "action": entry.action,
        "details": entry.details,
        "timestamp": to_epoch_millis(entry.created_at),
    }


# 日志不从远程回拉
activity_repository: Repository[ActivityLog] = Repository(ActivityLog, "activity_logs", activity_to_remote)


async def truncate_activity(db: AsyncSession, cap: int) -> int:
    """删除超出保留条数的旧日志，返回删除条数"""
    if cap <= 0:
        return 0
    # 先找出第 cap 新的记录 id，再删除更早的（兼容 MySQL 子查询不支持 LIMIT）
    result = await db.execute(
        select(ActivityLog.id).order_by(ActivityLog.id.desc()).offset(cap - 1).limit(1)
    )
    cutoff = result.scalar_one_or_none()
    if cutoff is None:
        return 0
    deleted = await db.execute(delete(ActivityLog).where(ActivityLog.id < cutoff))
    return deleted.rowcount or 0


async def record_activity(db: AsyncSession, principal, action: str, details: str = "") -> ActivityLog:
    """
    记录一条操作日志

    Args:
        db: 数据库会话
        principal: 操作人（需要 id / full_name / school_name）
        action: ActivityAction 中的操作类型
        details: 描述文本
    """
    entry = ActivityLog(
        user_id=principal.id,
        user_name=principal.full_name,
        school_name=principal.school_name,
        action=action,
        details=details,
        created_at=get_tehran_time(),
    )
    entry = await activity_repository.append(db, entry)
    removed = await truncate_activity(db, get_settings().activity_log_cap)
    if removed:
        logger.debug(f"操作日志已裁剪 {removed} 条")
    return entry


async def list_activity(db: AsyncSession) -> List[ActivityLog]:
    """读取全部日志，最新的在前"""
    result = await db.execute(select(ActivityLog).order_by(ActivityLog.id.desc()))
    return list(result.scalars().all())
