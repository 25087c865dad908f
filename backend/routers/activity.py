"""
操作日志路由
管理员查看可见范围内的操作记录（最新在前）
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.security import CurrentUser, require_admin
from core.activity import list_activity
from core.visibility import filter_visible
from schemas import ActivityLogItem, success, dump_model

router = APIRouter(prefix="/api/v1/activity", tags=["操作日志"])


@router.get("")
async def get_activity(
    action: Optional[str] = Query(None, max_length=50),
    current_user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """获取操作日志，可按操作类型筛选"""
    logs = filter_visible(current_user, logs=await list_activity(db)).logs
    if action:
        logs = [entry for entry in logs if entry.action == action]
    return success([dump_model(ActivityLogItem, entry) for entry in logs])
