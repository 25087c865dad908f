"""
学校资料库路由
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db, commit
from core.security import CurrentUser, get_current_user, require_admin
from core.activity import record_activity
from models import ActivityAction
from schemas.response import success, dump_model, list_response

from .resource_schemas import ResourceCreate, ResourceResponse
from .resource_services import ResourceService

router = APIRouter()


@router.get("", summary="获取学校资料列表")
async def get_resource_list(
    school_name: Optional[str] = Query(None, description="按学校筛选（仅超级管理员）"),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    resources = await ResourceService.list_resources(db, user, school_name)
    return list_response(ResourceResponse, resources)


@router.post("", summary="添加学校资料")
async def create_resource(
    data: ResourceCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_admin())
):
    resource = await ResourceService.create_resource(db, user, data)
    await record_activity(db, user, ActivityAction.ADD_RESOURCE, f"افزودن منبع آموزشی: {resource.title}")
    await commit(db)
    return success(data=dump_model(ResourceResponse, resource), message="منبع آموزشی اضافه شد")


@router.delete("/{resource_id}", summary="删除学校资料")
async def delete_resource(
    resource_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_admin())
):
    resource = await ResourceService.delete_resource(db, user, resource_id)
    await record_activity(db, user, ActivityAction.DELETE_RESOURCE, f"حذف منبع آموزشی: {resource.title}")
    await commit(db)
    return success(message="منبع آموزشی حذف شد")
