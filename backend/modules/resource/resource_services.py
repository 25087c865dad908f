"""
学校资料库业务逻辑
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import NotFoundException, PermissionException, ValidationException
from core.repository import Repository
from utils.text import truncate
from utils.timezone import get_tehran_time, to_epoch_millis, from_epoch_millis
from .resource_models import SchoolResource, new_resource_id
from .resource_schemas import ResourceCreate

logger = logging.getLogger(__name__)

# 出题时每条资料最多引用的字符数
PROMPT_CONTENT_LIMIT = 2000


def resource_to_remote(resource: SchoolResource) -> Dict[str, Any]:
    return {
        "id": resource.id,
        "schoolName": resource.school_name,
        "title": resource.title,
        "content": resource.content,
        "tags": resource.tags or [],
        "addedBy": resource.added_by,
        "createdAt": to_epoch_millis(resource.created_at),
    }


def resource_from_remote(row: Dict[str, Any]) -> SchoolResource:
    return SchoolResource(
        id=row["id"],
        school_name=row["schoolName"],
        title=row["title"],
        content=row.get("content") or "",
        tags=list(row.get("tags") or []),
        added_by=row.get("addedBy") or "",
        created_at=from_epoch_millis(row["createdAt"]) if row.get("createdAt") else get_tehran_time(),
    )


resource_repository: Repository[SchoolResource] = Repository(
    SchoolResource, "school_resources", resource_to_remote, resource_from_remote
)


class ResourceService:
    """学校资料服务"""

    @staticmethod
    async def list_resources(db: AsyncSession, principal, school_name: Optional[str] = None) -> List[SchoolResource]:
        """
        超级管理员可查看全部或按学校筛选，其他人只能看到本校资料
        """
        if principal.role == "super_admin":
            conditions = [SchoolResource.school_name == school_name] if school_name else []
        else:
            conditions = [SchoolResource.school_name == principal.school_name]
        return await resource_repository.load_all(db, *conditions, order_by=SchoolResource.created_at.desc())

    @staticmethod
    async def create_resource(db: AsyncSession, principal, data: ResourceCreate) -> SchoolResource:
        if principal.role == "super_admin":
            school_name = (data.school_name or principal.school_name).strip()
        elif principal.role == "admin":
            school_name = principal.school_name
        else:
            raise PermissionException("فقط مدیران می‌توانند منبع آموزشی اضافه کنند")
        if not school_name:
            raise ValidationException("نام مدرسه الزامی است")

        resource = SchoolResource(
            id=new_resource_id(),
            school_name=school_name,
            title=data.title.strip(),
            content=data.content,
            tags=data.tags,
            added_by=principal.id,
            created_at=get_tehran_time(),
        )
        resource = await resource_repository.save(db, resource)
        logger.info(f"添加学校资料: {resource.title} ({school_name})")
        return resource

    @staticmethod
    async def delete_resource(db: AsyncSession, principal, resource_id: str) -> SchoolResource:
        resource = await resource_repository.get(db, resource_id)
        if resource is None:
            raise NotFoundException("منبع آموزشی", resource_id)
        allowed = principal.role == "super_admin" or (
            principal.role == "admin" and resource.school_name == principal.school_name
        )
        if not allowed:
            raise PermissionException("شما اجازه حذف این منبع را ندارید")

        await resource_repository.delete(db, resource_id)
        logger.info(f"删除学校资料: {resource_id}")
        return resource

    @staticmethod
    async def prompt_context(db: AsyncSession, school_name: str, limit: int = 5) -> List[str]:
        """本校最近的资料，整理为出题提示词片段"""
        resources = await resource_repository.load_all(
            db, SchoolResource.school_name == school_name, order_by=SchoolResource.created_at.desc()
        )
        return [
            f"{resource.title}: {truncate(resource.content, PROMPT_CONTENT_LIMIT)}"
            for resource in resources[:limit]
        ]
