"""
持久化存储适配器
本地数据库为主存储，写入在本地提交成功后同步到远程镜像表

每个实体对应一个 Repository：
    exam_repository = Repository(Exam, "exams", exam_to_remote, exam_from_remote)
    exam = await exam_repository.save(db, exam)
"""

import logging
from typing import Any, Callable, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .mirror import RemoteStoreError, get_remote_mirror, queue_mirror_write

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


class Repository(Generic[ModelT]):
    """单表存储适配器（按 id 幂等写入）"""

    def __init__(
        self,
        model: Type[ModelT],
        remote_table: str,
        to_remote: Callable[[ModelT], Dict[str, Any]],
        from_remote: Optional[Callable[[Dict[str, Any]], ModelT]] = None,
    ):
        self.model = model
        self.remote_table = remote_table
        self.to_remote = to_remote
        self.from_remote = from_remote

    async def get(self, db: AsyncSession, record_id) -> Optional[ModelT]:
        return await db.get(self.model, record_id)

    async def load_all(self, db: AsyncSession, *conditions, order_by=None) -> List[ModelT]:
        """读取全部记录，可附加过滤条件和排序"""
        query = select(self.model)
        if conditions:
            query = query.where(*conditions)
        if order_by is not None:
            query = query.order_by(order_by)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def save(self, db: AsyncSession, obj: ModelT) -> ModelT:
        """
        插入或更新（按主键），远程 upsert 在提交后发送
        返回会话中的实例，调用方应使用返回值
        """
        if obj not in db:
            obj = await db.merge(obj)
        await db.flush()
        queue_mirror_write(db, "upsert", self.remote_table, self.to_remote(obj))
        return obj

    async def append(self, db: AsyncSession, obj: ModelT) -> ModelT:
        """只追加写入（远程使用 insert 而非 upsert）"""
        db.add(obj)
        await db.flush()
        queue_mirror_write(db, "insert", self.remote_table, self.to_remote(obj))
        return obj

    async def delete(self, db: AsyncSession, record_id) -> bool:
        """
        按 id 删除
        记录不存在时不做任何操作并返回 False
        """
        obj = await db.get(self.model, record_id)
        if obj is None:
            return False
        await db.delete(obj)
        await db.flush()
        queue_mirror_write(db, "delete", self.remote_table, str(record_id))
        return True

    async def pull_from_remote(self, db: AsyncSession) -> int:
        """
        从远程表拉取全部记录并按 id 合并到本地
        远程不可用时保留本地数据，返回导入条数
        """
        mirror = get_remote_mirror()
        if not mirror.enabled or self.from_remote is None:
            return 0

        try:
            rows = await mirror.select_all(self.remote_table)
        except RemoteStoreError as e:
            logger.warning(f"⚠️ 远程表 {self.remote_table} 拉取失败，继续使用本地数据: {e}")
            return 0

        imported = 0
        for row in rows:
            try:
                obj = self.from_remote(row)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"跳过无法解析的远程记录 {self.remote_table}: {e}")
                continue
            try:
                async with db.begin_nested():
                    await db.merge(obj)
            except IntegrityError as e:
                # 与本地记录的唯一约束冲突（如同名用户但 id 不同），以本地为准
                logger.warning(f"跳过与本地冲突的远程记录 {self.remote_table}: {e.orig}")
                continue
            imported += 1

        logger.info(f"📥 远程表 {self.remote_table} 已同步 {imported} 条记录")
        return imported
