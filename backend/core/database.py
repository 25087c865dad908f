"""
数据库连接管理
提供异步数据库连接和会话管理
"""

import logging
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool
from typing import AsyncGenerator

from .config import get_settings
from .mirror import push_mirror_writes, discard_mirror_writes

logger = logging.getLogger(__name__)
settings = get_settings()


def _engine_options() -> dict:
    """按数据库类型返回引擎参数"""
    if settings.is_sqlite:
        # SQLite（开发/测试）：内存库需要共享同一个连接
        options = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in settings.db_url:
            options["poolclass"] = StaticPool
        return options
    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
        # 每个连接使用德黑兰时区写入时间
        "connect_args": {
            "init_command": f"SET time_zone = '{settings.db_time_zone}'"
        }
    }


# 创建异步引擎
engine = create_async_engine(
    settings.db_url,
    echo=False,  # 禁用 SQL 详细输出，避免日志过多
    **_engine_options()
)

# 会话工厂
async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False
)


class Base(DeclarativeBase):
    """模型基类"""
    pass


async def commit(session: AsyncSession) -> None:
    """提交本地事务，成功后再发送登记的远程镜像写入"""
    await session.commit()
    await push_mirror_writes(session)


async def rollback(session: AsyncSession) -> None:
    """回滚本地事务并丢弃未发送的远程镜像写入"""
    discard_mirror_writes(session)
    await session.rollback()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """获取数据库会话（依赖注入用）"""
    async with async_session() as session:
        try:
            yield session
            await commit(session)
        except Exception:
            await rollback(session)
            raise
        finally:
            await session.close()


async def init_db():
    """初始化数据库（创建所有表）"""
    # 确保所有模型已注册到 Base.metadata
    import models  # noqa: F401
    import modules.exam.exam_models  # noqa: F401
    import modules.resource.resource_models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.debug(f"数据库表初始化完成（共 {len(Base.metadata.sorted_tables)} 张表）")


async def close_db():
    """关闭数据库连接"""
    await engine.dispose()
