"""
健康检查路由
数据库连接、远程镜像同步状态、AI 出题配置
"""

import time
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from core.config import get_settings
from core.database import engine
from core.mirror import get_remote_mirror

logger = logging.getLogger(__name__)

router = APIRouter(tags=["健康检查"])


class HealthStatus(BaseModel):
    """健康状态响应"""
    status: str  # healthy, degraded, unhealthy
    version: str
    timestamp: str
    uptime_seconds: float
    components: dict


class ComponentHealth(BaseModel):
    """组件健康状态"""
    status: str
    message: Optional[str] = None
    latency_ms: Optional[float] = None
    details: Optional[dict] = None


# 系统启动时间
_start_time = time.time()


async def check_database() -> ComponentHealth:
    """检查数据库连接"""
    start = time.time()
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"数据库健康检查失败: {e}")
        return ComponentHealth(status="unhealthy", message=f"数据库连接失败: {str(e)[:100]}")

    latency = (time.time() - start) * 1000
    return ComponentHealth(status="healthy", message="数据库连接正常", latency_ms=round(latency, 2))


def check_remote_mirror() -> ComponentHealth:
    """
    远程镜像状态
    最近一次写入失败晚于最近一次成功时视为 degraded
    """
    mirror = get_remote_mirror()
    status = mirror.status
    details = status.to_dict()

    if not mirror.enabled:
        return ComponentHealth(status="healthy", message="远程镜像未启用（仅本地存储）", details=details)

    failing = status.last_error_at is not None and (
        status.last_success_at is None or status.last_error_at >= status.last_success_at
    )
    if failing:
        return ComponentHealth(status="degraded", message=f"远程镜像同步失败: {status.last_error}", details=details)
    return ComponentHealth(status="healthy", message="远程镜像同步正常", details=details)


def check_ai() -> ComponentHealth:
    """AI 出题服务只检查配置，不发起真实请求"""
    settings = get_settings()
    if not settings.ai_api_key:
        return ComponentHealth(status="degraded", message="未配置 AI_API_KEY，无法生成试卷")
    return ComponentHealth(status="healthy", message=f"模型: {settings.ai_model}")


@router.get("/health", response_model=HealthStatus)
async def health_check():
    """
    健康检查端点

    返回系统整体健康状态和各组件状态
    """
    db_health = await check_database()
    mirror_health = check_remote_mirror()
    ai_health = check_ai()

    components = {
        "database": db_health.model_dump(),
        "remote_mirror": mirror_health.model_dump(),
        "ai": ai_health.model_dump(),
    }

    statuses = [db_health.status, mirror_health.status, ai_health.status]
    if db_health.status == "unhealthy":
        overall_status = "unhealthy"
    elif "degraded" in statuses or "unhealthy" in statuses:
        overall_status = "degraded"
    else:
        overall_status = "healthy"

    return HealthStatus(
        status=overall_status,
        version=get_settings().app_version,
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime_seconds=round(time.time() - _start_time, 2),
        components=components
    )


@router.get("/health/live")
async def liveness_probe():
    """
    存活探针
    只检查应用是否在运行，不检查依赖组件
    """
    return {"status": "alive"}
