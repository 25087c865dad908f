"""
远程镜像表客户端
以 PostgREST（Supabase）REST 接口同步 users / exams / activity_logs / school_resources

写入策略：本地数据库为准，本地提交成功后再写入远程镜像
远程失败只记录日志并计入 MirrorStatus，不影响本地写入
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from .config import get_settings
from utils.timezone import get_tehran_time

logger = logging.getLogger(__name__)


@dataclass
class MirrorStatus:
    """镜像同步状态（在 /health 中展示）"""
    enabled: bool = False
    writes: int = 0
    failures: int = 0
    last_error: Optional[str] = None
    last_error_at: Optional[datetime] = None
    last_success_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "writes": self.writes,
            "failures": self.failures,
            "last_error": self.last_error,
            "last_error_at": self.last_error_at.isoformat() if self.last_error_at else None,
            "last_success_at": self.last_success_at.isoformat() if self.last_success_at else None,
        }


class RemoteStoreError(Exception):
    """远程镜像表请求失败"""


class RemoteMirror:
    """
    PostgREST 表客户端

    Usage:
        mirror = get_remote_mirror()
        await mirror.upsert("exams", record)
        await mirror.delete("exams", "exam-1a2b")
    """

    def __init__(
        self,
        base_url: Optional[str],
        api_key: Optional[str],
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self.status = MirrorStatus(enabled=self.enabled)

    @property
    def enabled(self) -> bool:
        return bool(self.base_url and self.api_key)

    def _headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.api_key or "",
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _table_url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    async def _request(self, method: str, table: str, **kwargs) -> httpx.Response:
        """发送请求，网络错误或非 2xx 状态统一转换为 RemoteStoreError"""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, self._table_url(table), **kwargs)
        except httpx.HTTPError as e:
            raise RemoteStoreError(f"{method} {table}: {type(e).__name__}: {e}") from e

        if response.status_code >= 300:
            raise RemoteStoreError(f"{method} {table}: HTTP {response.status_code} {response.text[:200]}")
        return response

    def _record_failure(self, error: Exception):
        self.status.failures += 1
        self.status.last_error = str(error)
        self.status.last_error_at = get_tehran_time()
        logger.warning(f"⚠️ 远程镜像同步失败（本地数据已保存）: {error}")

    def _record_success(self):
        self.status.writes += 1
        self.status.last_success_at = get_tehran_time()

    async def _write(self, method: str, table: str, **kwargs) -> bool:
        if not self.enabled:
            return False
        try:
            await self._request(method, table, **kwargs)
        except RemoteStoreError as e:
            self._record_failure(e)
            return False
        self._record_success()
        return True

    async def upsert(self, table: str, record: Dict[str, Any]) -> bool:
        """按 id 插入或更新"""
        return await self._write(
            "POST", table,
            json=record,
            headers=self._headers("resolution=merge-duplicates,return=minimal"),
        )

    async def insert(self, table: str, record: Dict[str, Any]) -> bool:
        """仅插入（操作日志使用）"""
        return await self._write(
            "POST", table,
            json=record,
            headers=self._headers("return=minimal"),
        )

    async def delete(self, table: str, record_id: str) -> bool:
        """按 id 删除"""
        return await self._write(
            "DELETE", table,
            params={"id": f"eq.{record_id}"},
            headers=self._headers(),
        )

    async def select_all(self, table: str) -> List[Dict[str, Any]]:
        """
        读取整张表
        失败时抛出 RemoteStoreError，由调用方决定是否回退到本地数据
        """
        if not self.enabled:
            return []
        response = await self._request(
            "GET", table,
            params={"select": "*"},
            headers=self._headers(),
        )
        try:
            rows = response.json()
        except ValueError as e:
            raise RemoteStoreError(f"GET {table}: 响应不是有效的 JSON") from e
        if not isinstance(rows, list):
            raise RemoteStoreError(f"GET {table}: 响应格式不正确")
        return rows


_mirror_instance: Optional[RemoteMirror] = None


def get_remote_mirror() -> RemoteMirror:
    """获取远程镜像单例（未配置时为禁用状态）"""
    global _mirror_instance
    if _mirror_instance is None:
        settings = get_settings()
        _mirror_instance = RemoteMirror(
            settings.remote_store_url,
            settings.remote_store_key,
            timeout=settings.remote_store_timeout,
        )
        if _mirror_instance.enabled:
            logger.info(f"🔗 远程镜像已启用: {_mirror_instance.base_url}")
        else:
            logger.info("远程镜像未配置，仅使用本地数据库")
    return _mirror_instance


def set_remote_mirror(mirror: Optional[RemoteMirror]):
    """替换镜像实例（测试用）；传入 None 时下次按配置重建"""
    global _mirror_instance
    _mirror_instance = mirror


# ==================== 提交后同步 ====================
# 写入先登记在会话上，本地事务提交成功后再发送，回滚时丢弃

PENDING_KEY = "mirror_pending"


def queue_mirror_write(db, method: str, table: str, payload) -> None:
    """登记一次远程写入（method: upsert / insert / delete）"""
    db.info.setdefault(PENDING_KEY, []).append((method, table, payload))


def discard_mirror_writes(db) -> int:
    """丢弃未发送的远程写入，返回丢弃条数"""
    return len(db.info.pop(PENDING_KEY, None) or [])


async def push_mirror_writes(db) -> int:
    """按登记顺序发送远程写入，返回发送条数"""
    pending = db.info.pop(PENDING_KEY, None) or []
    mirror = get_remote_mirror()
    for method, table, payload in pending:
        await getattr(mirror, method)(table, payload)
    return len(pending)
