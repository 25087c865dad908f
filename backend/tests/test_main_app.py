"""
主应用端点和全局异常处理单元测试
覆盖：首页、健康检查、请求日志中间件、全局异常处理器
"""

import pytest
from httpx import AsyncClient, ASGITransport

from core.config import get_settings
from tests.test_conftest import auth_headers


@pytest.mark.asyncio
class TestHealthEndpoint:
    """健康检查端点测试"""

    async def test_health_check(self, client: AsyncClient):
        """测试健康检查端点"""
        response = await client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["version"] == get_settings().app_version
        assert set(data["components"]) == {"database", "remote_mirror", "ai"}
        assert data["components"]["database"]["status"] == "healthy"
        assert data["components"]["remote_mirror"]["status"] == "healthy"
        # 测试环境未配置 AI 密钥
        assert data["components"]["ai"]["status"] == "degraded"
        assert data["status"] == "degraded"

    async def test_health_with_ai_key(self, client: AsyncClient, monkeypatch):
        """测试所有组件正常"""
        monkeypatch.setattr(get_settings(), "ai_api_key", "test-key")
        response = await client.get("/health")
        assert response.json()["status"] == "healthy"

    async def test_health_live(self, client: AsyncClient):
        """测试存活检查端点"""
        response = await client.get("/health/live")
        assert response.status_code == 200
        assert response.json() == {"status": "alive"}


@pytest.mark.asyncio
class TestRootEndpoints:
    """根路径端点测试"""

    async def test_root_path(self, client: AsyncClient):
        """测试根路径"""
        response = await client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["version"] == get_settings().app_version
        assert data["docs"] == "/api/docs"

    async def test_openapi(self, client: AsyncClient):
        """测试 OpenAPI 文档包含业务路由"""
        response = await client.get("/api/openapi.json")
        paths = response.json()["paths"]
        assert "/api/v1/exams/generate" in paths
        assert "/api/v1/resources" in paths
        assert "/api/v1/auth/login" in paths


@pytest.mark.asyncio
class TestMiddleware:
    """请求日志中间件测试"""

    async def test_request_headers(self, teacher_client: AsyncClient):
        """测试响应附带请求 ID 和耗时"""
        response = await teacher_client.get("/api/v1/auth/me")
        assert len(response.headers["X-Request-ID"]) == 8
        assert response.headers["X-Response-Time"].endswith("ms")

    async def test_skip_paths(self, client: AsyncClient):
        """测试健康检查不经过日志记录"""
        response = await client.get("/health/live")
        assert "X-Request-ID" not in response.headers


class TestGlobalExceptionHandler:
    """全局异常处理器测试"""

    @pytest.mark.asyncio
    async def test_unhandled_exception(self, db_session, school_users, monkeypatch):
        """测试未捕获异常返回统一的 500 响应"""
        from main import app

        def broken(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr("routers.user.filter_visible", broken)

        # ServerErrorMiddleware 返回响应后会继续抛出异常，这里不让它传到测试中
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.get("/api/v1/users", headers=auth_headers(school_users["teacher_a"]))

        assert response.status_code == 500
        assert response.json()["code"] == 1000
