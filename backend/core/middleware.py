"""
中间件模块
请求日志与耗时统计
"""

import time
import uuid
import logging
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    请求日志中间件
    记录慢请求和错误请求，不记录请求体（登录密码、试卷内容）
    """

    def __init__(
        self,
        app: ASGIApp,
        skip_paths=None,  # 支持 list 或 set
        slow_request_threshold: float = 1.0
    ):
        super().__init__(app)
        default_skip = [
            "/health",
            "/api/docs",
            "/api/redoc",
            "/api/openapi.json",
            "/favicon.ico"
        ]
        self.skip_paths = list(skip_paths) if skip_paths else default_skip
        self.slow_request_threshold = slow_request_threshold

    def _should_skip(self, path: str) -> bool:
        """检查是否跳过日志记录"""
        return any(path.startswith(p) for p in self.skip_paths)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if self._should_skip(request.url.path):
            return await call_next(request)

        request_id = str(uuid.uuid4())[:8]
        start_time = time.time()
        method = request.method
        path = request.url.path

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = round((time.time() - start_time) * 1000, 2)
            logger.error(f"[请求异常] {method} {path} | {duration_ms}ms | {str(e)}")
            raise

        duration = time.time() - start_time
        duration_ms = round(duration * 1000, 2)

        # 只记录慢请求或错误请求（AI 出题本身较慢，单独标记）
        if duration > self.slow_request_threshold and not path.endswith("/generate"):
            logger.warning(f"[慢请求] {method} {path} | {response.status_code} | {duration_ms}ms")
        elif response.status_code >= 400:
            logger.warning(f"[请求错误] {method} {path} | {response.status_code} | {duration_ms}ms")
        else:
            logger.debug(f"{method} {path} | {response.status_code} | {duration_ms}ms")

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms}ms"
        return response
