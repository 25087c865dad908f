"""
错误处理模块测试
"""
import pytest
from fastapi import status
from fastapi.responses import JSONResponse
from core.errors import (
    ErrorCode,
    AppException,
    ValidationException,
    AuthException,
    NotFoundException,
    PermissionException,
    BusinessException,
    ExamGenerationError,
    ERROR_MESSAGES,
    ERROR_HTTP_STATUS,
)


class TestErrors:
    """错误处理测试"""

    def test_error_codes(self):
        """测试错误码定义"""
        assert ErrorCode.SUCCESS == 0
        assert ErrorCode.INTERNAL_ERROR == 1000
        assert ErrorCode.UNAUTHORIZED == 2001
        assert ErrorCode.EXAM_NOT_FOUND == 4001

    def test_every_code_has_message_and_status(self):
        """测试每个错误码都有提示和 HTTP 状态"""
        for code in ErrorCode:
            assert code in ERROR_MESSAGES
            assert code in ERROR_HTTP_STATUS

    def test_app_exception(self):
        """测试应用异常基类"""
        exc = AppException(code=ErrorCode.RESOURCE_NOT_FOUND)
        assert exc.code == ErrorCode.RESOURCE_NOT_FOUND
        assert exc.http_status == status.HTTP_404_NOT_FOUND
        assert exc.message == ERROR_MESSAGES[ErrorCode.RESOURCE_NOT_FOUND]

        d = exc.to_dict()
        assert d == {"code": ErrorCode.RESOURCE_NOT_FOUND, "message": exc.message, "data": None}

        resp = exc.to_response()
        assert isinstance(resp, JSONResponse)
        assert resp.status_code == status.HTTP_404_NOT_FOUND

    def test_specific_exceptions(self):
        """测试具体异常类"""
        v_exc = ValidationException(errors=["e1"])
        assert v_exc.code == ErrorCode.VALIDATION_ERROR
        assert v_exc.data["errors"] == ["e1"]

        a_exc = AuthException()
        assert a_exc.code == ErrorCode.UNAUTHORIZED
        assert a_exc.http_status == status.HTTP_401_UNAUTHORIZED
        assert a_exc.to_response().headers["WWW-Authenticate"] == "Bearer"

        n_exc = NotFoundException(resource="آزمون", resource_id="exam-1", code=ErrorCode.EXAM_NOT_FOUND)
        assert n_exc.code == ErrorCode.EXAM_NOT_FOUND
        assert "exam-1" in n_exc.message

        p_exc = PermissionException()
        assert p_exc.http_status == status.HTTP_403_FORBIDDEN

        b_exc = BusinessException(ErrorCode.ACCOUNT_EXISTS)
        assert b_exc.http_status == status.HTTP_409_CONFLICT

    def test_generation_error_hides_reason(self):
        """测试出题失败只返回统一提示"""
        exc = ExamGenerationError("HTTP 500 from upstream")
        assert exc.reason == "HTTP 500 from upstream"
        assert exc.http_status == status.HTTP_502_BAD_GATEWAY
        assert exc.to_dict()["message"] == "خطا در برقراری ارتباط با هوش مصنوعی."
        assert "upstream" not in exc.to_dict()["message"]


class TestExceptionHandlers:
    """异常处理器测试（通过应用请求）"""

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        """测试缺少令牌返回 401"""
        response = await client.get("/api/v1/auth/me")
        assert response.status_code == 401
        assert response.json()["code"] == ErrorCode.UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_request_validation(self, client):
        """测试请求参数错误返回 400 和字段信息"""
        response = await client.post("/api/v1/auth/login", json={"username": "x"})
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == ErrorCode.VALIDATION_ERROR
        assert body["data"]["errors"]

    @pytest.mark.asyncio
    async def test_unknown_route(self, client):
        """测试未知路由返回统一结构"""
        response = await client.get("/api/v1/unknown")
        assert response.status_code == 404
        assert "code" in response.json()
