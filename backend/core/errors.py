"""
标准错误码体系
提供统一的错误码定义和异常处理
"""

import logging
from typing import Optional, Any, Dict
from enum import IntEnum
from fastapi import status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ErrorCode(IntEnum):
    """
    标准错误码

    错误码规范：
    - 0: 成功
    - 1xxx: 系统级错误
    - 2xxx: 认证/授权错误
    - 3xxx: 业务通用错误
    - 4xxx: 模块级错误（各模块自定义）
    - 5xxx: 第三方服务错误
    """

    # ==================== 成功 ====================
    SUCCESS = 0

    # ==================== 系统级错误 (1xxx) ====================
    INTERNAL_ERROR = 1000           # 服务器内部错误

    # ==================== 认证/授权错误 (2xxx) ====================
    UNAUTHORIZED = 2001             # 未认证（未登录）
    TOKEN_INVALID = 2003            # 令牌无效
    PERMISSION_DENIED = 2004        # 权限不足
    LOGIN_FAILED = 2007             # 登录失败（用户名或密码错误）
    PASSWORD_INCORRECT = 2008       # 密码错误
    ACCOUNT_NOT_FOUND = 2009        # 账户不存在
    ACCOUNT_EXISTS = 2010           # 账户已存在

    # ==================== 业务通用错误 (3xxx) ====================
    VALIDATION_ERROR = 3001         # 参数验证失败
    RESOURCE_NOT_FOUND = 3002       # 资源不存在
    OPERATION_FAILED = 3005         # 操作失败

    # ==================== 模块级错误 (4xxx) ====================
    # 4000-4099: 试卷模块
    EXAM_NOT_FOUND = 4001
    EXAM_EDIT_MISMATCH = 4002       # 编辑内容与试卷结构不一致
    EXAM_DUPLICATE_DISABLED = 4003  # 复制功能未开启

    # ==================== 第三方服务错误 (5xxx) ====================
    AI_GENERATION_FAILED = 5006     # AI 出题失败


# 错误码对应的默认消息（面向用户，波斯语）
ERROR_MESSAGES: Dict[int, str] = {
    ErrorCode.SUCCESS: "عملیات با موفقیت انجام شد",

    # 系统级
    ErrorCode.INTERNAL_ERROR: "خطای داخلی سرور، لطفاً دوباره تلاش کنید",

    # 认证/授权
    ErrorCode.UNAUTHORIZED: "لطفاً ابتدا وارد شوید",
    ErrorCode.TOKEN_INVALID: "اعتبارنامه نامعتبر است",
    ErrorCode.PERMISSION_DENIED: "شما اجازه انجام این عملیات را ندارید",
    ErrorCode.LOGIN_FAILED: "اطلاعات کاربری نامعتبر است.",
    ErrorCode.PASSWORD_INCORRECT: "رمز عبور فعلی نادرست است",
    ErrorCode.ACCOUNT_NOT_FOUND: "کاربر یافت نشد",
    ErrorCode.ACCOUNT_EXISTS: "این نام کاربری یا ایمیل قبلاً ثبت شده است",

    # 业务通用
    ErrorCode.VALIDATION_ERROR: "اطلاعات ارسالی معتبر نیست",
    ErrorCode.RESOURCE_NOT_FOUND: "مورد درخواستی یافت نشد",
    ErrorCode.OPERATION_FAILED: "عملیات ناموفق بود",

    # 模块级
    ErrorCode.EXAM_NOT_FOUND: "آزمون یافت نشد",
    ErrorCode.EXAM_EDIT_MISMATCH: "ساختار ویرایش با آزمون مطابقت ندارد",
    ErrorCode.EXAM_DUPLICATE_DISABLED: "امکان کپی آزمون فعال نیست",

    # 第三方服务
    ErrorCode.AI_GENERATION_FAILED: "خطا در برقراری ارتباط با هوش مصنوعی.",
}

# 错误码对应的 HTTP 状态码
ERROR_HTTP_STATUS: Dict[int, int] = {
    ErrorCode.SUCCESS: status.HTTP_200_OK,

    # 系统级 -> 500
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,

    # 认证/授权 -> 401/403
    ErrorCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.TOKEN_INVALID: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorCode.LOGIN_FAILED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.PASSWORD_INCORRECT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.ACCOUNT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ACCOUNT_EXISTS: status.HTTP_409_CONFLICT,

    # 业务通用 -> 400/404/409
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.RESOURCE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.OPERATION_FAILED: status.HTTP_400_BAD_REQUEST,

    # 模块级
    ErrorCode.EXAM_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.EXAM_EDIT_MISMATCH: status.HTTP_400_BAD_REQUEST,
    ErrorCode.EXAM_DUPLICATE_DISABLED: status.HTTP_403_FORBIDDEN,

    # 第三方服务 -> 502
    ErrorCode.AI_GENERATION_FAILED: status.HTTP_502_BAD_GATEWAY,
}


class AppException(Exception):
    """
    应用异常基类

    用于抛出业务异常，包含错误码和详细信息

    Usage:
        raise AppException(ErrorCode.RESOURCE_NOT_FOUND, "آزمون یافت نشد")
        raise AppException(ErrorCode.VALIDATION_ERROR, data={"field": "title"})
    """

    def __init__(
        self,
        code: int = ErrorCode.INTERNAL_ERROR,
        message: Optional[str] = None,
        data: Any = None
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, "خطای ناشناخته")
        self.data = data
        self.http_status = ERROR_HTTP_STATUS.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        super().__init__(self.message)

    def to_response(self) -> JSONResponse:
        """转换为 JSONResponse"""
        return JSONResponse(
            status_code=self.http_status,
            content=self.to_dict()
        )

    def to_dict(self) -> dict:
        """转换为字典"""
        return {
            "code": self.code,
            "message": self.message,
            "data": self.data
        }


class ValidationException(AppException):
    """参数验证异常"""

    def __init__(self, message: str = "اطلاعات ارسالی معتبر نیست", errors: Optional[list] = None):
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            data={"errors": errors} if errors else None
        )


class AuthException(AppException):
    """认证异常"""

    def __init__(
        self,
        code: int = ErrorCode.UNAUTHORIZED,
        message: Optional[str] = None
    ):
        super().__init__(code=code, message=message)

    def to_response(self) -> JSONResponse:
        response = super().to_response()
        if self.http_status == status.HTTP_401_UNAUTHORIZED:
            response.headers["WWW-Authenticate"] = "Bearer"
        return response


class NotFoundException(AppException):
    """资源不存在异常"""

    def __init__(self, resource: str = "مورد", resource_id: Any = None, code: int = ErrorCode.RESOURCE_NOT_FOUND):
        message = f"{resource} یافت نشد"
        if resource_id:
            message = f"{resource} (شناسه: {resource_id}) یافت نشد"
        super().__init__(code=code, message=message)


class PermissionException(AppException):
    """权限异常"""

    def __init__(self, message: str = "شما اجازه انجام این عملیات را ندارید"):
        super().__init__(
            code=ErrorCode.PERMISSION_DENIED,
            message=message
        )


class BusinessException(AppException):
    """业务异常"""

    def __init__(
        self,
        code: int = ErrorCode.OPERATION_FAILED,
        message: Optional[str] = None,
        data: Any = None
    ):
        super().__init__(code=code, message=message, data=data)


class ExamGenerationError(AppException):
    """
    AI 出题失败
    网络错误、非 2xx 状态、空响应、JSON 无效、结构不符或题目为空
    reason 仅用于日志，不返回给前端
    """

    def __init__(self, reason: str = ""):
        self.reason = reason
        super().__init__(code=ErrorCode.AI_GENERATION_FAILED)


# ==================== 异常处理器 ====================

def register_exception_handlers(app):
    """
    注册异常处理器

    在 main.py 中调用：
        from core.errors import register_exception_handlers
        register_exception_handlers(app)
    """
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException as StarletteHTTPException

    @app.exception_handler(AppException)
    async def handle_app_exception(request, exc: AppException):
        if exc.http_status >= 500:
            logger.warning(f"⚠️ {request.method} {request.url.path} -> {exc.code}: {exc.message}")
        return exc.to_response()

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request, exc: RequestValidationError):
        errors = []
        for error in exc.errors():
            errors.append({
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"]
            })

        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "code": ErrorCode.VALIDATION_ERROR,
                "message": ERROR_MESSAGES[ErrorCode.VALIDATION_ERROR],
                "data": {"errors": errors}
            }
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request, exc: StarletteHTTPException):
        # 映射 HTTP 状态码到业务错误码
        code_mapping = {
            401: ErrorCode.UNAUTHORIZED,
            403: ErrorCode.PERMISSION_DENIED,
            404: ErrorCode.RESOURCE_NOT_FOUND,
            500: ErrorCode.INTERNAL_ERROR,
        }

        code = code_mapping.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
        message = str(exc.detail) if exc.detail else ERROR_MESSAGES.get(code, "درخواست ناموفق بود")

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "code": code,
                "message": message,
                "data": None
            },
            headers=getattr(exc, "headers", None)
        )
