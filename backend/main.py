"""
Aftab Exam Desk - 主入口
基于 FastAPI 的学校试卷设计系统

功能：
- 登录与账户管理（教师 / 学校管理员 / 超级管理员）
- AI 出题、试卷打印与编辑
- 学校资料库与操作日志
- 远程镜像表同步
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import get_settings
from core.database import init_db, close_db
from core.bootstrap import init_super_admin, pull_remote_data
from core.middleware import RequestLoggingMiddleware
from core.errors import register_exception_handlers, ERROR_MESSAGES, ErrorCode

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# 减少第三方库的日志输出
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
logging.getLogger("uvicorn.error").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # ==================== 启动阶段 ====================
    logger.info(f"🚀 正在启动 {settings.app_name} v{settings.app_version}...")

    # 1. 初始化数据库
    await init_db()

    # 2. 从远程镜像拉取数据（未配置或失败时保留本地数据）
    counts = await pull_remote_data()
    if any(counts.values()):
        logger.info(f"✅ 远程数据已同步: {counts}")

    # 3. 确保超级管理员存在且角色正确（必须在拉取之后）
    try:
        admin_result = await init_super_admin()
        if admin_result.get("created"):
            logger.warning(f"⚠️ 已创建超级管理员: {admin_result['username']}，请尽快修改默认密码！")
    except Exception as e:
        logger.error(f"❌ 初始化超级管理员失败: {e}")

    logger.info(f"🎉 {settings.app_name} 启动完成! 访问: http://localhost:8000")

    yield

    # ==================== 关闭阶段 ====================
    logger.info("🛑 系统关闭中...")
    await close_db()
    logger.info("👋 系统已关闭")


# ==================== 创建应用 ====================
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="سامانه طراحی آزمون مدارس آفتاب",
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)


# ==================== 中间件配置（顺序重要，后添加的先执行） ====================

# 1. CORS 跨域配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)

# 2. 请求日志中间件
app.add_middleware(
    RequestLoggingMiddleware,
    skip_paths=["/health", "/api/docs", "/api/redoc", "/api/openapi.json"],
    slow_request_threshold=1.0  # 超过1秒的请求记录为慢请求
)


# ==================== 异常处理器 ====================
register_exception_handlers(app)

# 全局未捕获异常处理
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """全局异常捕获"""
    logger.error(f"未处理异常: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "code": ErrorCode.INTERNAL_ERROR,
            "message": ERROR_MESSAGES[ErrorCode.INTERNAL_ERROR],
            "data": None
        }
    )


# ==================== 注册路由 ====================
from routers import auth, user, activity, health
from modules.exam.exam_router import router as exam_router
from modules.resource.resource_router import router as resource_router

# 系统核心路由
app.include_router(auth.router)
app.include_router(user.router)
app.include_router(activity.router)
app.include_router(health.router)

# 业务模块
app.include_router(exam_router, prefix="/api/v1/exams", tags=["试卷"])
app.include_router(resource_router, prefix="/api/v1/resources", tags=["学校资料库"])


# ==================== 根路由 ====================
@app.get("/", include_in_schema=False)
async def root():
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/api/docs",
        "health": "/health"
    }


# ==================== 启动入口 ====================
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
