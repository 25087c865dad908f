"""
系统配置管理
统一管理所有配置项，支持环境变量覆盖
"""

import logging
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from urllib.parse import quote_plus

# 获取backend目录的绝对路径
BACKEND_DIR = Path(__file__).parent.parent.resolve()
ENV_FILE = BACKEND_DIR / ".env"

DEFAULT_JWT_SECRET = "your-secret-key-change-in-production"
DEFAULT_SUPER_ADMIN_PASSWORD = "ChangeMe@1403"


class Settings(BaseSettings):
    """系统配置"""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # 应用信息
    app_name: str = "Aftab Exam Desk"
    app_version: str = "1.0.0"
    debug: bool = False
    cors_origins: str = "*"

    # 数据库配置（database_url 优先，未设置时按 MySQL 参数拼接）
    database_url: Optional[str] = None
    db_host: str = "localhost"
    db_port: int = 3306
    db_user: str = "root"
    db_password: str = ""
    db_name: str = "aftab_exams"
    db_time_zone: str = "+03:30"  # 数据库会话时区，使用德黑兰时间写入

    @property
    def db_url(self) -> str:
        if self.database_url:
            return self.database_url
        encoded_user = quote_plus(self.db_user)
        encoded_pwd = quote_plus(self.db_password)
        return f"mysql+aiomysql://{encoded_user}:{encoded_pwd}@{self.db_host}:{self.db_port}/{self.db_name}"

    @property
    def is_sqlite(self) -> bool:
        return self.db_url.startswith("sqlite")

    # JWT令牌配置
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 12 * 60  # 一个教学日

    # 初始超级管理员（首次启动时创建，之后每次启动校验其角色）
    super_admin_username: str = "superadmin"
    super_admin_email: str = "office@aftab-schools.ir"
    super_admin_password: str = DEFAULT_SUPER_ADMIN_PASSWORD
    super_admin_full_name: str = "مدیر کل سامانه"
    super_admin_school: str = "دفتر مرکزی مدارس آفتاب"

    # AI 出题服务（Gemini generateContent 接口）
    ai_api_key: Optional[str] = None
    ai_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    ai_model: str = "gemini-3-pro-preview"
    ai_timeout_seconds: float = 60.0

    # 出题数量
    question_count_default: int = 5
    question_count_max: int = 25

    # 远程镜像表（Supabase/PostgREST），两项都配置时才启用
    remote_store_url: Optional[str] = None
    remote_store_key: Optional[str] = None
    remote_store_timeout: float = 10.0

    @property
    def remote_store_enabled(self) -> bool:
        return bool(self.remote_store_url and self.remote_store_key)

    # 操作日志保留条数
    activity_log_cap: int = 100

    # 试卷复制到“我的试卷”（试验功能开关）
    exam_duplicate_enabled: bool = False


_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """
    获取配置单例
    支持运行时重新加载
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()

        # 安全检查: 非调试模式下使用默认密钥或默认密码时发出警告
        if not _settings_instance.debug:
            logger = logging.getLogger("core.config")
            if _settings_instance.jwt_secret == DEFAULT_JWT_SECRET:
                logger.warning(
                    "🚨 [安全警告] 您正在生产环境模式下使用默认的 JWT_SECRET！"
                    "请立即在 .env 文件中配置 JWT_SECRET。"
                )
            if _settings_instance.super_admin_password == DEFAULT_SUPER_ADMIN_PASSWORD:
                logger.warning("🚨 [安全警告] 超级管理员仍在使用默认密码，请配置 SUPER_ADMIN_PASSWORD。")
    return _settings_instance


def reload_settings():
    """
    重新加载配置
    """
    global _settings_instance
    _settings_instance = Settings()
    return _settings_instance
