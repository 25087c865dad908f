"""
操作日志数据模型
记录谁、在哪个学校、做了什么
"""

from datetime import datetime
from sqlalchemy import String, Integer, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base
from utils.timezone import get_tehran_time


class ActivityAction:
    """操作类型"""
    LOGIN = "LOGIN"
    CREATE_EXAM = "CREATE_EXAM"
    UPDATE_EXAM = "UPDATE_EXAM"
    DELETE_EXAM = "DELETE_EXAM"
    DUPLICATE_EXAM = "DUPLICATE_EXAM"
    ADD_USER = "ADD_USER"
    DELETE_USER = "DELETE_USER"
    ADD_RESOURCE = "ADD_RESOURCE"
    DELETE_RESOURCE = "DELETE_RESOURCE"


class ActivityLog(Base):
    """操作日志表（只追加，保留最近 N 条）"""
    __tablename__ = "activity_logs"
    __table_args__ = {"comment": "操作日志表"}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    user_name: Mapped[str] = mapped_column(String(100))
    school_name: Mapped[str] = mapped_column(String(200), index=True)
    action: Mapped[str] = mapped_column(String(50), index=True)
    details: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=get_tehran_time, index=True)
