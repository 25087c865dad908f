"""
账户数据模型
用户账号表
"""

import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base
from utils.timezone import get_tehran_time

# 角色：teacher(任课教师) / admin(学校管理员) / super_admin(总部管理员)
ROLE_TEACHER = "teacher"
ROLE_ADMIN = "admin"
ROLE_SUPER_ADMIN = "super_admin"
USER_ROLES = (ROLE_TEACHER, ROLE_ADMIN, ROLE_SUPER_ADMIN)


def new_user_id() -> str:
    return f"user-{uuid.uuid4().hex[:16]}"


class User(Base):
    """用户表"""
    __tablename__ = "users"
    __table_args__ = {"comment": "用户账号表"}

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_user_id)
    username: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True)
    password_hash: Mapped[str] = mapped_column(String(128))
    full_name: Mapped[str] = mapped_column(String(100))
    role: Mapped[str] = mapped_column(String(20), default=ROLE_TEACHER)
    # 非超级管理员必须且只能属于一个学校；超级管理员隐式属于所有学校
    school_name: Mapped[str] = mapped_column(String(200), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=get_tehran_time)

    @property
    def is_super_admin(self) -> bool:
        return self.role == ROLE_SUPER_ADMIN

    @property
    def is_admin(self) -> bool:
        """学校管理员或超级管理员"""
        return self.role in (ROLE_ADMIN, ROLE_SUPER_ADMIN)

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username}, role={self.role})>"
