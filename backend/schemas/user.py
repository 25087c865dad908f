"""
用户管理数据验证
"""

from typing import Optional
from pydantic import BaseModel, Field, field_validator

from .auth import validate_password_strength


class UserCreate(BaseModel):
    """
    管理员添加用户
    学校管理员添加的用户固定为本校教师，school_name 会被忽略
    """
    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=6, max_length=128)
    full_name: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    role: str = Field("teacher", pattern="^(teacher|admin)$")
    school_name: Optional[str] = Field(None, max_length=200)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        validate_password_strength(v)
        return v

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        if v is None or not v.strip():
            return None
        v = v.strip()
        if '@' not in v or v.startswith('@') or v.endswith('@'):
            raise ValueError('ایمیل معتبر نیست')
        return v
