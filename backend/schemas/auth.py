"""
认证数据验证
登录、当前用户信息、修改密码
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


def validate_password_strength(password: str) -> None:
    """
    验证密码强度
    至少 6 个字符，且同时包含字母和数字
    """
    if len(password) < 6:
        raise ValueError('رمز عبور باید حداقل ۶ کاراکتر باشد')
    if not any(c.isdigit() for c in password) or not any(c.isalpha() for c in password):
        raise ValueError('رمز عبور باید شامل حروف و عدد باشد')


class UserLogin(BaseModel):
    """用户登录（用户名或邮箱）"""
    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class UserInfo(BaseModel):
    """用户信息（不含密码）"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: Optional[str] = None
    full_name: str
    role: str
    school_name: str
    created_at: Optional[datetime] = None


class LoginResponse(BaseModel):
    """登录结果"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserInfo


class PasswordChange(BaseModel):
    """修改密码"""
    old_password: str
    new_password: str = Field(..., min_length=6, max_length=128)
    confirm_password: str

    @field_validator('new_password')
    @classmethod
    def validate_password(cls, v):
        validate_password_strength(v)
        return v

    @field_validator('confirm_password')
    @classmethod
    def passwords_match(cls, v, info):
        """验证两次密码是否一致"""
        if 'new_password' in info.data and v != info.data['new_password']:
            raise ValueError('تکرار رمز عبور با رمز جدید یکسان نیست')
        return v
