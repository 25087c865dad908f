"""
学校资料库数据验证
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ResourceCreate(BaseModel):
    """添加资料（school_name 仅超级管理员可指定）"""
    title: str = Field(..., min_length=1, max_length=300)
    content: str = Field(..., min_length=1, max_length=50000)
    tags: List[str] = Field(default_factory=list)
    school_name: Optional[str] = Field(None, max_length=200)

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v):
        return [tag.strip() for tag in v if tag and tag.strip()]


class ResourceResponse(BaseModel):
    """资料详情"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_name: str
    title: str
    content: str
    tags: List[str] = []
    added_by: str
    created_at: datetime
