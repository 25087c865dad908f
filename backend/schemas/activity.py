"""
操作日志数据验证
"""

from datetime import datetime
from pydantic import BaseModel, ConfigDict


class ActivityLogItem(BaseModel):
    """操作日志条目"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    user_name: str
    school_name: str
    action: str
    details: str
    created_at: datetime
