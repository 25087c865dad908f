"""
学校资料库数据模型
每个学校的教学资料，可作为 AI 出题的参考内容
"""

import uuid

from sqlalchemy import Column, String, Text, DateTime, JSON

from core.database import Base
from utils.timezone import get_tehran_time


def new_resource_id() -> str:
    return f"res-{uuid.uuid4().hex[:16]}"


class SchoolResource(Base):
    """学校资料表"""
    __tablename__ = "school_resources"
    __table_args__ = {'extend_existing': True, 'comment': '学校资料库'}

    id = Column(String(64), primary_key=True, default=new_resource_id, comment="资料ID")
    school_name = Column(String(200), nullable=False, index=True, comment="所属学校")
    title = Column(String(300), nullable=False, comment="标题")
    content = Column(Text, nullable=False, comment="资料内容")
    tags = Column(JSON, nullable=False, default=list, comment="标签列表(JSON)")
    added_by = Column(String(64), nullable=False, comment="添加人ID")
    created_at = Column(DateTime(timezone=True), default=get_tehran_time, comment="创建时间")

    def __repr__(self):
        return f"<SchoolResource(id={self.id}, title={self.title})>"
