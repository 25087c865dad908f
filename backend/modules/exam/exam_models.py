"""
试卷模块数据模型
定义数据库表结构
"""

import uuid

from sqlalchemy import Column, String, Text, DateTime, JSON

from core.database import Base
from utils.timezone import get_tehran_time


def new_exam_id() -> str:
    return f"exam-{uuid.uuid4().hex[:16]}"


def new_question_id() -> str:
    return f"q-{uuid.uuid4().hex[:12]}"


class Exam(Base):
    """
    试卷表
    题目以 JSON 数组保存在试卷内，顺序即题号
    """
    __tablename__ = "exams"
    __table_args__ = {'extend_existing': True, 'comment': '试卷表'}

    id = Column(String(64), primary_key=True, default=new_exam_id, comment="试卷ID")
    user_id = Column(String(64), nullable=False, index=True, comment="出卷人ID")
    author_name = Column(String(100), nullable=False, comment="出卷人姓名")
    # 创建时从出卷人复制，之后不再校验
    school_name = Column(String(200), nullable=False, index=True, comment="所属学校")

    title = Column(String(300), nullable=False, comment="试卷标题")
    topic = Column(String(300), nullable=False, comment="出题主题")
    grade_level = Column(String(50), nullable=False, comment="年级")
    difficulty = Column(String(20), nullable=False, default="medium", comment="难度: easy/medium/hard")

    # [{"id", "type", "segments": [{"type", "content"}], "question_text", "options", "correct_answer", "points"}]
    questions = Column(JSON, nullable=False, default=list, comment="题目列表(JSON)")
    raw_content = Column(Text, nullable=False, default="", comment="AI 原始响应")

    created_at = Column(DateTime(timezone=True), default=get_tehran_time, comment="创建时间")
    updated_at = Column(DateTime(timezone=True), default=get_tehran_time, onupdate=get_tehran_time, comment="更新时间")

    def __repr__(self):
        return f"<Exam(id={self.id}, title={self.title})>"

    @property
    def question_count(self) -> int:
        return len(self.questions or [])
