"""
试卷模块数据验证
定义请求/响应的数据结构，以及 AI 响应的结构校验
"""

from datetime import datetime
from typing import Optional, List, Literal, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.config import get_settings

QuestionType = Literal["multiple_choice", "descriptive", "fill_in_blank"]
SegmentType = Literal["text", "math"]
Difficulty = Literal["easy", "medium", "hard"]


# ==================== 题目结构 ====================

class QuestionSegment(BaseModel):
    """题干片段：文字（RTL）或数学表达式（LTR）"""
    type: SegmentType
    content: str


class Question(BaseModel):
    """题目（保存在试卷 JSON 中的格式）"""
    id: str
    type: QuestionType
    segments: List[QuestionSegment]
    question_text: str
    options: Optional[List[str]] = None
    correct_answer: Optional[str] = None
    points: Union[int, float] = 1


# ==================== AI 响应结构 ====================

class GeneratedQuestion(BaseModel):
    """AI 返回的题目（尚未分配 id）"""
    model_config = ConfigDict(populate_by_name=True)

    type: QuestionType
    segments: List[QuestionSegment]
    points: Union[int, float]
    options: Optional[List[str]] = None
    correct_answer: Optional[str] = Field(None, alias="correctAnswer")


class GeneratedExam(BaseModel):
    """AI 返回的完整试卷"""
    title: str
    questions: List[GeneratedQuestion]


# ==================== 请求模型 ====================

class GenerateExamParams(BaseModel):
    """生成试卷参数"""
    topic: str = Field(..., min_length=1, max_length=300, description="出题主题")
    grade_level: str = Field(..., min_length=1, max_length=50, description="年级")
    difficulty: Difficulty = Field("medium", description="难度")
    question_count: int = Field(
        default_factory=lambda: get_settings().question_count_default,
        ge=1,
        description="题目数量"
    )
    source_material: Optional[str] = Field(None, max_length=20000, description="参考教材内容")
    use_school_resources: bool = Field(False, description="是否参考本校资料库")

    @field_validator("question_count")
    @classmethod
    def check_question_count(cls, v):
        limit = get_settings().question_count_max
        if v > limit:
            raise ValueError(f"تعداد سوالات حداکثر {limit} است")
        return v

    @field_validator("source_material")
    @classmethod
    def blank_to_none(cls, v):
        return v if v and v.strip() else None


class ExamEditQuestion(BaseModel):
    """编辑单题：按原顺序提交每个片段的新内容"""
    id: str
    segments: List[str]


class ExamEditRequest(BaseModel):
    """编辑试卷：只允许修改标题和片段内容"""
    title: Optional[str] = Field(None, max_length=300)
    questions: List[ExamEditQuestion] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("عنوان آزمون نمی‌تواند خالی باشد")
        return v


# ==================== 响应模型 ====================

class ExamListItem(BaseModel):
    """试卷列表项"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    author_name: str
    school_name: str
    title: str
    topic: str
    grade_level: str
    difficulty: str
    created_at: datetime
    question_count: int = 0


class ExamResponse(BaseModel):
    """试卷详情"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    author_name: str
    school_name: str
    title: str
    topic: str
    grade_level: str
    difficulty: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    questions: List[Question]
    raw_content: str
