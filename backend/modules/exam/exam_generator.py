"""
AI 出题
调用 Gemini generateContent 接口生成结构化试卷

流程：
1. 组装提示词（主题、年级、难度、数量、参考内容、本校资料、近期试卷标题）
2. 携带固定的系统指令和 JSON 响应结构发起一次请求
3. 校验响应并为每道题分配新的 id

任何失败（网络、非 2xx、空响应、JSON 无效、结构不符、题目为空）都抛出 ExamGenerationError
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import ValidationError

from core.config import get_settings
from core.errors import ExamGenerationError
from .exam_models import new_question_id
from .exam_schemas import GenerateExamParams, GeneratedExam

logger = logging.getLogger(__name__)

DIFFICULTY_LABELS = {"easy": "آسان", "medium": "متوسط", "hard": "پیشرفته"}

SYSTEM_INSTRUCTION_TEMPLATE = """\
شما یک معلم باتجربه در مدارس ایران هستید و برای «مدارس آفتاب» آزمون طراحی می‌کنید.
خروجی باید کاملاً به زبان فارسی باشد.
سوالات باید متناسب با سن و سطح دانش‌آموزان پایه «{grade_level}» باشند.
متن هر سوال را به بخش‌ها (segments) تقسیم کن: متن فارسی راست‌به‌چپ را در بخش‌های text
و عبارت‌های ریاضی چپ‌به‌راست را در بخش‌های math قرار بده.
برای سوالات چندگزینه‌ای فهرست گزینه‌ها (options) و پاسخ درست (correctAnswer) را هم بنویس.
"""

# generateContent 的 responseSchema（OpenAPI 子集）
RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "title": {"type": "STRING"},
        "questions": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "type": {
                        "type": "STRING",
                        "enum": ["multiple_choice", "descriptive", "fill_in_blank"],
                        "description": "Type of question: multiple_choice, descriptive, or fill_in_blank",
                    },
                    "segments": {
                        "type": "ARRAY",
                        "items": {
                            "type": "OBJECT",
                            "properties": {
                                "type": {"type": "STRING", "enum": ["text", "math"]},
                                "content": {"type": "STRING"},
                            },
                            "required": ["type", "content"],
                            "propertyOrdering": ["type", "content"],
                        },
                    },
                    "points": {"type": "NUMBER"},
                    "options": {"type": "ARRAY", "items": {"type": "STRING"}},
                    "correctAnswer": {"type": "STRING"},
                },
                "required": ["type", "segments", "points"],
                "propertyOrdering": ["type", "segments", "points", "options", "correctAnswer"],
            },
        },
    },
    "required": ["title", "questions"],
    "propertyOrdering": ["title", "questions"],
}


class GeminiClient:
    """Gemini REST 客户端（只使用 generateContent）"""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str,
        model: str,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self._transport = transport

    async def generate_content(
        self,
        prompt: str,
        system_instruction: str,
        response_schema: Dict[str, Any],
    ) -> str:
        """发送一次请求并返回响应文本"""
        if not self.api_key:
            raise ExamGenerationError("未配置 AI_API_KEY")

        url = f"{self.base_url}/models/{self.model}:generateContent"
        body = {
            "systemInstruction": {"parts": [{"text": system_instruction}]},
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            },
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, json=body, headers={"x-goog-api-key": self.api_key})
        except httpx.TimeoutException as e:
            raise ExamGenerationError(f"AI 请求超时 ({self.timeout}s)") from e
        except httpx.HTTPError as e:
            raise ExamGenerationError(f"AI 请求失败: {type(e).__name__}: {e}") from e

        if response.status_code != 200:
            raise ExamGenerationError(f"AI 接口返回 {response.status_code}: {response.text[:300]}")

        try:
            payload = response.json()
        except ValueError as e:
            raise ExamGenerationError("AI 接口响应不是有效的 JSON") from e

        return self.extract_text(payload)

    @staticmethod
    def extract_text(payload: Dict[str, Any]) -> str:
        """拼接第一个候选结果的全部文本片段"""
        try:
            parts = payload["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as e:
            raise ExamGenerationError("AI 响应中没有候选结果") from e

        text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
        if not text.strip():
            raise ExamGenerationError("AI 返回了空响应")
        return text


@dataclass
class GenerationResult:
    """出题结果"""
    title: str
    questions: List[Dict[str, Any]] = field(default_factory=list)
    raw_content: str = ""


class ExamGenerator:
    """
    出题编排器
    每次调用相互独立，不做去重或取消
    """

    def __init__(self, client: GeminiClient):
        self.client = client

    @staticmethod
    def build_system_instruction(params: GenerateExamParams) -> str:
        return SYSTEM_INSTRUCTION_TEMPLATE.format(grade_level=params.grade_level)

    @staticmethod
    def build_prompt(
        params: GenerateExamParams,
        school_resources: Sequence[str] = (),
        recent_titles: Sequence[str] = (),
    ) -> str:
        """组装用户提示词"""
        lines = [
            "یک آزمون طراحی کن.",
            f"موضوع: {params.topic}",
            f"پایه: {params.grade_level}",
            f"سطح دشواری: {DIFFICULTY_LABELS.get(params.difficulty, params.difficulty)} ({params.difficulty})",
            f"تعداد سوالات: {params.question_count}",
        ]
        if params.source_material:
            lines.append(f"سوالات را بر اساس این محتوا طراحی کن:\n{params.source_material}")
        if school_resources:
            lines.append("منابع آموزشی مدرسه:\n" + "\n---\n".join(school_resources))
        if recent_titles:
            # 避免与本校近期试卷重复
            lines.append("از تکرار سوالات این آزمون‌های اخیر مدرسه پرهیز کن: " + "، ".join(recent_titles))
        return "\n".join(lines)

    @staticmethod
    def parse_response(text: str) -> GenerationResult:
        """校验 AI 响应并转换为试卷题目"""
        try:
            data = json.loads(text.strip())
        except json.JSONDecodeError as e:
            raise ExamGenerationError(f"AI 响应不是有效的 JSON: {e}") from e

        try:
            generated = GeneratedExam.model_validate(data)
        except ValidationError as e:
            raise ExamGenerationError(f"AI 响应结构不符: {e.error_count()} 处错误") from e

        if not generated.questions:
            raise ExamGenerationError("AI 没有返回任何题目")

        questions = []
        used_ids = set()
        for index, item in enumerate(generated.questions, start=1):
            question_id = new_question_id()
            while question_id in used_ids:
                question_id = new_question_id()
            used_ids.add(question_id)

            if item.type == "multiple_choice" and not item.options:
                logger.warning(f"第 {index} 题为选择题但没有选项")
            if not item.segments:
                logger.warning(f"第 {index} 题没有题干片段")

            questions.append({
                "id": question_id,
                "type": item.type,
                "segments": [segment.model_dump() for segment in item.segments],
                "question_text": " ".join(segment.content for segment in item.segments),
                "options": item.options,
                "correct_answer": item.correct_answer,
                "points": item.points,
            })

        return GenerationResult(title=generated.title.strip(), questions=questions, raw_content=text)

    async def generate(
        self,
        params: GenerateExamParams,
        school_resources: Sequence[str] = (),
        recent_titles: Sequence[str] = (),
    ) -> GenerationResult:
        """生成试卷，失败时抛出 ExamGenerationError"""
        prompt = self.build_prompt(params, school_resources, recent_titles)
        text = await self.client.generate_content(
            prompt,
            self.build_system_instruction(params),
            RESPONSE_SCHEMA,
        )
        result = self.parse_response(text)
        logger.info(f"🤖 AI 出题完成: {params.topic} / {params.grade_level}, 共 {len(result.questions)} 题")
        return result


def get_exam_generator() -> ExamGenerator:
    """按当前配置创建出题器（依赖注入用）"""
    settings = get_settings()
    return ExamGenerator(GeminiClient(
        api_key=settings.ai_api_key,
        base_url=settings.ai_base_url,
        model=settings.ai_model,
        timeout=settings.ai_timeout_seconds,
    ))
