# -*- coding: utf-8 -*-
"""
试卷模块测试夹具
模拟 Gemini 接口，并预置两所学校的试卷
"""
import json
from datetime import timedelta

import httpx
import pytest
import pytest_asyncio

from main import app
from utils.timezone import get_tehran_time
from modules.exam.exam_models import Exam
from modules.exam.exam_generator import ExamGenerator, GeminiClient, get_exam_generator


SAMPLE_AI_EXAM = {
    "title": "آزمون کسرها",
    "questions": [
        {
            "type": "multiple_choice",
            "segments": [
                {"type": "text", "content": "حاصل عبارت"},
                {"type": "math", "content": "1/2 + 1/4"},
                {"type": "text", "content": "کدام است؟"},
            ],
            "points": 2,
            "options": ["3/4", "1/2", "2/6", "1"],
            "correctAnswer": "3/4",
        },
        {
            "type": "descriptive",
            "segments": [{"type": "text", "content": "کسر را با یک مثال توضیح دهید."}],
            "points": 3,
        },
        {
            "type": "fill_in_blank",
            "segments": [
                {"type": "text", "content": "نصف عدد"},
                {"type": "math", "content": "10"},
                {"type": "text", "content": "برابر است با"},
            ],
            "points": 1.5,
        },
    ],
}


def gemini_body(payload) -> dict:
    """包装成 generateContent 的响应结构"""
    text = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False)
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


class FakeGemini:
    """记录收到的请求并返回预设响应"""

    def __init__(self):
        self.status_code = 200
        self.body = gemini_body(SAMPLE_AI_EXAM)
        self.error = None
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last_json(self) -> dict:
        return json.loads(self.requests[-1].content)

    @property
    def last_prompt(self) -> str:
        return self.last_json["contents"][0]["parts"][0]["text"]


@pytest.fixture
def fake_gemini() -> FakeGemini:
    return FakeGemini()


@pytest.fixture
def exam_generator(fake_gemini) -> ExamGenerator:
    client = GeminiClient(
        api_key="test-key",
        base_url="https://ai.test/v1beta",
        model="gemini-test",
        transport=httpx.MockTransport(fake_gemini.handler),
    )
    return ExamGenerator(client)


@pytest.fixture
def mock_ai(db_session, exam_generator, fake_gemini) -> FakeGemini:
    """让出题接口使用模拟的 Gemini（db_session 结束时清除覆盖）"""
    app.dependency_overrides[get_exam_generator] = lambda: exam_generator
    return fake_gemini


def make_exam(exam_id: str, author, title: str, minutes_ago: int = 0) -> Exam:
    created_at = get_tehran_time() - timedelta(minutes=minutes_ago)
    return Exam(
        id=exam_id,
        user_id=author.id,
        author_name=author.full_name,
        school_name=author.school_name,
        title=title,
        topic=title,
        grade_level="پنجم",
        difficulty="medium",
        questions=[
            {
                "id": f"{exam_id}-q1",
                "type": "multiple_choice",
                "segments": [
                    {"type": "text", "content": "حاصل"},
                    {"type": "math", "content": "2 + 3"},
                ],
                "question_text": "حاصل 2 + 3",
                "options": ["4", "5", "6", "7"],
                "correct_answer": "5",
                "points": 1,
            },
            {
                "id": f"{exam_id}-q2",
                "type": "descriptive",
                "segments": [{"type": "text", "content": "جمع را تعریف کنید."}],
                "question_text": "جمع را تعریف کنید.",
                "options": None,
                "correct_answer": None,
                "points": 2,
            },
        ],
        raw_content="{}",
        created_at=created_at,
        updated_at=created_at,
    )


@pytest_asyncio.fixture
async def sample_exams(db_session, school_users) -> dict:
    """
    exam_a1 (teacher_a) / exam_a2 (teacher_a2) 属于学校一
    exam_b (teacher_b) 属于学校二
    """
    exams = {
        "exam_a1": make_exam("exam-a1", school_users["teacher_a"], "آزمون جمع", minutes_ago=30),
        "exam_a2": make_exam("exam-a2", school_users["teacher_a2"], "آزمون تفریق", minutes_ago=20),
        "exam_b": make_exam("exam-b", school_users["teacher_b"], "آزمون ضرب", minutes_ago=10),
    }
    db_session.add_all(exams.values())
    await db_session.commit()
    return exams
