# -*- coding: utf-8 -*-
"""
试卷渲染测试
"""
from datetime import datetime

from utils.timezone import TEHRAN_TZ
from modules.exam.exam_renderer import (
    render_exam_html,
    render_question,
    render_segment,
    render_answer_area,
    format_points,
)


EXAM = {
    "id": "exam-r1",
    "title": "آزمون <ریاضی>",
    "grade_level": "ششم",
    # 1403/07/28
    "created_at": datetime(2024, 10, 19, 10, 0, tzinfo=TEHRAN_TZ),
    "questions": [
        {
            "id": "q-1",
            "type": "multiple_choice",
            "segments": [{"type": "text", "content": "حاصل"}, {"type": "math", "content": "x < 2"}],
            "options": ["الف", "ب"],
            "points": 2.0,
        },
        {"id": "q-2", "type": "descriptive", "segments": [{"type": "text", "content": "توضیح دهید"}], "points": 3},
        {"id": "q-3", "type": "fill_in_blank", "segments": [{"type": "text", "content": "جای خالی"}], "points": 0.5},
    ],
}


class TestRenderParts:
    def test_math_segment_is_ltr_and_escaped(self):
        html = render_segment("q-1", 1, {"type": "math", "content": "x < 2"}, editable=False)
        assert 'dir="ltr"' in html
        assert "segment-math" in html
        assert "x &lt; 2" in html
        assert "contenteditable" not in html

    def test_text_segment_editable(self):
        html = render_segment("q-1", 0, {"type": "text", "content": "حاصل"}, editable=True)
        assert 'dir="rtl"' in html
        assert 'contenteditable="true"' in html
        assert 'data-question-id="q-1"' in html
        assert 'data-segment-index="0"' in html

    def test_answer_areas(self):
        assert render_answer_area(EXAM["questions"][0]).count("option-box") == 2
        assert "answer-area" in render_answer_area(EXAM["questions"][1])
        assert "blank-line" in render_answer_area(EXAM["questions"][2])
        assert render_answer_area({"type": "multiple_choice", "options": None}) == ""

    def test_points(self):
        assert format_points(2.0) == "۲"
        assert format_points(0.5) == "۰.۵"
        assert format_points(3) == "۳"

    def test_question_number_is_persian(self):
        html = render_question(12, EXAM["questions"][1])
        assert '<span class="question-number">۱۲</span>' in html

    def test_question_with_empty_segments(self):
        html = render_question(2, {"id": "q-e", "type": "descriptive", "segments": [], "question_text": "", "points": 1}, editable=True)
        assert 'class="question-number"' in html
        assert "data-segment-index" not in html

    def test_question_without_segments_uses_text(self):
        html = render_question(1, {"id": "q-x", "type": "descriptive", "question_text": "سوال قدیمی", "points": 1})
        assert "سوال قدیمی" in html


class TestRenderExam:
    def test_full_sheet(self):
        html = render_exam_html(EXAM)
        assert html.startswith("<!DOCTYPE html>")
        assert 'dir="rtl"' in html
        assert "آزمون &lt;ریاضی&gt;" in html
        assert "نام و نام‌خانوادگی" in html
        assert "تاریخ آزمون: ۲۸ مهر ۱۴۰۳" in html
        assert "پایه تحصیلی: ششم" in html
        assert "با آرزوی موفقیت و پیروزی" in html
        assert "break-inside: avoid" in html
        assert "@media print" in html
        # 题目按顺序编号
        assert html.index("۱</span>") < html.index("۲</span>") < html.index("۳</span>")
        assert "window.print()" not in html

    def test_editable_sheet(self):
        html = render_exam_html(EXAM, editable=True)
        assert 'data-field="title"' in html
        assert html.count('contenteditable="true" data-') == 1 + 2 + 1 + 1

    def test_auto_print(self):
        assert "window.print()" in render_exam_html(EXAM, auto_print=True)

    def test_empty_exam(self):
        html = render_exam_html({"id": "exam-empty", "title": "خالی", "grade_level": "اول", "questions": []})
        assert "خالی" in html
        assert 'class="question-number"' not in html
