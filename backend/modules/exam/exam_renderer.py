"""
试卷渲染
生成可直接打印的 RTL HTML 答题纸
"""

from html import escape
from typing import Any, Dict

from utils.timezone import format_jalali_date, persian_digits

PRINT_STYLES = """
@page { size: A4; margin: 15mm; }
* { box-sizing: border-box; }
body { font-family: Vazirmatn, Tahoma, sans-serif; color: #1e293b; margin: 0; background: #f8fafc; }
.sheet { max-width: 210mm; margin: 0 auto; background: #fff; padding: 16mm; }
.exam-header { border-bottom: 4px solid #0f172a; padding-bottom: 24px; margin-bottom: 32px; text-align: center; }
.exam-header h1 { font-size: 26px; margin: 0 0 24px; }
.header-fields { display: grid; grid-template-columns: repeat(4, 1fr); gap: 16px; text-align: right; font-weight: bold; font-size: 14px; }
.header-fields div { border-bottom: 1px solid #cbd5e1; padding-bottom: 4px; }
.question { display: flex; gap: 12px; margin-bottom: 36px; break-inside: avoid; page-break-inside: avoid; }
.question-number { width: 30px; height: 30px; flex-shrink: 0; display: flex; align-items: center; justify-content: center; border: 1.5px solid #0f172a; border-radius: 8px; font-weight: bold; }
.question-body { flex-grow: 1; }
.question-text { font-size: 17px; font-weight: bold; line-height: 2; }
.segment-math { font-family: "Courier New", monospace; direction: ltr; unicode-bidi: embed; padding: 0 4px; }
.points { float: left; font-size: 11px; border: 1px solid #e2e8f0; padding: 1px 8px; border-radius: 4px; }
.options { display: grid; grid-template-columns: 1fr 1fr; gap: 16px; margin-top: 16px; padding-right: 16px; }
.option { display: flex; align-items: center; gap: 10px; }
.option-box { width: 18px; height: 18px; border: 2px solid #0f172a; border-radius: 4px; }
.answer-area { margin-top: 24px; height: 120px; border: 1px solid #f1f5f9; border-top: none; }
.blank-line { margin-top: 20px; height: 24px; width: 33%; border-bottom: 2px dotted #94a3b8; }
.exam-footer { margin-top: 64px; padding-top: 24px; border-top: 1px solid #e2e8f0; text-align: center; font-weight: bold; font-size: 19px; }
[contenteditable="true"] { background: #f8fafc; border-bottom: 1px solid #e2e8f0; outline: none; padding: 0 2px; }
@media print {
  body { background: #fff; }
  .sheet { padding: 0; max-width: none; }
  [contenteditable="true"] { background: none; border: none; }
}
"""


def _get(obj: Any, name: str, default=None):
    """同时支持 ORM 对象和字典"""
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def format_points(points) -> str:
    if isinstance(points, float) and points.is_integer():
        points = int(points)
    return persian_digits(points)


def render_segment(question_id: str, index: int, segment: Dict[str, Any], editable: bool) -> str:
    """渲染单个题干片段，数学片段从左到右显示"""
    is_math = segment.get("type") == "math"
    css_class = "segment segment-math" if is_math else "segment segment-text"
    direction = "ltr" if is_math else "rtl"
    attrs = f'class="{css_class}" dir="{direction}"'
    if editable:
        attrs += (
            f' contenteditable="true" data-question-id="{escape(question_id)}"'
            f' data-segment-index="{index}"'
        )
    return f"<span {attrs}>{escape(str(segment.get('content', '')))}</span>"


def render_answer_area(question: Dict[str, Any]) -> str:
    """按题型渲染作答区域"""
    question_type = question.get("type")
    if question_type == "multiple_choice":
        options = question.get("options") or []
        items = "".join(
            f'<div class="option"><span class="option-box"></span><span>{escape(str(option))}</span></div>'
            for option in options
        )
        return f'<div class="options">{items}</div>' if items else ""
    if question_type == "descriptive":
        return '<div class="answer-area"></div>'
    if question_type == "fill_in_blank":
        return '<div class="blank-line"></div>'
    return ""


def render_question(number: int, question: Dict[str, Any], editable: bool = False) -> str:
    question_id = str(question.get("id", ""))
    segments = question.get("segments")
    if segments is None:
        segments = [{"type": "text", "content": question.get("question_text", "")}]
    segment_html = " ".join(
        render_segment(question_id, index, segment, editable) for index, segment in enumerate(segments)
    )
    return f"""
    <section class="question" data-question-id="{escape(question_id)}">
      <span class="question-number">{persian_digits(number)}</span>
      <div class="question-body">
        <div class="question-text">
          {segment_html}
          <span class="points">({format_points(question.get("points", 0))} نمره)</span>
        </div>
        {render_answer_area(question)}
      </div>
    </section>"""


def render_exam_html(exam: Any, editable: bool = False, auto_print: bool = False) -> str:
    """
    渲染完整试卷

    Args:
        exam: 试卷（ORM 对象或字典）
        editable: 每个片段渲染为可编辑元素，带题目 id 和片段序号
        auto_print: 页面加载后直接调用浏览器打印
    """
    title = escape(str(_get(exam, "title", "")))
    grade_level = escape(str(_get(exam, "grade_level", "")))
    exam_date = format_jalali_date(_get(exam, "created_at"))
    questions = _get(exam, "questions") or []

    body = "".join(render_question(number, question, editable) for number, question in enumerate(questions, start=1))
    title_attrs = ' contenteditable="true" data-field="title"' if editable else ""
    print_script = "<script>window.addEventListener('load', function () { window.print(); });</script>" if auto_print else ""

    return f"""<!DOCTYPE html>
<html lang="fa" dir="rtl">
<head>
  <meta charset="utf-8">
  <title>{title}</title>
  <style>{PRINT_STYLES}</style>
</head>
<body>
  <main class="sheet" data-exam-id="{escape(str(_get(exam, "id", "")))}">
    <header class="exam-header">
      <h1{title_attrs}>{title}</h1>
      <div class="header-fields">
        <div>نام و نام‌خانوادگی: .............................</div>
        <div>تاریخ آزمون: {exam_date}</div>
        <div>پایه تحصیلی: {grade_level}</div>
        <div>نمره: ............</div>
      </div>
    </header>
    <div class="questions">{body}
    </div>
    <footer class="exam-footer">با آرزوی موفقیت و پیروزی</footer>
  </main>
  {print_script}
</body>
</html>
"""
