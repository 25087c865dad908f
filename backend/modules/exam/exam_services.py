"""
试卷模块业务逻辑
试卷的创建、查询、编辑、删除与复制
"""

import copy
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import AppException, ErrorCode, NotFoundException, PermissionException
from core.repository import Repository
from core.visibility import filter_visible, filter_my_exams, can_view_exam, can_edit_exam, can_delete_exam
from utils.timezone import get_tehran_time, to_epoch_millis, from_epoch_millis
from .exam_models import Exam, new_exam_id, new_question_id
from .exam_schemas import GenerateExamParams, ExamEditRequest
from .exam_generator import GenerationResult

logger = logging.getLogger(__name__)


# ==================== 远程镜像转换 ====================

def question_to_remote(question: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": question["id"],
        "type": question["type"],
        "segments": question.get("segments") or [],
        "questionText": question.get("question_text", ""),
        "options": question.get("options"),
        "correctAnswer": question.get("correct_answer"),
        "points": question.get("points", 0),
    }


def question_from_remote(row: Dict[str, Any]) -> Dict[str, Any]:
    segments = row.get("segments") or [{"type": "text", "content": row.get("questionText", "")}]
    return {
        "id": row.get("id") or new_question_id(),
        "type": row["type"],
        "segments": segments,
        "question_text": row.get("questionText") or " ".join(s.get("content", "") for s in segments),
        "options": row.get("options"),
        "correct_answer": row.get("correctAnswer"),
        "points": row.get("points", 0),
    }


def exam_to_remote(exam: Exam) -> Dict[str, Any]:
    return {
        "id": exam.id,
        "userId": exam.user_id,
        "authorName": exam.author_name,
        "schoolName": exam.school_name,
        "title": exam.title,
        "topic": exam.topic,
        "gradeLevel": exam.grade_level,
        "difficulty": exam.difficulty,
        "createdAt": to_epoch_millis(exam.created_at),
        "questions": [question_to_remote(q) for q in exam.questions or []],
        "rawContent": exam.raw_content or "",
    }


def exam_from_remote(row: Dict[str, Any]) -> Exam:
    created_at = from_epoch_millis(row["createdAt"]) if row.get("createdAt") else get_tehran_time()
    return Exam(
        id=row["id"],
        user_id=row["userId"],
        author_name=row.get("authorName") or "",
        school_name=row.get("schoolName") or "",
        title=row.get("title") or row.get("topic") or "",
        topic=row.get("topic") or "",
        grade_level=row.get("gradeLevel") or "",
        difficulty=row.get("difficulty") or "medium",
        questions=[question_from_remote(q) for q in row.get("questions") or []],
        raw_content=row.get("rawContent") or "",
        created_at=created_at,
        updated_at=created_at,
    )


exam_repository: Repository[Exam] = Repository(Exam, "exams", exam_to_remote, exam_from_remote)


# ==================== 编辑 ====================

def apply_edits(exam: Exam, data: ExamEditRequest) -> List[Dict[str, Any]]:
    """
    把编辑内容应用到题目副本上并返回新的题目列表
    只修改片段内容，题型、分值、选项和顺序保持不变
    """
    questions = copy.deepcopy(exam.questions or [])
    by_id = {q["id"]: q for q in questions}

    errors = []
    for edit in data.questions:
        question = by_id.get(edit.id)
        if question is None:
            errors.append({"field": f"questions.{edit.id}", "message": "سوال در این آزمون وجود ندارد"})
            continue
        segments = question.get("segments") or []
        if len(edit.segments) != len(segments):
            errors.append({
                "field": f"questions.{edit.id}.segments",
                "message": f"تعداد بخش‌ها باید {len(segments)} باشد",
            })
            continue
        for segment, content in zip(segments, edit.segments):
            segment["content"] = content
        question["question_text"] = " ".join(segment["content"] for segment in segments)

    if errors:
        raise AppException(ErrorCode.EXAM_EDIT_MISMATCH, data={"errors": errors})
    return questions


class ExamService:
    """
    试卷服务类
    所有写操作都经过 exam_repository，自动同步远程镜像
    """

    @staticmethod
    async def list_exams(db: AsyncSession, principal, scope: str = "all") -> List[Exam]:
        """
        获取可见试卷列表（最新在前）
        scope=mine 只保留本人出的试卷，不会扩大可见范围
        """
        exams = await exam_repository.load_all(db, order_by=Exam.created_at.desc())
        visible = filter_visible(principal, exams=exams).exams
        if scope == "mine":
            visible = filter_my_exams(principal, visible)
        return visible

    @staticmethod
    async def get_visible_exam(db: AsyncSession, principal, exam_id: str) -> Exam:
        exam = await exam_repository.get(db, exam_id)
        if exam is None:
            raise NotFoundException("آزمون", exam_id, code=ErrorCode.EXAM_NOT_FOUND)
        if not can_view_exam(principal, exam):
            raise PermissionException("شما به این آزمون دسترسی ندارید")
        return exam

    @staticmethod
    async def recent_school_titles(db: AsyncSession, school_name: str, limit: int = 10) -> List[str]:
        """本校最近的试卷标题（提示 AI 避免重复）"""
        result = await db.execute(
            select(Exam.title)
            .where(Exam.school_name == school_name)
            .order_by(Exam.created_at.desc())
            .limit(limit)
        )
        return [title for title in result.scalars().all() if title]

    @staticmethod
    async def create_from_generation(
        db: AsyncSession,
        principal,
        params: GenerateExamParams,
        result: GenerationResult,
    ) -> Exam:
        """保存 AI 生成的试卷，学校和作者取自当前用户"""
        now = get_tehran_time()
        exam = Exam(
            id=new_exam_id(),
            user_id=principal.id,
            author_name=principal.full_name,
            school_name=principal.school_name,
            title=result.title or params.topic,
            topic=params.topic,
            grade_level=params.grade_level,
            difficulty=params.difficulty,
            questions=result.questions,
            raw_content=result.raw_content,
            created_at=now,
            updated_at=now,
        )
        exam = await exam_repository.save(db, exam)
        logger.info(f"创建试卷: id={exam.id}, title={exam.title}, school={exam.school_name}")
        return exam

    @staticmethod
    async def update_exam(db: AsyncSession, principal, exam_id: str, data: ExamEditRequest) -> Exam:
        """编辑试卷标题和片段内容，整体保存"""
        exam = await ExamService.get_visible_exam(db, principal, exam_id)
        if not can_edit_exam(principal, exam):
            raise PermissionException("فقط طراح آزمون یا مدیر مدرسه می‌تواند آن را ویرایش کند")

        questions = apply_edits(exam, data)
        if data.title is not None:
            exam.title = data.title
        # 重新赋值整个列表，JSON 列才会被标记为已修改
        exam.questions = questions
        exam.updated_at = get_tehran_time()

        exam = await exam_repository.save(db, exam)
        logger.info(f"更新试卷: id={exam.id}")
        return exam

    @staticmethod
    async def delete_exam(db: AsyncSession, principal, exam_id: str) -> Optional[Exam]:
        """
        删除试卷
        试卷不存在时为空操作，返回 None；无权删除时抛出 PermissionException
        """
        exam = await exam_repository.get(db, exam_id)
        if exam is None:
            return None
        if not can_delete_exam(principal, exam):
            raise PermissionException("شما اجازه حذف این آزمون را ندارید")

        await exam_repository.delete(db, exam_id)
        logger.info(f"删除试卷: id={exam_id}")
        return exam

    @staticmethod
    async def duplicate_exam(db: AsyncSession, principal, exam_id: str) -> Exam:
        """复制可见试卷到当前用户名下（新的试卷和题目 id）"""
        source = await ExamService.get_visible_exam(db, principal, exam_id)

        questions = copy.deepcopy(source.questions or [])
        for question in questions:
            question["id"] = new_question_id()

        now = get_tehran_time()
        exam = Exam(
            id=new_exam_id(),
            user_id=principal.id,
            author_name=principal.full_name,
            school_name=principal.school_name,
            title=source.title,
            topic=source.topic,
            grade_level=source.grade_level,
            difficulty=source.difficulty,
            questions=questions,
            raw_content=source.raw_content,
            created_at=now,
            updated_at=now,
        )
        exam = await exam_repository.save(db, exam)
        logger.info(f"复制试卷: {source.id} -> {exam.id} ({principal.username})")
        return exam
