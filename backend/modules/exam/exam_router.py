"""
试卷模块路由
定义 API 接口
"""

import logging
from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from core.database import get_db, commit
from core.security import CurrentUser, get_current_user
from core.errors import AppException, ErrorCode
from core.activity import record_activity
from models import ActivityAction
from schemas.response import success, dump_model, list_response
from modules.resource.resource_services import ResourceService

from .exam_schemas import GenerateExamParams, ExamEditRequest, ExamListItem, ExamResponse
from .exam_services import ExamService
from .exam_generator import ExamGenerator, get_exam_generator
from .exam_renderer import render_exam_html

logger = logging.getLogger(__name__)

router = APIRouter()


def _detail(exam) -> dict:
    return dump_model(ExamResponse, exam)


@router.get("", summary="获取试卷列表")
async def get_exam_list(
    scope: str = Query("all", pattern="^(all|mine)$", description="all=学校档案, mine=我的试卷"),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    """获取当前用户可见的试卷"""
    exams = await ExamService.list_exams(db, user, scope)
    return list_response(ExamListItem, exams)


@router.post("/generate", summary="AI 生成试卷")
async def generate_exam(
    params: GenerateExamParams,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    generator: ExamGenerator = Depends(get_exam_generator)
):
    """
    调用 AI 生成试卷并保存
    生成失败时返回 502，不写入任何数据
    """
    school_resources, recent_titles = [], []
    if params.use_school_resources:
        school_resources = await ResourceService.prompt_context(db, user.school_name)
        recent_titles = await ExamService.recent_school_titles(db, user.school_name)

    result = await generator.generate(params, school_resources, recent_titles)

    exam = await ExamService.create_from_generation(db, user, params, result)
    await record_activity(db, user, ActivityAction.CREATE_EXAM, f"طراحی آزمون: {exam.title}")
    await commit(db)
    return success(data=_detail(exam), message="آزمون با موفقیت طراحی شد")


@router.get("/{exam_id}", summary="获取试卷详情")
async def get_exam(
    exam_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    exam = await ExamService.get_visible_exam(db, user, exam_id)
    return success(data=_detail(exam))


@router.get("/{exam_id}/print", summary="打印试卷", response_class=HTMLResponse)
async def print_exam(
    exam_id: str,
    editable: bool = Query(False, description="片段可编辑"),
    auto_print: bool = Query(False, description="加载后自动打印"),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    """返回可打印的 HTML 答题纸"""
    exam = await ExamService.get_visible_exam(db, user, exam_id)
    return HTMLResponse(render_exam_html(exam, editable=editable, auto_print=auto_print))


@router.put("/{exam_id}", summary="编辑试卷")
async def update_exam(
    exam_id: str,
    data: ExamEditRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    """修改标题和题干片段，返回修改后的完整试卷"""
    exam = await ExamService.update_exam(db, user, exam_id, data)
    await record_activity(db, user, ActivityAction.UPDATE_EXAM, f"ویرایش آزمون: {exam.title}")
    await commit(db)
    return success(data=_detail(exam), message="تغییرات ذخیره شد")


@router.delete("/{exam_id}", summary="删除试卷")
async def delete_exam(
    exam_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    """删除试卷；试卷已不存在时直接返回成功"""
    exam = await ExamService.delete_exam(db, user, exam_id)
    if exam is None:
        return success(message="آزمون قبلاً حذف شده است")

    await record_activity(db, user, ActivityAction.DELETE_EXAM, f"حذف آزمون: {exam.title}")
    await commit(db)
    return success(message="آزمون حذف شد")


@router.post("/{exam_id}/duplicate", summary="复制到我的试卷")
async def duplicate_exam(
    exam_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user)
):
    """复制试卷到当前用户名下（需开启 exam_duplicate_enabled）"""
    if not get_settings().exam_duplicate_enabled:
        raise AppException(ErrorCode.EXAM_DUPLICATE_DISABLED)

    exam = await ExamService.duplicate_exam(db, user, exam_id)
    await record_activity(db, user, ActivityAction.DUPLICATE_EXAM, f"کپی آزمون: {exam.title}")
    await commit(db)
    return success(data=_detail(exam), message="آزمون به کارتابل شما کپی شد")
