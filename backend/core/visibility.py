"""
数据可见性过滤
按当前用户的角色和学校决定能看到哪些用户、试卷和操作日志

规则：
- super_admin：全部数据
- admin：本校的用户（不含超级管理员）、本校试卷、本校日志
- teacher：本校全部试卷（学校档案），用户列表只有自己，无日志
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, List

ROLE_TEACHER = "teacher"
ROLE_ADMIN = "admin"
ROLE_SUPER_ADMIN = "super_admin"


@dataclass
class VisibleData:
    """过滤后的可见数据"""
    users: List[Any] = field(default_factory=list)
    exams: List[Any] = field(default_factory=list)
    logs: List[Any] = field(default_factory=list)


def _same_school(principal, item) -> bool:
    return item.school_name == principal.school_name


def filter_visible(principal, users: Iterable = (), exams: Iterable = (), logs: Iterable = ()) -> VisibleData:
    """
    计算当前用户可见的数据集合
    纯函数，不修改输入；每次列表请求都重新计算
    """
    users, exams, logs = list(users), list(exams), list(logs)

    if principal.role == ROLE_SUPER_ADMIN:
        return VisibleData(users=users, exams=exams, logs=logs)

    if principal.role == ROLE_ADMIN:
        return VisibleData(
            users=[u for u in users if _same_school(principal, u) and u.role != ROLE_SUPER_ADMIN],
            exams=[e for e in exams if _same_school(principal, e)],
            logs=[entry for entry in logs if _same_school(principal, entry)],
        )

    # 教师及其他未知角色
    return VisibleData(
        users=[u for u in users if u.id == principal.id],
        exams=[e for e in exams if _same_school(principal, e)],
        logs=[],
    )


def filter_my_exams(principal, exams: Iterable) -> list:
    """“我的试卷”视图：在可见集合之上按作者再过滤，不会扩大范围"""
    return [e for e in exams if e.user_id == principal.id]


def can_view_exam(principal, exam) -> bool:
    if principal.role == ROLE_SUPER_ADMIN:
        return True
    return _same_school(principal, exam)


def can_edit_exam(principal, exam) -> bool:
    """作者本人、试卷所属学校的管理员或超级管理员"""
    if principal.role == ROLE_SUPER_ADMIN:
        return True
    if exam.user_id == principal.id:
        return True
    return principal.role == ROLE_ADMIN and _same_school(principal, exam)


def can_delete_exam(principal, exam) -> bool:
    return can_edit_exam(principal, exam)


def can_delete_user(principal, target) -> bool:
    """
    删除用户的授权检查
    - 只有管理员可以删除
    - 不能删除自己
    - 非超级管理员不能删除 admin / super_admin，且只能删除本校用户
    """
    if principal.role not in (ROLE_ADMIN, ROLE_SUPER_ADMIN):
        return False
    if target.id == principal.id:
        return False
    if principal.role == ROLE_SUPER_ADMIN:
        return True
    if target.role in (ROLE_ADMIN, ROLE_SUPER_ADMIN):
        return False
    return _same_school(principal, target)
