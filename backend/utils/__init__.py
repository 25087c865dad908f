"""
工具函数目录
按功能分类组织
"""

from .text import truncate, mask_identifier
from .timezone import (
    TEHRAN_TZ,
    get_tehran_time,
    to_tehran_time,
    format_jalali_date,
    persian_digits,
)

__all__ = [
    # 文本处理
    "truncate",
    "mask_identifier",
    # 时间与日历
    "TEHRAN_TZ",
    "get_tehran_time",
    "to_tehran_time",
    "format_jalali_date",
    "persian_digits",
]
