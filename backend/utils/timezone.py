# -*- coding: utf-8 -*-
"""
时区与日历工具模块
统一使用德黑兰时间（UTC+03:30），试卷日期使用伊朗太阳历（Jalali）
"""

from datetime import datetime, timezone, timedelta
from typing import Optional

import jdatetime

# 德黑兰时区对象（伊朗自 2022 年起取消夏令时）
TEHRAN_TZ = timezone(timedelta(hours=3, minutes=30))

# 太阳历月份名称
JALALI_MONTHS = (
    "فروردین", "اردیبهشت", "خرداد", "تیر", "مرداد", "شهریور",
    "مهر", "آبان", "آذر", "دی", "بهمن", "اسفند",
)

_PERSIAN_DIGITS = str.maketrans("0123456789", "۰۱۲۳۴۵۶۷۸۹")


def get_tehran_time() -> datetime:
    """
    获取当前德黑兰时间

    Returns:
        datetime: 带有 +03:30 时区信息的当前时间
    """
    return datetime.now(TEHRAN_TZ)


def to_tehran_time(dt: Optional[datetime]) -> Optional[datetime]:
    """
    将任意时间转换为德黑兰时间
    无时区信息的时间视为数据库中存储的本地时间
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=TEHRAN_TZ)
    return dt.astimezone(TEHRAN_TZ)


def to_epoch_millis(dt: datetime) -> int:
    """转换为毫秒时间戳（远程表使用的格式）"""
    return round(to_tehran_time(dt).timestamp() * 1000)


def from_epoch_millis(value: int) -> datetime:
    """毫秒时间戳转换为德黑兰时间"""
    return datetime.fromtimestamp(value / 1000, tz=TEHRAN_TZ)


def persian_digits(value) -> str:
    """将阿拉伯数字替换为波斯数字"""
    return str(value).translate(_PERSIAN_DIGITS)


def format_jalali_date(dt: Optional[datetime] = None, long: bool = True) -> str:
    """
    格式化为太阳历日期

    Args:
        dt: 待格式化的时间，默认当前时间
        long: True 时输出 “۲۵ مهر ۱۴۰۳”，False 时输出 “۱۴۰۳/۰۷/۲۵”
    """
    local = to_tehran_time(dt) if dt is not None else get_tehran_time()
    jdate = jdatetime.date.fromgregorian(date=local.date())

    if long:
        text = f"{jdate.day} {JALALI_MONTHS[jdate.month - 1]} {jdate.year}"
    else:
        text = f"{jdate.year:04d}/{jdate.month:02d}/{jdate.day:02d}"
    return persian_digits(text)
