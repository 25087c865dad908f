"""
文本处理工具
"""


def truncate(text: str, length: int, suffix: str = "…") -> str:
    """
    截取文本

    Args:
        text: 原始文本
        length: 最大长度（不含后缀）
        suffix: 省略后缀
    """
    if not text or len(text) <= length:
        return text or ""
    return text[:length].rstrip() + suffix


def mask_identifier(identifier: str) -> str:
    """
    隐藏登录标识中间部分（写日志用）
    例: teacher@aftab.ir -> t***r@aftab.ir, mahsa -> m***a
    """
    if not identifier:
        return ""

    local, sep, domain = identifier.partition("@")
    if len(local) <= 2:
        masked = local[:1] + "***"
    else:
        masked = local[0] + "***" + local[-1]
    return f"{masked}{sep}{domain}"
