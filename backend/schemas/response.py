"""
统一响应格式
所有接口返回 {code, message, data}，错误响应见 core/errors.py
"""

from typing import Any, Iterable, Type

from pydantic import BaseModel


def success(data: Any = None, message: str = "success") -> dict:
    """成功响应"""
    return {
        "code": 200,
        "message": message,
        "data": data
    }


def dump_model(schema: Type[BaseModel], obj: Any) -> dict:
    """ORM 对象 -> 可直接序列化的字典"""
    return schema.model_validate(obj).model_dump(mode="json")


def list_response(schema: Type[BaseModel], rows: Iterable[Any], message: str = "success") -> dict:
    """列表响应：data = {items, total}"""
    items = [dump_model(schema, row) for row in rows]
    return success(data={"items": items, "total": len(items)}, message=message)
