"""AgenticOS - Common Schemas

通用的 Pydantic 数据模型与行解码工具
"""
from __future__ import annotations

import json
import logging
from typing import Any, Callable

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ============================================================
# JSON 文本列解码
# ============================================================

def parse_json_column(raw: Any, default_factory: Callable[[], Any], expected: type | None = None) -> Any:
    """解析 JSON 文本列，NULL / 空串 / 非法 JSON / 类型不符时回退默认值

    兼容字段加入之前写入的旧行。
    """
    if raw is None or raw == "":
        return default_factory()
    if isinstance(raw, (list, dict)):
        value = raw
    else:
        try:
            value = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"JSON 列解析失败，回退默认值: {str(raw)[:80]!r}")
            return default_factory()
    if expected is not None and not isinstance(value, expected):
        return default_factory()
    return value


def json_list(raw: Any) -> list:
    return parse_json_column(raw, list, list)


def json_object_list(raw: Any) -> list[dict]:
    """JSON 数组，只保留对象元素"""
    return [item for item in json_list(raw) if isinstance(item, dict)]


def dump_json(value: Any) -> str:
    """结构化字段 -> JSON 文本列"""
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json", by_alias=True)
    elif isinstance(value, list):
        value = [
            item.model_dump(mode="json", by_alias=True) if isinstance(item, BaseModel) else item
            for item in value
        ]
    return json.dumps(value, ensure_ascii=False)


def text_or_empty(raw: Any) -> str:
    return raw if isinstance(raw, str) else ("" if raw is None else str(raw))


def int_or_none(raw: Any) -> int | None:
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


# ============================================================
# 通用响应
# ============================================================

class CreatedResponse(BaseModel):
    """创建结果"""
    id: int = Field(..., description="新记录 ID")
