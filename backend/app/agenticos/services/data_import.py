"""AgenticOS - Data Import

测试数据包导入/导出：CSV 与 JSON 文本解析
"""
from __future__ import annotations

import csv
import io
import json
import logging
from typing import Any, Optional

from agenticos.models.data_bag_schemas import DataBagRecord, SchemaColumn

logger = logging.getLogger(__name__)

ParsedBag = tuple[list[SchemaColumn], list[dict[str, Any]]]


class DataImportError(Exception):
    """数据解析失败"""
    pass


def parse_csv(text: str) -> ParsedBag:
    """解析 CSV：首行为表头，所有列类型为 string

    表头与数据行都按 CSV 引号规则拆分，少于两行（没有数据行）时返回空结果。
    """
    lines = [line for line in text.strip().splitlines() if line]
    if len(lines) < 2:
        return [], []

    rows = csv.reader(lines, skipinitialspace=True)
    headers = [h.strip() for h in next(rows)]
    records: list[dict[str, Any]] = []
    for values in rows:
        records.append({
            header: values[index].strip() if index < len(values) else ""
            for index, header in enumerate(headers)
        })
    schema = [SchemaColumn(name=header, type="string") for header in headers]
    return schema, records


def json_type_name(value: Any) -> str:
    """JSON 值的类型名（与 JavaScript typeof 一致）"""
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    return "object"


def parse_json(text: str) -> ParsedBag:
    """解析 JSON 对象数组，schema 取第一个对象的键

    非数组或空数组返回空结果。
    """
    try:
        data = json.loads(text)
    except ValueError as e:
        raise DataImportError(f"Failed to parse: {e}") from e
    if not isinstance(data, list) or not data:
        return [], []

    records = [item for item in data if isinstance(item, dict)]
    if not records:
        return [], []
    first = records[0]
    schema = [SchemaColumn(name=key, type=json_type_name(value)) for key, value in first.items()]
    return schema, records


def parse_import(text: str, filename: Optional[str] = None) -> ParsedBag:
    """按文件名后缀或内容首字符选择解析器"""
    stripped = (text or "").strip()
    if not stripped:
        raise DataImportError("Nothing to import")
    if filename:
        is_json = filename.lower().endswith(".json")
    else:
        is_json = stripped.startswith("[") or stripped.startswith("{")

    if is_json:
        schema, records = parse_json(stripped)
    else:
        try:
            schema, records = parse_csv(stripped)
        except csv.Error as e:
            raise DataImportError(f"Failed to parse: {e}") from e
    logger.info(f"数据解析完成: {len(records)} 行, {len(schema)} 列")
    return schema, records


def export_csv(bag: DataBagRecord) -> str:
    """按 schema 列顺序导出 CSV，所有值加引号"""
    if not bag.schema_def:
        return ""
    names = [col.name for col in bag.schema_def]
    buffer = io.StringIO()
    buffer.write(",".join(names))
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    buffer.write("\n")
    for record in bag.records:
        writer.writerow(["" if record.get(name) is None else str(record.get(name)) for name in names])
    return buffer.getvalue().rstrip("\n")
