"""AgenticOS - Attribute Autocomplete

Gherkin 步骤中的 @Domain.attribute 引用补全

引用只是文本，不校验领域或属性是否存在。
"""
from __future__ import annotations

import re
from typing import Optional, Sequence

from pydantic import BaseModel

from agenticos.models.domain_schemas import DomainRecord

REFERENCE_PATTERN = re.compile(r"@[\w.]+")
DEFAULT_LIMIT = 8


class Suggestion(BaseModel):
    """补全候选"""
    ref: str
    domain: str
    attr: str
    type: str


def _partial_token(text: str, cursor: int) -> Optional[tuple[int, str]]:
    """光标前最后一个 @ 的位置与其后的片段（片段含空格时视为无补全）"""
    before = text[:cursor]
    at_index = before.rfind("@")
    if at_index == -1:
        return None
    token = before[at_index + 1:]
    if " " in token:
        return None
    return at_index, token


def suggest(
    text: str,
    cursor: int,
    domains: Sequence[DomainRecord],
    limit: int = DEFAULT_LIMIT,
) -> list[Suggestion]:
    """按 Domain.attribute 子串（忽略大小写）匹配候选"""
    partial = _partial_token(text, cursor)
    if partial is None:
        return []
    needle = partial[1].lower()

    results: list[Suggestion] = []
    for domain in domains:
        for attr in domain.attributes:
            ref = f"{domain.name}.{attr.name}"
            if needle in ref.lower():
                results.append(Suggestion(ref=ref, domain=domain.name, attr=attr.name, type=attr.type.value))
                if len(results) >= limit:
                    return results
    return results


def apply_suggestion(text: str, cursor: int, ref: str) -> str:
    """用 @ref 加一个空格替换光标前的片段"""
    partial = _partial_token(text, cursor)
    if partial is None:
        return text
    at_index = partial[0]
    return f"{text[:at_index]}@{ref} {text[cursor:]}"


def find_references(text: str) -> list[str]:
    """文本中的全部 @ 引用（按出现顺序）"""
    return REFERENCE_PATTERN.findall(text or "")
