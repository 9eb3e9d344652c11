"""AgenticOS - AI Service

规格文档生成：根据项目的领域、需求、测试用例与数据包构造提示词，
调用 Anthropic Messages 流式接口，生成结束后保存为 GeneratedSpec。
"""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import AsyncIterator, Optional, Sequence

import httpx

from agenticos.core.config import settings
from agenticos.core.context import AppContext
from agenticos.models.data_bag_schemas import DataBagRecord
from agenticos.models.domain_schemas import DomainRecord
from agenticos.models.project_schemas import ProjectRecord
from agenticos.models.requirement_schemas import RequirementRecord
from agenticos.models.spec_schemas import GeneratedSpecCreate, GeneratedSpecRecord
from agenticos.models.testcase_schemas import TestCaseRecord

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"

# 首个文本片段返回前遇到这些状态码会重试
RETRYABLE_STATUS = {429, 500, 502, 503, 504, 529}


@dataclass
class GenerationConfig:
    """生成配置"""
    max_tokens: int = 4096
    max_retries: int = 3
    retry_delay: float = 1.0
    timeout: float = 300.0

    @classmethod
    def from_settings(cls) -> "GenerationConfig":
        return cls(
            max_tokens=settings.AI_MAX_TOKENS,
            max_retries=max(1, settings.AI_MAX_RETRIES),
            timeout=settings.AI_TIMEOUT,
        )


class AIServiceError(Exception):
    """AI 服务错误"""
    pass


class GenerationPreconditionError(AIServiceError):
    """生成前置条件不满足（缺少需求、规格类型未知、未配置 API Key）"""
    pass


# ============================================================
# 规格类型与模型
# ============================================================

class SpecType(str, Enum):
    """规格文档类型"""
    FUNCTIONAL = "functional"
    TECHNICAL = "technical"
    BDD = "bdd"
    API = "api"
    TEST_PLAN = "test-plan"
    USER_STORIES = "user-stories"


@dataclass(frozen=True)
class SpecTypeInfo:
    label: str
    description: str
    instruction: str


SPEC_TYPES: dict[SpecType, SpecTypeInfo] = {
    SpecType.FUNCTIONAL: SpecTypeInfo(
        label="Functional Specification",
        description="Detailed functional requirements document",
        instruction=(
            "Generate a detailed functional specification document with sections for: Overview, Scope, "
            "Business Rules, Functional Requirements (derived from the Gherkin scenarios), "
            "Non-Functional Requirements, and Constraints. Use markdown formatting."
        ),
    ),
    SpecType.TECHNICAL: SpecTypeInfo(
        label="Technical Design Spec",
        description="Architecture and implementation details",
        instruction=(
            "Generate a technical design specification with: System Architecture, Component Design, "
            "Data Models (based on domains), API Design, Integration Points, and Technical Constraints. "
            "Use markdown."
        ),
    ),
    SpecType.BDD: SpecTypeInfo(
        label="BDD Feature Files",
        description="Cucumber/Gherkin .feature files",
        instruction=(
            "Generate Gherkin .feature files for each requirement. Use proper Feature, Background, "
            "Scenario, and Scenario Outline structures with Examples tables where appropriate."
        ),
    ),
    SpecType.API: SpecTypeInfo(
        label="API Specification (OpenAPI)",
        description="OpenAPI 3.0 YAML specification",
        instruction=(
            "Generate an OpenAPI 3.0 YAML specification. Include paths, request/response schemas "
            "based on the domain models, and proper HTTP methods."
        ),
    ),
    SpecType.TEST_PLAN: SpecTypeInfo(
        label="Test Plan",
        description="Comprehensive test plan document",
        instruction=(
            "Generate a comprehensive test plan with: Test Strategy, Test Scope, Test Cases (based on "
            "the provided test cases), Test Environment, Entry/Exit Criteria, and Risk Assessment."
        ),
    ),
    SpecType.USER_STORIES: SpecTypeInfo(
        label="User Stories",
        description="Agile user stories with acceptance criteria",
        instruction=(
            'Generate Agile user stories in "As a [role], I want [goal], So that [benefit]" format for '
            "each requirement, with acceptance criteria derived from the Gherkin steps."
        ),
    ),
}

CLAUDE_MODELS: list[dict[str, str]] = [
    {"id": "claude-opus-4-5-20251101", "label": "Claude Opus 4.5 (Most capable)"},
    {"id": "claude-sonnet-4-5-20250929", "label": "Claude Sonnet 4.5 (Balanced)"},
    {"id": "claude-haiku-3-5-20241022", "label": "Claude Haiku 3.5 (Fast)"},
]


def resolve_spec_type(value: str) -> SpecType:
    try:
        return SpecType(value)
    except ValueError:
        raise GenerationPreconditionError(f"Unknown specification type: {value}") from None


# ============================================================
# 提示词
# ============================================================

def _domain_section(domains: Sequence[DomainRecord]) -> str:
    blocks = []
    for domain in domains:
        attrs = []
        for attr in domain.attributes:
            line = f"  - {attr.name} ({attr.type.value})"
            if attr.required:
                line += " [required]"
            if attr.description:
                line += f": {attr.description}"
            attrs.append(line)
        blocks.append(
            f"Domain: {domain.name}\n"
            f"Description: {domain.description or 'N/A'}\n"
            "Attributes:\n" + "\n".join(attrs)
        )
    return "\n\n".join(blocks)


def _clause_lines(keyword: str, steps: Sequence[str]) -> list[str]:
    # 第一步用关键字，后续步骤用 And；Given 子句每步都用 Given
    lines = []
    for index, step in enumerate(steps):
        word = keyword if index == 0 or keyword == "Given" else "And"
        lines.append(f"    {word} {step}")
    return lines


def _requirement_section(requirements: Sequence[RequirementRecord]) -> str:
    blocks = []
    for req in requirements:
        scenario = (
            _clause_lines("Given", req.gherkin.given)
            + _clause_lines("When", req.gherkin.when)
            + _clause_lines("Then", req.gherkin.then)
        )
        blocks.append(
            f"Requirement: {req.title} [{req.status.value}]\n"
            f"Description: {req.description or 'N/A'}\n"
            "Scenario:\n" + "\n".join(scenario)
        )
    return "\n\n".join(blocks)


def _test_case_section(test_cases: Sequence[TestCaseRecord], requirements: Sequence[RequirementRecord]) -> str:
    titles = {req.id: req.title for req in requirements}
    blocks = []
    for tc in test_cases:
        steps = "; ".join(f"{step.type.value}: {step.description}" for step in tc.steps)
        blocks.append(
            f"Test Case: {tc.name} [{tc.status.value}]\n"
            f"Linked Requirement: {titles.get(tc.requirement_id) or 'N/A'}\n"
            f"Steps: {steps}"
        )
    return "\n\n".join(blocks)


def _data_bag_section(data_bags: Sequence[DataBagRecord]) -> str:
    if not data_bags:
        return ""
    lines = [
        f"{bag.name}: {len(bag.records)} rows, columns: {', '.join(col.name for col in bag.schema_def)}"
        for bag in data_bags
    ]
    return "=== TEST DATA BAGS ===\n" + "\n".join(lines)


def build_prompt(
    project: Optional[ProjectRecord],
    requirements: Sequence[RequirementRecord],
    domains: Sequence[DomainRecord],
    test_cases: Sequence[TestCaseRecord],
    data_bags: Sequence[DataBagRecord],
    spec_type: SpecType,
) -> str:
    """构造规格生成提示词"""
    info = SPEC_TYPES.get(spec_type)
    instruction = info.instruction if info else ""
    project_name = project.name if project and project.name else "Untitled"
    project_desc = f"Description: {project.description}\n" if project and project.description else ""

    return (
        "You are an expert software architect and business analyst. "
        f"Generate a {instruction or 'software specification'} based on the following project information.\n"
        "\n"
        f"PROJECT: {project_name}\n"
        f"{project_desc}\n"
        "\n"
        "=== DOMAIN MODELS ===\n"
        f"{_domain_section(domains) or 'No domains defined'}\n"
        "\n"
        "=== REQUIREMENTS (Gherkin Format) ===\n"
        f"{_requirement_section(requirements) or 'No requirements defined'}\n"
        "\n"
        "=== TEST CASES ===\n"
        f"{_test_case_section(test_cases, requirements) or 'No test cases defined'}\n"
        "\n"
        f"{_data_bag_section(data_bags)}\n"
        "\n"
        "---\n"
        f"{info.description if info else ''}\n"
        f"{instruction}\n"
        "\n"
        "Be thorough, professional, and align the specification with the provided Gherkin requirements "
        "and domain models."
    )


def spec_filename(spec: GeneratedSpecRecord) -> str:
    """下载文件名：spec-<类型>-<创建日期>.<扩展名>"""
    if spec.spec_type == SpecType.API.value:
        ext = "yaml"
    elif spec.spec_type == SpecType.BDD.value:
        ext = "feature"
    else:
        ext = "md"
    day = datetime.fromtimestamp(spec.created_at / 1000, tz=timezone.utc).strftime("%Y-%m-%d")
    return f"spec-{spec.spec_type}-{day}.{ext}"


# ============================================================
# 流式调用
# ============================================================

async def iter_text_deltas(response: httpx.Response) -> AsyncIterator[str]:
    """解析 Messages SSE 流，只产出 text_delta 文本"""
    async for line in response.aiter_lines():
        if not line.startswith("data:"):
            continue
        data = line[len("data:"):].strip()
        if not data:
            continue
        try:
            event = json.loads(data)
        except ValueError:
            logger.warning(f"无法解析的 SSE 数据: {data[:80]!r}")
            continue

        event_type = event.get("type")
        if event_type == "content_block_delta":
            delta = event.get("delta") or {}
            if delta.get("type") == "text_delta" and delta.get("text"):
                yield delta["text"]
        elif event_type == "error":
            error = event.get("error") or {}
            raise AIServiceError(error.get("message") or "Generation failed")
        elif event_type == "message_stop":
            return


class SpecGenerator:
    """规格文档生成器"""

    def __init__(
        self,
        context: AppContext,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        gen_config: Optional[GenerationConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.context = context
        self.api_key = api_key if api_key is not None else settings.ANTHROPIC_API_KEY
        self.base_url = (base_url or settings.ANTHROPIC_BASE_URL).rstrip("/")
        self.gen_config = gen_config or GenerationConfig.from_settings()
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.api_key or "",
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
            "accept": "text/event-stream",
        }

    async def stream(self, prompt: str, model: Optional[str] = None) -> AsyncIterator[str]:
        """流式生成文本片段

        只在第一个片段产出之前重试；已经产出内容后出错直接抛出 AIServiceError。
        """
        if not self.api_key:
            raise GenerationPreconditionError("Anthropic API key is not configured.")

        cfg = self.gen_config
        payload = {
            "model": model or settings.ANTHROPIC_MODEL,
            "max_tokens": cfg.max_tokens,
            "stream": True,
            "messages": [{"role": "user", "content": prompt}],
        }
        last_error: Optional[Exception] = None

        for attempt in range(cfg.max_retries):
            emitted = False
            try:
                async with httpx.AsyncClient(timeout=cfg.timeout, transport=self._transport) as client:
                    async with client.stream(
                        "POST", f"{self.base_url}/messages", json=payload, headers=self._headers()
                    ) as response:
                        if response.status_code >= 400:
                            await response.aread()
                            response.raise_for_status()
                        async for text in iter_text_deltas(response):
                            emitted = True
                            yield text
                return

            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                logger.warning(f"AI API 错误 (尝试 {attempt + 1}/{cfg.max_retries}): {status_code}")
                last_error = e
                if emitted or status_code not in RETRYABLE_STATUS:
                    raise AIServiceError(f"AI API 错误: {status_code} {e.response.text[:200]}") from e
                await asyncio.sleep(cfg.retry_delay * (attempt + 1))

            except (httpx.TimeoutException, httpx.TransportError) as e:
                logger.warning(f"AI API 连接失败 (尝试 {attempt + 1}/{cfg.max_retries}): {e}")
                last_error = e
                if emitted:
                    raise AIServiceError(f"AI 流式输出中断: {e}") from e

        raise AIServiceError(f"AI 调用失败 (已重试 {cfg.max_retries} 次): {last_error}")

    async def _save(self, project_id: int, content: str, model: str, spec_type: str, prompt: str) -> int:
        spec_id = await self.context.specs.create(project_id, GeneratedSpecCreate(
            content=content,
            model=model,
            spec_type=spec_type,
            prompt=prompt,
        ))
        logger.info(f"规格文档已生成: id={spec_id}, project_id={project_id}, type={spec_type}")
        return spec_id

    async def prepare(self, project_id: int, user_id: int, spec_type: str) -> str:
        """读取项目上下文并构造提示词（项目至少要有一条需求）"""
        kind = resolve_spec_type(spec_type)
        ctx = self.context
        project = await ctx.projects.require(project_id, user_id)
        requirements = await ctx.requirements.list(project_id)
        if not requirements:
            raise GenerationPreconditionError("Add at least one requirement before generating a specification.")
        return build_prompt(
            project,
            requirements,
            await ctx.domains.list(project_id),
            await ctx.test_cases.list(project_id),
            await ctx.data_bags.list(project_id),
            kind,
        )

    async def stream_and_save(
        self,
        project_id: int,
        prompt: str,
        spec_type: str,
        model: Optional[str] = None,
    ) -> AsyncIterator[str]:
        """流式产出片段，全部完成后保存生成结果"""
        model = model or settings.ANTHROPIC_MODEL
        chunks: list[str] = []
        async for text in self.stream(prompt, model):
            chunks.append(text)
            yield text
        await self._save(project_id, "".join(chunks), model, spec_type, prompt)

    async def generate(
        self,
        project_id: int,
        user_id: int,
        spec_type: str,
        model: Optional[str] = None,
    ) -> GeneratedSpecRecord:
        """一次性生成并返回保存后的规格文档"""
        prompt = await self.prepare(project_id, user_id, spec_type)
        model = model or settings.ANTHROPIC_MODEL
        content = "".join([text async for text in self.stream(prompt, model)])
        spec_id = await self._save(project_id, content, model, spec_type, prompt)
        return await self.context.specs.require(spec_id, project_id)
