from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Awaitable, Callable, NoReturn, Optional, TypeVar

import typer
from rich import print

from agenticos.core.config import settings
from agenticos.core.context import AppContext
from agenticos.logging_config import setup_logging
from agenticos.models.data_bag_schemas import DataBagCreate
from agenticos.repositories.base import RepositoryError
from agenticos.repositories.user_repository import DEMO_USER_EMAIL
from agenticos.services.ai_service import AIServiceError, SpecGenerator, SpecType
from agenticos.services.data_import import DataImportError, parse_import

app = typer.Typer(add_completion=False, help="AgenticOS CLI")

T = TypeVar("T")


# ============================================================
# 小工具：日志
# ============================================================
def _info(msg: str) -> None:
    print(f"[cyan][AOS][/cyan] {msg}")


def _ok(msg: str) -> None:
    print(f"[green][AOS][OK][/green] {msg}")


def _fail(msg: str, code: int = 1) -> NoReturn:
    print(f"[red][AOS][FAIL][/red] {msg}")
    raise typer.Exit(code)


def _run(job: Callable[[AppContext], Awaitable[T]], initialize: bool = True) -> T:
    """在新的事件循环里构建上下文并执行 job，结束后关闭连接"""

    async def runner() -> T:
        context = AppContext.from_settings(settings)
        try:
            if initialize:
                await context.initialize()
            return await job(context)
        finally:
            await context.close()

    return asyncio.run(runner())


async def _initialized(context: AppContext) -> None:
    return None


async def _owner_id(context: AppContext, email: str) -> int:
    user = await context.users.find_by_email(email)
    if user is None:
        _fail(f"用户不存在: {email}")
    return user.id


# ============================================================
# 命令
# ============================================================
@app.command("init-db")
def init_db():
    """Create tables and apply migrations."""
    setup_logging()
    _run(_initialized)
    _ok(f"数据库已初始化: {settings.DB_URL}")


@app.command("seed-demo")
def seed_demo():
    """Create the demo user if missing."""
    setup_logging()
    created = _run(lambda context: context.users.seed_demo_user())
    if created:
        _ok(f"演示用户已创建: {DEMO_USER_EMAIL}")
    else:
        _info(f"演示用户已存在: {DEMO_USER_EMAIL}")


@app.command("import-bag")
def import_bag(
    project_id: int = typer.Argument(..., help="Target project id"),
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV or JSON file"),
    name: Optional[str] = typer.Option(None, "--name", help="Data bag name (defaults to file stem)"),
    email: str = typer.Option(DEMO_USER_EMAIL, "--email", help="Project owner email"),
):
    """Import a CSV / JSON file as a data bag."""
    setup_logging()
    text = file.read_text(encoding="utf-8")
    try:
        schema, records = parse_import(text, file.name)
    except DataImportError as e:
        _fail(str(e))

    async def job(context: AppContext) -> int:
        project = await context.projects.require(project_id, await _owner_id(context, email))
        bag = DataBagCreate(name=name or file.stem, records=records, schema_def=schema)
        return await context.data_bags.create(project.id, bag)

    try:
        bag_id = _run(job)
    except RepositoryError as e:
        _fail(str(e))
    _ok(f"已导入数据包 #{bag_id}: {len(records)} 行, {len(schema)} 列")


@app.command("generate-spec")
def generate_spec(
    project_id: int = typer.Argument(..., help="Project id"),
    spec_type: SpecType = typer.Option(SpecType.FUNCTIONAL, "--type", help="Specification type"),
    model: Optional[str] = typer.Option(None, "--model", help="Claude model id"),
    email: str = typer.Option(DEMO_USER_EMAIL, "--email", help="Project owner email"),
):
    """Generate a specification and stream it to stdout."""
    setup_logging()

    async def job(context: AppContext) -> None:
        generator = SpecGenerator(context)
        prompt = await generator.prepare(project_id, await _owner_id(context, email), spec_type.value)
        async for text in generator.stream_and_save(project_id, prompt, spec_type.value, model):
            sys.stdout.write(text)
            sys.stdout.flush()
        sys.stdout.write("\n")

    try:
        _run(job)
    except (RepositoryError, AIServiceError) as e:
        _fail(str(e))
    _ok("规格文档已保存")


@app.command()
def serve(host: str = "127.0.0.1", port: int = 8000, reload: bool = False):
    """Run FastAPI server."""
    import uvicorn

    uvicorn.run("agenticos.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
