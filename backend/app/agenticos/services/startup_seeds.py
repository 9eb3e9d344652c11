"""AgenticOS - Startup Seeding

后端启动时自动 seed 默认数据，空库时也能直接用演示账号登录。
"""
import logging

from agenticos.core.context import AppContext

logger = logging.getLogger(__name__)


async def run_startup_seeds(context: AppContext, seed_demo_user: bool = True) -> None:
    """运行所有启动时 seed 逻辑。"""
    if seed_demo_user:
        await context.users.seed_demo_user()
