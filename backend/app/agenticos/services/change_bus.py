"""Change Bus

进程内变更通知：任何写操作提交后广播一次 "有数据变了"，不携带载荷。
"""

import itertools
import logging
from typing import Callable, Dict

logger = logging.getLogger(__name__)

ChangeHandler = Callable[[], None]


class ChangeBus:
    def __init__(self):
        # dict 保持插入顺序，即订阅顺序
        self._handlers: Dict[int, ChangeHandler] = {}
        self._ids = itertools.count()

    def subscribe(self, handler: ChangeHandler) -> Callable[[], None]:
        """订阅变更事件，返回取消订阅函数（可重复调用）"""
        key = next(self._ids)
        self._handlers[key] = handler

        def unsubscribe() -> None:
            self._handlers.pop(key, None)

        return unsubscribe

    def publish(self) -> None:
        """按订阅顺序同步通知所有订阅者

        单个订阅者抛错只记录日志，不影响其余订阅者。
        """
        for handler in list(self._handlers.values()):
            try:
                handler()
            except Exception:
                logger.exception(f"变更订阅者执行失败: {handler!r}")

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)
