"""AgenticOS - WebSocket API Routes

变更推送：每次写操作后向已连接的客户端发送 {"type": "changed"}

通知不携带数据，客户端收到后自行重新查询。
"""
import asyncio
import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from agenticos.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["websocket"])

CHANGED_MESSAGE = {"type": "changed"}


@router.websocket("/changes")
async def changes_ws(websocket: WebSocket, token: str = Query("")):
    """变更通知 WebSocket 端点（token 为登录返回的访问令牌）"""
    if AuthService.user_id_from_token(token) is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    bus = websocket.app.state.context.bus
    queue: asyncio.Queue = asyncio.Queue()
    # 先订阅再 accept，连接建立后的写操作不会漏掉
    unsubscribe = bus.subscribe(lambda: queue.put_nowait(CHANGED_MESSAGE))
    await websocket.accept()
    logger.info("变更推送连接建立")

    async def pump():
        while True:
            message = await queue.get()
            await websocket.send_json(message)

    sender = asyncio.create_task(pump())
    try:
        # 客户端消息只用于保活，内容忽略
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("变更推送连接断开")
    finally:
        unsubscribe()
        sender.cancel()
        await asyncio.gather(sender, return_exceptions=True)
