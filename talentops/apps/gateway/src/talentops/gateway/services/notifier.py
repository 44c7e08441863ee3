"""Notifier -- 内存中的用户提示队列

每个操作者持有一个 asyncio.Queue，操作完成后推送一条提示（toast），
客户端通过 GET /api/notifications 取走。notify 是 fire-and-forget：
投递失败只记录日志，不影响已提交的任务流转。
"""

import asyncio
from datetime import UTC, datetime

import structlog
from pydantic import BaseModel, Field
from talentops.core.models import NotifyKind
from ulid import ULID

log = structlog.get_logger()


class Notification(BaseModel):
    """一条用户提示"""

    notification_id: str = Field(description="唯一标识，ULID 格式")
    actor_id: str
    message: str
    kind: NotifyKind
    task_id: str | None = None
    created_at: datetime


class Notifier:
    """按操作者分队列的提示投递器"""

    def __init__(self, queue_maxsize: int = 100) -> None:
        # actor_id -> asyncio.Queue
        self._queues: dict[str, asyncio.Queue[Notification]] = {}
        self._queue_maxsize = queue_maxsize

    async def notify(
        self,
        actor_id: str,
        message: str,
        kind: NotifyKind,
        task_id: str | None = None,
    ) -> None:
        """投递一条提示，从不抛出异常"""
        try:
            notification = Notification(
                notification_id=str(ULID()),
                actor_id=actor_id,
                message=message,
                kind=kind,
                task_id=task_id,
                created_at=datetime.now(UTC),
            )
            self._deliver(notification)
        except Exception as e:
            log.warning(
                "notification_dropped",
                actor_id=actor_id,
                kind=str(kind),
                error_type=type(e).__name__,
            )

    def _deliver(self, notification: Notification) -> None:
        queue = self._queues.get(notification.actor_id)
        if queue is None:
            queue = asyncio.Queue(maxsize=self._queue_maxsize)
            self._queues[notification.actor_id] = queue
        if queue.full():
            # 丢弃最旧的一条
            queue.get_nowait()
        queue.put_nowait(notification)

    async def drain(self, actor_id: str) -> list[Notification]:
        """取走该操作者的全部待读提示（按投递顺序）"""
        queue = self._queues.pop(actor_id, None)
        if queue is None:
            return []
        notifications: list[Notification] = []
        while not queue.empty():
            notifications.append(queue.get_nowait())
        return notifications

    def pending_count(self, actor_id: str) -> int:
        queue = self._queues.get(actor_id)
        return queue.qsize() if queue is not None else 0
