"""用户提示路由

GET /api/notifications: 取走当前操作者的全部待读提示（读取即清空）
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from talentops.core.models import Actor

from ..deps import get_actor, get_notifier
from ..services.notifier import Notification, Notifier

router = APIRouter()


class NotificationListResponse(BaseModel):
    notifications: list[Notification]


@router.get("/api/notifications", response_model=NotificationListResponse)
async def drain_notifications(
    actor: Actor = Depends(get_actor),
    notifier: Notifier = Depends(get_notifier),
):
    notifications = await notifier.drain(actor.actor_id)
    return NotificationListResponse(notifications=notifications)
