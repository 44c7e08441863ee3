"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store / Notifier / 当前操作者

Store 和 Notifier 实例通过 app.state 管理，在 lifespan 中初始化/清理。
操作者身份由上游认证层以请求头传入：
X-Actor-Id / X-Actor-Role / X-Org-Id / X-Project-Id
"""

from fastapi import Depends, Request
from pydantic import ValidationError
from talentops.core.models import Actor
from talentops.core.store import StoreGroup

from .errors import ActorHeaderError
from .services.notifier import Notifier
from .services.task_service import TaskService


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_notifier(request: Request) -> Notifier:
    """从 app.state 获取 Notifier 实例"""
    return request.app.state.notifier


def get_actor(request: Request) -> Actor:
    """从请求头构建 Actor；缺失或非法时返回 401"""
    actor_id = request.headers.get("X-Actor-Id", "").strip()
    if not actor_id:
        raise ActorHeaderError("Missing X-Actor-Id header")
    try:
        return Actor(
            actor_id=actor_id,
            role=request.headers.get("X-Actor-Role", "employee").strip().lower(),
            org_id=request.headers.get("X-Org-Id", "").strip(),
            project_id=request.headers.get("X-Project-Id", "").strip() or None,
        )
    except ValidationError as e:
        raise ActorHeaderError(f"Invalid actor headers: {e.errors()[0]['msg']}") from e


def get_task_service(
    store_group: StoreGroup = Depends(get_store_group),
    notifier: Notifier = Depends(get_notifier),
) -> TaskService:
    return TaskService(store_group, notifier)
