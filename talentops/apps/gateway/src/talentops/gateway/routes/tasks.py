"""任务创建与查询路由

POST /api/tasks: 看板临时创建任务（当前激活项目）。
GET /api/tasks: 按角色视图列出任务，支持 q 搜索和 status 筛选。
GET /api/tasks/{task_id}: 任务详情，含阶段进度条、可用操作和备注。
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from starlette.responses import JSONResponse
from talentops.core.config import SEARCH_QUERY_MAX_LENGTH
from talentops.core.models import Actor, AdHocTaskInput, Task, TaskNote, TaskStatus
from talentops.core.views import TaskCard, TaskSummary, TaskView

from ..deps import get_actor, get_task_service
from ..services.task_service import TaskService

router = APIRouter()


class TaskListResponse(BaseModel):
    """任务列表响应"""

    tasks: list[TaskCard]
    summary: TaskSummary


class TaskDetailResponse(BaseModel):
    """任务详情响应"""

    card: TaskCard
    notes: list[TaskNote]


@router.post("/api/tasks", status_code=201)
async def create_task(
    payload: AdHocTaskInput,
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
):
    """组长/经理在当前项目下创建单个任务；assigned_to 为空表示团队任务"""
    task: Task = await service.create_adhoc_task(actor, payload)
    return JSONResponse(
        status_code=201,
        content={"task": task.model_dump(mode="json")},
    )


@router.get("/api/tasks", response_model=TaskListResponse)
async def list_tasks(
    view: TaskView | None = Query(default=None, description="mine / project / org，缺省按角色"),
    q: str | None = Query(
        default=None,
        max_length=SEARCH_QUERY_MAX_LENGTH,
        description="按标题或执行人搜索",
    ),
    status: TaskStatus | None = Query(default=None, description="按粗粒度状态筛选"),
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
):
    """按角色视图列出任务，按 created_at 倒序"""
    cards, summary = await service.list_cards(actor, view=view, q=q, status=status)
    return TaskListResponse(tasks=cards, summary=summary)


@router.get("/api/tasks/{task_id}", response_model=TaskDetailResponse)
async def get_task_detail(
    task_id: str,
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
):
    """查询任务详情，包含进度条、可用操作和备注列表"""
    card = await service.get_card(task_id, actor)
    notes = await service.list_notes(task_id, actor)
    return TaskDetailResponse(card=card, notes=notes)
