"""任务生命周期路由

POST /api/tasks/{task_id}/proof: 上传证明文件并提交审批（multipart, 字段名 file）
POST /api/tasks/{task_id}/approve: 审批通过，推进到下一阶段
POST /api/tasks/{task_id}/reject: 驳回，回到当前阶段的 in_progress

- 200: 操作成功，返回重新读取后的任务
- 403: 操作者无权执行
- 404: 任务不存在
- 409: 任务不在可操作状态 / 已被他人修改 / 上一请求未完成
- 413 / 415 / 422: 证明文件被拒绝
"""

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel
from talentops.core.models import Actor, Task

from ..deps import get_actor, get_task_service
from ..services.task_service import TaskService

router = APIRouter()


class TaskActionResponse(BaseModel):
    """生命周期操作响应"""

    task: Task


@router.post("/api/tasks/{task_id}/proof", response_model=TaskActionResponse)
async def submit_proof(
    task_id: str,
    file: UploadFile | None = File(default=None),
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
):
    """执行人上传证明；任务已在 pending_validation 时替换证明

    只读取到大小上限多一个字节为止，超限文件不会整体读入内存。
    """
    content = await file.read(service.proof_read_limit) if file is not None else b""
    task = await service.submit_proof(
        task_id,
        actor,
        filename=file.filename if file is not None else None,
        content=content,
        content_type=file.content_type if file is not None else None,
    )
    return TaskActionResponse(task=task)


@router.post("/api/tasks/{task_id}/approve", response_model=TaskActionResponse)
async def approve_task(
    task_id: str,
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
):
    task = await service.approve(task_id, actor)
    return TaskActionResponse(task=task)


@router.post("/api/tasks/{task_id}/reject", response_model=TaskActionResponse)
async def reject_task(
    task_id: str,
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
):
    task = await service.reject(task_id, actor)
    return TaskActionResponse(task=task)
