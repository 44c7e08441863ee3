"""项目向导路由

POST /api/projects: 创建项目
POST /api/projects/{project_id}/tasks: 为向导中的每个 (员工, 自定义任务) 批量创建任务
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse
from talentops.core.models import Actor, WizardAssignment

from ..deps import get_actor, get_task_service
from ..services.task_service import TaskService

router = APIRouter()


class CreateProjectRequest(BaseModel):
    name: str = Field(min_length=1)


class WizardTasksRequest(BaseModel):
    """向导提交的任务分配"""

    assignments: list[WizardAssignment] = Field(default_factory=list)


@router.post("/api/projects", status_code=201)
async def create_project(
    body: CreateProjectRequest,
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
):
    project = await service.create_project(actor, body.name)
    return JSONResponse(
        status_code=201,
        content={"project": project.model_dump(mode="json")},
    )


@router.post("/api/projects/{project_id}/tasks", status_code=201)
async def create_wizard_tasks(
    project_id: str,
    body: WizardTasksRequest,
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
):
    """整批创建；任意一条被拒绝时整批回滚并返回 422"""
    tasks = await service.create_wizard_tasks(actor, project_id, body.assignments)
    return JSONResponse(
        status_code=201,
        content={
            "count": len(tasks),
            "tasks": [t.model_dump(mode="json") for t in tasks],
        },
    )
