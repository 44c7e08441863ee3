"""任务备注路由

GET /api/tasks/{task_id}/notes: 备注列表，最新的在前
POST /api/tasks/{task_id}/notes: 追加备注
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from starlette.responses import JSONResponse
from talentops.core.models import Actor, TaskNote

from ..deps import get_actor, get_task_service
from ..services.task_service import TaskService

router = APIRouter()


class AddNoteRequest(BaseModel):
    note_text: str = ""


class NoteListResponse(BaseModel):
    notes: list[TaskNote]


@router.get("/api/tasks/{task_id}/notes", response_model=NoteListResponse)
async def list_notes(
    task_id: str,
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
):
    notes = await service.list_notes(task_id, actor)
    return NoteListResponse(notes=notes)


@router.post("/api/tasks/{task_id}/notes", status_code=201)
async def add_note(
    task_id: str,
    body: AddNoteRequest,
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
):
    """空白备注返回 422 "Please enter a note" """
    note = await service.add_note(task_id, actor, body.note_text)
    return JSONResponse(
        status_code=201,
        content={"note": note.model_dump(mode="json")},
    )
