"""TaskService -- 任务创建 / 生命周期操作 / 视图查询

生命周期操作流程（submit_proof / approve / reject）：
1. 同一任务的上一个请求未完成时直接拒绝（RequestInFlightError）
2. 从存储读取最新快照
3. 生命周期引擎计算流转（纯函数）
4. 以 sub_state 为守卫条件写入；命中 0 行即 TaskStateConflictError
5. 重新读取任务作为返回值，推送提示
"""

from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

import aiosqlite
import structlog
from talentops.core import lifecycle
from talentops.core.exceptions import (
    InvalidTaskError,
    NotAuthorizedError,
    ProjectNotFoundError,
    RequestInFlightError,
    StoreUnavailableError,
    TaskLifecycleError,
    TaskNotFoundError,
    TaskStateConflictError,
)
from talentops.core.models import (
    Actor,
    AdHocTaskInput,
    NotifyKind,
    Project,
    Task,
    TaskAction,
    TaskNote,
    TaskStatus,
    WizardAssignment,
)
from talentops.core.seeding import build_adhoc_task, build_wizard_tasks
from talentops.core.store import StoreGroup
from talentops.core.store.transaction import (
    append_note,
    insert_tasks_atomically,
    save_project,
    update_task_guarded,
)
from talentops.core.views import (
    TaskCard,
    TaskSummary,
    TaskView,
    build_card,
    filter_tasks,
    scope_filter,
    summarize,
)
from ulid import ULID

from .notifier import Notifier

log = structlog.get_logger()

# 提示文案
MSG_PROOF_SUBMITTED = "Validation requested with proof!"
MSG_PROOF_UPDATED = "Proof updated successfully!"
MSG_APPROVED = "Task approved and moved to next phase!"
MSG_CLOSED = "Task approved and closed!"
MSG_REJECTED = "Task rejected and sent back for revision"
MSG_NOTE_EMPTY = "Please enter a note"


@contextmanager
def _store_errors() -> Iterator[None]:
    """把底层 SQLite 异常转换为 StoreUnavailableError"""
    try:
        yield
    except aiosqlite.Error as e:
        log.error("task_store_error", error_type=type(e).__name__, error=str(e))
        raise StoreUnavailableError(e) from e


class TaskService:
    """任务业务服务"""

    # 正在处理中的任务，保证同一任务的生命周期请求串行
    _in_flight: set[str] = set()

    def __init__(self, store_group: StoreGroup, notifier: Notifier | None = None) -> None:
        self._stores = store_group
        self._notifier = notifier

    @property
    def proof_read_limit(self) -> int:
        """读取上传内容的字节上限（大小上限 + 1）"""
        return self._stores.proof_storage.max_bytes + 1

    # ---- 创建 ----

    async def create_project(self, actor: Actor, name: str) -> Project:
        """项目向导第一步：创建项目"""
        if not actor.is_reviewer:
            raise NotAuthorizedError("Only team leads, managers and executives can create projects")
        clean_name = name.strip()
        if not clean_name:
            raise InvalidTaskError("Please enter a project name")

        project = Project(
            project_id=str(ULID()),
            org_id=actor.org_id,
            name=clean_name,
            created_at=datetime.now(UTC),
        )
        with _store_errors():
            await save_project(self._stores.conn, self._stores.project_store, project)
        await log.ainfo("project_created", project_id=project.project_id)
        return project

    async def create_wizard_tasks(
        self,
        actor: Actor,
        project_id: str,
        assignments: list[WizardAssignment],
    ) -> list[Task]:
        """项目向导：为每个 (员工, 自定义任务) 批量创建任务，整批成功或整批失败"""
        if not actor.is_reviewer:
            raise NotAuthorizedError("Only team leads, managers and executives can assign tasks")
        project = await self._get_project(actor, project_id)

        tasks = build_wizard_tasks(project, assignments, assigned_by=actor.actor_id)
        if not tasks:
            return []

        with _store_errors():
            await insert_tasks_atomically(self._stores.conn, self._stores.task_store, tasks)

        await log.ainfo("wizard_tasks_created", project_id=project_id, count=len(tasks))
        for task in tasks:
            if task.assigned_to and task.assigned_to != actor.actor_id:
                await self._notify(
                    task.assigned_to,
                    f"New task assigned: {task.title}",
                    NotifyKind.INFO,
                    task.task_id,
                )
        return tasks

    async def create_adhoc_task(self, actor: Actor, payload: AdHocTaskInput) -> Task:
        """看板临时创建任务（当前激活项目）"""
        if not actor.is_reviewer:
            raise NotAuthorizedError("Only team leads, managers and executives can create tasks")
        task = build_adhoc_task(payload, actor)
        await self._get_project(actor, task.project_id)

        with _store_errors():
            await insert_tasks_atomically(self._stores.conn, self._stores.task_store, [task])

        await log.ainfo(
            "adhoc_task_created",
            task_id=task.task_id,
            project_id=task.project_id,
            team_task=task.assigned_to is None,
        )
        await self._notify(actor.actor_id, "Task created successfully!", NotifyKind.SUCCESS, task.task_id)
        return task

    # ---- 查询 ----

    async def get_task(self, task_id: str, actor: Actor | None = None) -> Task:
        """查询任务；不存在或不属于操作者组织时抛出 TaskNotFoundError"""
        with _store_errors():
            task = await self._stores.task_store.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        if actor is not None and actor.org_id and task.org_id and task.org_id != actor.org_id:
            raise TaskNotFoundError(task_id)
        return task

    async def list_cards(
        self,
        actor: Actor,
        view: TaskView | None = None,
        q: str | None = None,
        status: TaskStatus | None = None,
    ) -> tuple[list[TaskCard], TaskSummary]:
        """按角色视图列出任务卡片，并返回筛选前的汇总计数"""
        task_filter = scope_filter(actor, view)
        with _store_errors():
            tasks = await self._stores.task_store.list_tasks(task_filter)
            names = await self._stores.project_store.get_project_names(
                [t.project_id for t in tasks]
            )

        summary = summarize(tasks)
        visible = filter_tasks(tasks, q=q, status=status)
        cards = [build_card(t, actor, names.get(t.project_id)) for t in visible]
        return cards, summary

    async def get_card(self, task_id: str, actor: Actor) -> TaskCard:
        task = await self.get_task(task_id, actor)
        with _store_errors():
            project = await self._stores.project_store.get_project(task.project_id)
        return build_card(task, actor, project.name if project else None)

    # ---- 备注 ----

    async def list_notes(self, task_id: str, actor: Actor) -> list[TaskNote]:
        await self.get_task(task_id, actor)
        with _store_errors():
            return await self._stores.note_store.list_notes(task_id)

    async def add_note(self, task_id: str, actor: Actor, note_text: str) -> TaskNote:
        task = await self.get_task(task_id, actor)
        text = note_text.strip()
        if not text:
            raise InvalidTaskError(MSG_NOTE_EMPTY)

        note = TaskNote(
            note_id=str(ULID()),
            task_id=task_id,
            org_id=task.org_id,
            author_id=actor.actor_id,
            note_text=text,
            created_at=datetime.now(UTC),
        )
        with _store_errors():
            await append_note(self._stores.conn, self._stores.note_store, note)
        await log.ainfo("task_note_added", task_id=task_id, note_id=note.note_id)
        return note

    # ---- 生命周期操作 ----

    async def submit_proof(
        self,
        task_id: str,
        actor: Actor,
        filename: str | None,
        content: bytes,
        content_type: str | None = None,
    ) -> Task:
        """上传证明并提交审批；pending_validation 时替换证明"""

        async def op() -> Task:
            task = await self.get_task(task_id, actor)
            proof = await self._stores.proof_storage.upload_proof(
                task_id=task_id,
                actor_id=actor.actor_id,
                filename=filename or "",
                content=content,
                content_type=content_type,
            )
            try:
                tr = lifecycle.submit_proof(task, actor, proof.url)
                updated = await self._commit(tr)
            except Exception:
                # 证明未能关联到任务，清理已写入的文件
                self._stores.proof_storage.discard(proof)
                raise

            await self._notify(
                actor.actor_id,
                MSG_PROOF_UPDATED if tr.is_resubmission else MSG_PROOF_SUBMITTED,
                NotifyKind.SUCCESS,
                task_id,
            )
            if not tr.is_resubmission and task.assigned_by and task.assigned_by != actor.actor_id:
                await self._notify(
                    task.assigned_by,
                    f"'{task.title}' is pending validation",
                    NotifyKind.INFO,
                    task_id,
                )
            return updated

        return await self._run_exclusive(task_id, actor, TaskAction.SUBMIT_PROOF, op)

    async def approve(self, task_id: str, actor: Actor) -> Task:
        """审批通过：推进到下一阶段，deployment 之后关闭任务"""

        async def op() -> Task:
            task = await self.get_task(task_id, actor)
            tr = lifecycle.approve(task, actor)
            updated = await self._commit(tr)

            await self._notify(
                actor.actor_id,
                MSG_CLOSED if updated.is_closed else MSG_APPROVED,
                NotifyKind.SUCCESS,
                task_id,
            )
            await self._notify_assignee(
                task, actor, f"'{task.title}' was approved ({tr.to_phase.value})"
            )
            return updated

        return await self._run_exclusive(task_id, actor, TaskAction.APPROVE, op)

    async def reject(self, task_id: str, actor: Actor) -> Task:
        """驳回：阶段不变，回到 in_progress"""

        async def op() -> Task:
            task = await self.get_task(task_id, actor)
            tr = lifecycle.reject(task, actor)
            updated = await self._commit(tr)

            await self._notify(actor.actor_id, MSG_REJECTED, NotifyKind.INFO, task_id)
            await self._notify_assignee(
                task, actor, f"'{task.title}' was sent back for revision"
            )
            return updated

        return await self._run_exclusive(task_id, actor, TaskAction.REJECT, op)

    async def _run_exclusive(
        self,
        task_id: str,
        actor: Actor,
        action: TaskAction,
        op: Callable[[], Awaitable[Task]],
    ) -> Task:
        """单任务互斥执行一个生命周期操作，失败时推送错误提示"""
        # 检查与登记之间没有 await，单事件循环内是原子的
        if task_id in self._in_flight:
            error = RequestInFlightError(task_id)
            await log.awarning("task_request_in_flight", task_id=task_id, action=action.value)
            await self._notify(actor.actor_id, error.message, NotifyKind.ERROR, task_id)
            raise error

        self._in_flight.add(task_id)
        try:
            return await op()
        except TaskLifecycleError as e:
            await log.awarning(
                "task_action_refused",
                task_id=task_id,
                action=action.value,
                code=e.code,
                recoverable=e.recoverable,
            )
            await self._notify(actor.actor_id, e.message, NotifyKind.ERROR, task_id)
            raise
        finally:
            self._in_flight.discard(task_id)

    async def _commit(self, tr: lifecycle.Transition) -> Task:
        """以 expected_sub_state 为守卫写入，并重新读取任务"""
        with _store_errors():
            updated = await update_task_guarded(
                self._stores.conn,
                self._stores.task_store,
                tr.task_id,
                tr.expected_sub_state.value,
                tr.patch,
            )
        if not updated:
            await log.awarning(
                "task_state_conflict",
                task_id=tr.task_id,
                action=tr.action.value,
                expected_sub_state=tr.expected_sub_state.value,
            )
            raise TaskStateConflictError(tr.task_id, tr.expected_sub_state.value)

        await log.ainfo(
            f"task_{tr.action.value}_committed",
            task_id=tr.task_id,
            from_phase=tr.from_phase.value,
            to_phase=tr.to_phase.value,
            from_sub_state=tr.from_sub_state.value,
            to_sub_state=tr.to_sub_state.value,
        )
        return await self.get_task(tr.task_id)

    async def _get_project(self, actor: Actor, project_id: str) -> Project:
        with _store_errors():
            project = await self._stores.project_store.get_project(project_id)
        if project is None or (actor.org_id and project.org_id != actor.org_id):
            raise ProjectNotFoundError(project_id)
        return project

    async def _notify_assignee(self, task: Task, actor: Actor, message: str) -> None:
        if task.assigned_to and task.assigned_to != actor.actor_id:
            await self._notify(task.assigned_to, message, NotifyKind.INFO, task.task_id)

    async def _notify(
        self,
        actor_id: str,
        message: str,
        kind: NotifyKind,
        task_id: str | None = None,
    ) -> None:
        if self._notifier is not None:
            await self._notifier.notify(actor_id, message, kind, task_id)
