"""任务创建（初始状态播种）

项目向导批量创建和看板临时创建两条路径共用同一份播种规则：
lifecycle_state = requirement_refiner, sub_state = in_progress,
status 由阶段派生, phase_validations.active_phases = 全部阶段。
"""

from datetime import UTC, date, datetime, timedelta

from ulid import ULID

from .config import DEFAULT_ALLOCATED_HOURS, DEFAULT_DUE_DAYS
from .exceptions import InvalidTaskError
from .models.actor import Actor
from .models.enums import (
    PHASE_SEQUENCE,
    LifecyclePhase,
    Priority,
    SubState,
    derive_status,
)
from .models.note import Project
from .models.payloads import AdHocTaskInput, WizardAssignment
from .models.task import PhaseValidations, Task


def seed_task(
    *,
    project_id: str,
    org_id: str,
    title: str,
    assigned_by: str,
    assigned_to: str | None = None,
    description: str = "",
    priority: Priority | None = None,
    allocated_hours: float | None = None,
    start_date: date | None = None,
    due_date: date | None = None,
    now: datetime | None = None,
) -> Task:
    """生成一条处于初始生命周期状态的 Task

    Raises:
        InvalidTaskError: 标题为空、项目为空或工时为负
    """
    now = now or datetime.now(UTC)
    clean_title = title.strip()
    if not clean_title:
        raise InvalidTaskError("Please enter a task title")
    if not project_id:
        raise InvalidTaskError("Task must belong to a project")
    if allocated_hours is not None and allocated_hours < 0:
        raise InvalidTaskError("Allocated hours must not be negative")

    phase = LifecyclePhase.REQUIREMENT_REFINER
    return Task(
        task_id=str(ULID()),
        project_id=project_id,
        org_id=org_id,
        title=clean_title,
        description=description,
        assigned_to=assigned_to or None,
        assigned_by=assigned_by,
        priority=priority or Priority.MEDIUM,
        status=derive_status(phase),
        lifecycle_state=phase,
        sub_state=SubState.IN_PROGRESS,
        proof_url=None,
        # 0 / 空值都回退到默认工时
        allocated_hours=allocated_hours or DEFAULT_ALLOCATED_HOURS,
        start_date=start_date,
        due_date=due_date,
        phase_validations=PhaseValidations(active_phases=list(PHASE_SEQUENCE)),
        created_at=now,
        updated_at=now,
    )


def build_wizard_tasks(
    project: Project,
    assignments: list[WizardAssignment],
    assigned_by: str,
    now: datetime | None = None,
) -> list[Task]:
    """项目向导：为每个 (员工, 自定义任务) 组合生成一条 Task

    任意一行不合法时整批放弃，错误中带上该行在整批中的行号。

    Raises:
        InvalidTaskError: index 为被拒绝的行号（与 InsertError.index 同一编号）
    """
    now = now or datetime.now(UTC)
    today = now.date()
    default_due = today + timedelta(days=DEFAULT_DUE_DAYS)

    tasks: list[Task] = []
    for assignment in assignments:
        for item in assignment.tasks:
            index = len(tasks)
            try:
                task = seed_task(
                    project_id=project.project_id,
                    org_id=project.org_id,
                    title=item.title,
                    description=f"Task for {project.name}",
                    assigned_to=assignment.employee_id,
                    assigned_by=assigned_by,
                    priority=item.priority,
                    allocated_hours=item.hours,
                    start_date=today,
                    due_date=item.due_date or default_due,
                    now=now,
                )
            except InvalidTaskError as e:
                raise InvalidTaskError(
                    f"Task #{index} ({item.title!r}) for {assignment.employee_id}"
                    f" was rejected: {e.message}",
                    index=index,
                ) from e
            tasks.append(task)
    return tasks


def build_adhoc_task(
    payload: AdHocTaskInput,
    actor: Actor,
    now: datetime | None = None,
) -> Task:
    """看板临时创建：作用于操作者当前激活的项目"""
    now = now or datetime.now(UTC)
    today = now.date()
    if not actor.project_id:
        raise InvalidTaskError("No active project selected")

    return seed_task(
        project_id=actor.project_id,
        org_id=actor.org_id,
        title=payload.title,
        description=payload.description,
        assigned_to=payload.assigned_to,
        assigned_by=actor.actor_id,
        priority=payload.priority,
        allocated_hours=payload.allocated_hours,
        start_date=payload.start_date or today,
        due_date=payload.due_date or today,
        now=now,
    )
