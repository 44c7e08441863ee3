"""任务视图 -- 按角色划定列表范围、搜索筛选、汇总计数、阶段进度条

只读计算，不访问存储。列表范围由 scope_filter 翻译为 TaskFilter，
交给 TaskStore.list_tasks 执行。
"""

from enum import StrEnum

from pydantic import BaseModel, Field

from .config import SEARCH_QUERY_MAX_LENGTH
from .exceptions import InvalidTaskError, NotAuthorizedError
from .lifecycle import can_review, can_submit_proof
from .models.actor import Actor
from .models.enums import (
    WORKING_PHASES,
    LifecyclePhase,
    Role,
    SubState,
    TaskStatus,
    phase_index,
)
from .models.task import Task, TaskFilter


class TaskView(StrEnum):
    """列表范围"""

    MINE = "mine"  # 员工：分配给自己且属于当前项目
    PROJECT = "project"  # 组长/经理：当前项目全部任务
    ORG = "org"  # 高管：组织内全部任务


class PhaseProgress(StrEnum):
    """进度条上单个阶段的展示状态"""

    COMPLETED = "completed"
    CURRENT = "current"
    PENDING_VALIDATION = "pending_validation"
    UPCOMING = "upcoming"


class PhaseIndicator(BaseModel):
    phase: LifecyclePhase
    state: PhaseProgress


class TaskSummary(BaseModel):
    """列表汇总计数"""

    total: int = 0
    by_status: dict[str, int] = Field(default_factory=dict)
    by_sub_state: dict[str, int] = Field(default_factory=dict)


class TaskCard(BaseModel):
    """任务列表/详情中的一张卡片"""

    task: Task
    project_name: str | None = None
    progress: list[PhaseIndicator] = Field(default_factory=list)
    can_submit: bool = False
    submit_label: str | None = None
    can_review: bool = False


def default_view(role: Role) -> TaskView:
    if role == Role.EXECUTIVE:
        return TaskView.ORG
    if role in (Role.TEAM_LEAD, Role.MANAGER):
        return TaskView.PROJECT
    return TaskView.MINE


def scope_filter(actor: Actor, view: TaskView | None = None) -> TaskFilter:
    """把 (操作者, 视图) 翻译为存储查询条件

    Raises:
        NotAuthorizedError: 员工请求项目或组织范围
        InvalidTaskError: 需要当前项目但操作者未选择
    """
    view = view or default_view(actor.role)
    org_id = actor.org_id or None

    if view == TaskView.ORG:
        if actor.role != Role.EXECUTIVE:
            raise NotAuthorizedError("Only executives can view all tasks")
        return TaskFilter(org_id=org_id)

    if not actor.project_id:
        raise InvalidTaskError("No active project selected")

    if view == TaskView.PROJECT:
        if not actor.is_reviewer:
            raise NotAuthorizedError("Only team leads and managers can view all project tasks")
        return TaskFilter(org_id=org_id, project_id=actor.project_id)

    return TaskFilter(
        org_id=org_id,
        project_id=actor.project_id,
        assigned_to=actor.actor_id,
    )


def filter_tasks(
    tasks: list[Task],
    q: str | None = None,
    status: TaskStatus | None = None,
    assignee_names: dict[str, str] | None = None,
) -> list[Task]:
    """按搜索词（标题或执行人）和粗粒度状态筛选"""
    needle = (q or "").strip().lower()[:SEARCH_QUERY_MAX_LENGTH]
    names = assignee_names or {}

    result: list[Task] = []
    for task in tasks:
        if status is not None and task.status != status:
            continue
        if needle:
            haystack = [task.title.lower()]
            if task.assigned_to:
                haystack.append(task.assigned_to.lower())
                haystack.append(names.get(task.assigned_to, "").lower())
            if not any(needle in text for text in haystack):
                continue
        result.append(task)
    return result


def summarize(tasks: list[Task]) -> TaskSummary:
    summary = TaskSummary(total=len(tasks))
    for task in tasks:
        summary.by_status[task.status.value] = summary.by_status.get(task.status.value, 0) + 1
        summary.by_sub_state[task.sub_state.value] = (
            summary.by_sub_state.get(task.sub_state.value, 0) + 1
        )
    return summary


def progress_strip(task: Task) -> list[PhaseIndicator]:
    """五个工作阶段的进度指示

    当前阶段之前为 completed；当前阶段为 current，待审批时为
    pending_validation；之后为 upcoming。已关闭任务全部 completed。
    """
    if task.is_closed:
        return [
            PhaseIndicator(phase=phase, state=PhaseProgress.COMPLETED)
            for phase in WORKING_PHASES
        ]

    current = phase_index(task.lifecycle_state)
    indicators: list[PhaseIndicator] = []
    for idx, phase in enumerate(WORKING_PHASES):
        if idx < current:
            state = PhaseProgress.COMPLETED
        elif idx == current:
            state = (
                PhaseProgress.PENDING_VALIDATION
                if task.sub_state == SubState.PENDING_VALIDATION
                else PhaseProgress.CURRENT
            )
        else:
            state = PhaseProgress.UPCOMING
        indicators.append(PhaseIndicator(phase=phase, state=state))
    return indicators


def submit_label(task: Task) -> str | None:
    """提交按钮文案；不可提交时为 None"""
    if not can_submit_proof(task):
        return None
    if task.sub_state == SubState.PENDING_VALIDATION:
        return "Update Proof"
    return "Submit"


def build_card(task: Task, actor: Actor, project_name: str | None = None) -> TaskCard:
    """按操作者身份计算卡片上可用的操作"""
    is_assignee = task.assigned_to is not None and task.assigned_to == actor.actor_id
    submittable = is_assignee and can_submit_proof(task)
    return TaskCard(
        task=task,
        project_name=project_name,
        progress=progress_strip(task),
        can_submit=submittable,
        submit_label=submit_label(task) if submittable else None,
        can_review=actor.is_reviewer and can_review(task),
    )
