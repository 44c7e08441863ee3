"""任务生命周期引擎 -- 纯函数状态机

transition(task, action, actor) 根据当前 (lifecycle_state, sub_state) 计算
下一状态，返回 Transition（含结果 Task、写入 patch 和条件写入的期望子状态）。
不访问存储、不读取全局上下文；非法操作抛出 TaskLifecycleError 子类。

调用方必须以 expected_sub_state 作为条件执行写入：
    UPDATE tasks SET ... WHERE task_id = ? AND sub_state = ?
命中 0 行即视为竞争失败。
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from .exceptions import (
    EmptyProofError,
    NotAuthorizedError,
    NotPendingValidationError,
    TaskClosedError,
)
from .models.actor import Actor
from .models.enums import (
    SUBMITTABLE_SUB_STATES,
    LifecyclePhase,
    SubState,
    TaskAction,
    TaskStatus,
    derive_status,
    next_phase,
)
from .models.task import Task


class Transition(BaseModel):
    """一次合法流转的计算结果"""

    action: TaskAction
    task_id: str
    expected_sub_state: SubState = Field(description="条件写入的守卫值")
    from_phase: LifecyclePhase
    to_phase: LifecyclePhase
    from_sub_state: SubState
    to_sub_state: SubState
    patch: dict[str, Any] = Field(default_factory=dict, description="需要写入的字段")
    task: Task = Field(description="流转后的 Task")

    @property
    def advanced(self) -> bool:
        """是否推进到了新阶段"""
        return self.from_phase != self.to_phase

    @property
    def is_resubmission(self) -> bool:
        return (
            self.action == TaskAction.SUBMIT_PROOF
            and self.from_sub_state == SubState.PENDING_VALIDATION
        )


def transition(
    task: Task,
    action: TaskAction,
    actor: Actor,
    proof_url: str | None = None,
    now: datetime | None = None,
) -> Transition:
    """计算一次生命周期流转

    Args:
        task: 当前任务快照
        action: submit_proof / approve / reject
        actor: 操作者
        proof_url: submit_proof 时必填
        now: 写入 updated_at 的时间，缺省为当前 UTC 时间

    Returns:
        Transition

    Raises:
        NotAuthorizedError: 操作者无权执行该操作
        TaskClosedError: 任务已关闭（submit_proof）
        NotPendingValidationError: 任务不在 pending_validation（approve / reject）
        EmptyProofError: proof_url 为空
    """
    now = now or datetime.now(UTC)

    if action == TaskAction.SUBMIT_PROOF:
        patch = _submit_proof_patch(task, actor, proof_url)
    elif action == TaskAction.APPROVE:
        patch = _approve_patch(task, actor)
    elif action == TaskAction.REJECT:
        patch = _reject_patch(task, actor)
    else:
        raise ValueError(f"Unknown action: {action}")

    patch["updated_at"] = now
    result = task.model_copy(update=patch)

    return Transition(
        action=action,
        task_id=task.task_id,
        expected_sub_state=task.sub_state,
        from_phase=task.lifecycle_state,
        to_phase=result.lifecycle_state,
        from_sub_state=task.sub_state,
        to_sub_state=result.sub_state,
        patch=patch,
        task=result,
    )


def submit_proof(
    task: Task, actor: Actor, proof_url: str, now: datetime | None = None
) -> Transition:
    return transition(task, TaskAction.SUBMIT_PROOF, actor, proof_url=proof_url, now=now)


def approve(task: Task, actor: Actor, now: datetime | None = None) -> Transition:
    return transition(task, TaskAction.APPROVE, actor, now=now)


def reject(task: Task, actor: Actor, now: datetime | None = None) -> Transition:
    return transition(task, TaskAction.REJECT, actor, now=now)


def _submit_proof_patch(
    task: Task, actor: Actor, proof_url: str | None
) -> dict[str, Any]:
    if task.assigned_to is None or actor.actor_id != task.assigned_to:
        raise NotAuthorizedError("Only the assignee can submit proof for this task")
    if task.is_closed:
        raise TaskClosedError(task.task_id)
    if not proof_url or not proof_url.strip():
        raise EmptyProofError()
    if task.sub_state not in SUBMITTABLE_SUB_STATES:
        raise TaskClosedError(task.task_id)

    if task.sub_state == SubState.PENDING_VALIDATION:
        # 重新提交：只替换证明
        return {"proof_url": proof_url}

    return {
        "proof_url": proof_url,
        "sub_state": SubState.PENDING_VALIDATION,
        "status": derive_status(task.lifecycle_state),
    }


def _ensure_reviewable(task: Task, actor: Actor) -> None:
    if not actor.is_reviewer:
        raise NotAuthorizedError("Only team leads, managers and executives can review tasks")
    if task.sub_state != SubState.PENDING_VALIDATION:
        raise NotPendingValidationError(task.task_id, task.sub_state.value)


def _approve_patch(task: Task, actor: Actor) -> dict[str, Any]:
    _ensure_reviewable(task, actor)

    target = next_phase(task.lifecycle_state)
    if target == LifecyclePhase.CLOSED:
        return {
            "lifecycle_state": LifecyclePhase.CLOSED,
            "sub_state": SubState.APPROVED,
            "status": TaskStatus.COMPLETED,
        }
    return {
        "lifecycle_state": target,
        "sub_state": SubState.IN_PROGRESS,
        "status": derive_status(target),
    }


def _reject_patch(task: Task, actor: Actor) -> dict[str, Any]:
    _ensure_reviewable(task, actor)
    # proof_url 保留，直到下一次提交覆盖
    return {
        "sub_state": SubState.IN_PROGRESS,
        "status": derive_status(task.lifecycle_state),
    }


def normalize_lifecycle(
    status: str | None,
    lifecycle_state: str | None,
    sub_state: str | None,
) -> tuple[LifecyclePhase, SubState, TaskStatus]:
    """把存储中的原始字段规整为合法的生命周期三元组

    旧版临时创建的任务没有 lifecycle_state / sub_state：
    - status == completed  -> (closed, approved)
    - 其他                 -> (requirement_refiner, in_progress)
    status 始终由阶段重新派生。
    """
    if lifecycle_state and sub_state:
        phase = LifecyclePhase(lifecycle_state)
        sub = SubState(sub_state)
    elif status == TaskStatus.COMPLETED.value:
        phase, sub = LifecyclePhase.CLOSED, SubState.APPROVED
    else:
        phase = (
            LifecyclePhase(lifecycle_state)
            if lifecycle_state
            else LifecyclePhase.REQUIREMENT_REFINER
        )
        sub = SubState.APPROVED if phase == LifecyclePhase.CLOSED else SubState.IN_PROGRESS
    return phase, sub, derive_status(phase)


def can_submit_proof(task: Task) -> bool:
    """任务视图是否显示“提交”按钮"""
    return not task.is_closed and task.sub_state in SUBMITTABLE_SUB_STATES


def can_review(task: Task) -> bool:
    """任务视图是否显示“通过/驳回”按钮"""
    return task.sub_state == SubState.PENDING_VALIDATION
